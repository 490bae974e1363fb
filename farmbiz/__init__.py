"""Farm to Biz - 도매/소매 B2B 식자재 마켓플레이스 비즈니스 코어"""

__version__ = "1.0.0"

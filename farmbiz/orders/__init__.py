"""주문 모듈"""
from .repository import OrderRepository, OrderPage

__all__ = ["OrderRepository", "OrderPage"]

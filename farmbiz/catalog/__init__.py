"""상품 카탈로그 모듈"""
from .reader import CatalogReader, ProductPage

__all__ = ["CatalogReader", "ProductPage"]

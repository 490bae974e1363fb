"""API 라우터"""
from . import catalog, chat, health, inquiries, orders, payments

ROUTERS = [
    health.router,
    payments.router,
    orders.router,
    inquiries.router,
    chat.router,
    catalog.router,
]

__all__ = ["ROUTERS"]

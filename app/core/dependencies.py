"""依赖注入配置模块"""

from functools import lru_cache
from typing import Generator

from fastapi import Depends

# 数据库会话依赖
from app.db.session import SessionLocal
from sqlalchemy.orm import Session

from app.core.config import settings
from app.services.checkout_service import CheckoutService
from app.services.order_events import OrderEventPublisher
from app.services.order_service import OrderService
from app.services.payment_factory import PaymentGatewayFactory


def get_db() -> Generator[Session, None, None]:
    """获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache
def get_payment_factory() -> PaymentGatewayFactory:
    """支付网关工厂（启动时按配置构建一次）"""
    return PaymentGatewayFactory.from_settings(settings)


def get_event_publisher() -> OrderEventPublisher:
    """获取订单事件发布器"""
    return OrderEventPublisher()


def get_checkout_service(
    db: Session = Depends(get_db),
    factory: PaymentGatewayFactory = Depends(get_payment_factory),
    publisher: OrderEventPublisher = Depends(get_event_publisher)
) -> CheckoutService:
    """获取结账服务实例（依赖注入）"""
    return CheckoutService(db=db, gateway_factory=factory, event_publisher=publisher)


def get_order_service(
    db: Session = Depends(get_db),
    publisher: OrderEventPublisher = Depends(get_event_publisher)
) -> OrderService:
    """获取订单查询服务实例（依赖注入）"""
    return OrderService(db=db, event_publisher=publisher)


"""依赖注入单元测试"""
import pytest
from unittest.mock import Mock, patch
from sqlalchemy.orm import Session

from app.core.dependencies import (
    get_checkout_service,
    get_db,
    get_event_publisher,
    get_order_service,
    get_payment_factory,
)
from app.core.security import CurrentUser, get_current_user, require_admin, create_access_token
from app.services.book_catalog import BookCatalog
from app.services.checkout_service import CheckoutService
from app.services.order_events import OrderEventPublisher
from app.services.order_service import OrderService
from app.services.payment_factory import PaymentGatewayFactory
from fastapi import HTTPException


class TestDependencies:
    """依赖注入测试类"""

    def test_get_db(self):
        """测试数据库会话依赖"""
        with patch('app.core.dependencies.SessionLocal') as mock_session_local:
            db_mock = Mock(spec=Session)
            mock_session_local.return_value = db_mock

            # 获取生成器
            gen = get_db()
            db = next(gen)

            assert db == db_mock
            mock_session_local.assert_called_once()

            # 测试清理
            gen.close()
            db_mock.close.assert_called_once()

    def test_get_payment_factory_cached(self):
        """测试支付网关工厂只构建一次"""
        factory = get_payment_factory()

        assert isinstance(factory, PaymentGatewayFactory)
        assert factory is get_payment_factory()
        assert factory.supported_methods() == ["stripe", "paypal"]

    def test_get_event_publisher(self):
        assert isinstance(get_event_publisher(), OrderEventPublisher)

    def test_get_checkout_service(self):
        """测试结账服务依赖注入"""
        db_mock = Mock(spec=Session)
        factory_mock = Mock(spec=PaymentGatewayFactory)
        publisher_mock = Mock(spec=OrderEventPublisher)

        service = get_checkout_service(db_mock, factory_mock, publisher_mock)

        assert isinstance(service, CheckoutService)
        assert service.db == db_mock
        assert service.gateway_factory == factory_mock
        assert service.event_publisher == publisher_mock

    def test_checkout_service_default_lookup(self):
        """测试默认按图书目录计价"""
        db_mock = Mock(spec=Session)

        service = get_checkout_service(db_mock, Mock(), Mock())

        assert service.item_lookup.__self__.__class__ is BookCatalog

    def test_get_order_service(self):
        """测试订单服务依赖注入"""
        db_mock = Mock(spec=Session)
        publisher_mock = Mock(spec=OrderEventPublisher)

        service = get_order_service(db_mock, publisher_mock)

        assert isinstance(service, OrderService)
        assert service.db == db_mock
        assert service.event_publisher == publisher_mock

    def test_only_provider_functions_exported(self):
        """测试模块只暴露实际被路由使用的依赖提供函数"""
        from app.core import dependencies

        for name in ("DatabaseDep", "CheckoutServiceDep", "OrderServiceDep"):
            assert not hasattr(dependencies, name)


class TestSecurity:
    """鉴权依赖测试类"""

    def test_get_current_user(self):
        """测试从令牌解析用户"""
        token = create_access_token({"sub": "42"})

        user = get_current_user(token)

        assert user == CurrentUser(id=42, is_admin=False)

    def test_get_current_user_from_user_id_claim(self):
        token = create_access_token({"user_id": 5, "is_admin": True})

        user = get_current_user(token)

        assert user.id == 5
        assert user.is_admin is True

    @pytest.mark.parametrize("token", [None, "", "garbage"])
    def test_get_current_user_invalid(self, token):
        """测试缺少或无效令牌"""
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Unauthenticated."

    def test_get_current_user_non_numeric_subject(self):
        token = create_access_token({"sub": "alice"})

        with pytest.raises(HTTPException) as exc_info:
            get_current_user(token)

        assert exc_info.value.status_code == 401

    def test_require_admin(self):
        """测试管理员校验"""
        admin = CurrentUser(id=1, is_admin=True)
        assert require_admin(admin) is admin

        with pytest.raises(HTTPException) as exc_info:
            require_admin(CurrentUser(id=2))
        assert exc_info.value.status_code == 403

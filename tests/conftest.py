"""测试配置和 fixtures"""
import pytest
from decimal import Decimal
from unittest.mock import Mock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  注册所有模型
from app.db.base import Base
from app.core.config import Settings
from app.core.dependencies import get_db, get_event_publisher, get_payment_factory
from app.core.security import create_access_token
from app.main import app as fastapi_app
from app.models.book import Book
from app.services.order_events import OrderEventPublisher
from app.services.payment_factory import PaymentGatewayFactory
from app.services.payment_gateways import GatewayConfig, PaymentGateway, PaymentOutcome


class FakeGateway(PaymentGateway):
    """可控结果的测试网关，记录每次扣款调用"""

    name = "fake"

    def __init__(self, succeed: bool = True, error: str = "Card declined"):
        super().__init__(GatewayConfig(api_key="test_key", endpoint="http://gateway.test", timeout=5))
        self.succeed = succeed
        self.error = error
        self.calls = []

    def _process(self, payer_id, amount):
        self.calls.append((payer_id, amount))
        if not self.succeed:
            return PaymentOutcome.failure(self.name, payer_id, self.error)
        return PaymentOutcome(
            status="success",
            transaction_id=f"fake_{len(self.calls)}",
            amount=amount,
            gateway=self.name,
            user_id=payer_id,
            timestamp="2024-01-01T00:00:00+00:00",
        )


class FakeGatewayFactory:
    """总是返回同一个测试网关"""

    def __init__(self, gateway: PaymentGateway):
        self.gateway = gateway
        self.created = []

    def create(self, payment_method):
        self.created.append(payment_method)
        return self.gateway


@pytest.fixture
def db_engine():
    """创建 SQLite 内存数据库（多线程共享同一连接）"""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    db = SessionLocal()

    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def books(db_session):
    """示例图书：A 15.99，B 24.50，C 9.99"""
    book_a = Book(title="Book 1", author="Author A", isbn="1000000000001", price=Decimal("15.99"))
    book_b = Book(title="Book 2", author="Author B", isbn="1000000000002", price=Decimal("24.50"))
    book_c = Book(title="Book 3", author="Author C", isbn="1000000000003", price=Decimal("9.99"))
    db_session.add_all([book_a, book_b, book_c])
    db_session.commit()
    return {"a": book_a, "b": book_b, "c": book_c}


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def declining_gateway():
    return FakeGateway(succeed=False, error="Card declined")


@pytest.fixture
def mock_publisher():
    """模拟事件发布器"""
    return Mock(spec=OrderEventPublisher)


def _auth_headers(claims: dict) -> dict:
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


@pytest.fixture
def user_headers():
    """用户 1 的认证请求头"""
    return _auth_headers({"sub": "1"})


@pytest.fixture
def other_user_headers():
    return _auth_headers({"sub": "2"})


@pytest.fixture
def admin_headers():
    """管理员认证请求头"""
    return _auth_headers({"sub": "99", "is_admin": True})


@pytest.fixture
def fake_factory(fake_gateway):
    return FakeGatewayFactory(fake_gateway)


@pytest.fixture
def declining_factory(declining_gateway):
    return FakeGatewayFactory(declining_gateway)


@pytest.fixture
def client(db_session, mock_publisher):
    """创建测试客户端：数据库换成 SQLite，事件发布器换成 Mock"""
    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_event_publisher] = lambda: mock_publisher
    fastapi_app.dependency_overrides[get_payment_factory] = lambda: PaymentGatewayFactory.from_settings(Settings())

    try:
        yield TestClient(fastapi_app)
    finally:
        fastapi_app.dependency_overrides.clear()

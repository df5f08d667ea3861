"""支付网关与网关工厂单元测试"""
import threading
import time
import pytest
from decimal import Decimal

from app.core.config import Settings
from app.services.payment_factory import (
    EmptyPaymentMethodError,
    PaymentGatewayFactory,
    PaymentMethodError,
    UnsupportedPaymentMethodError,
)
from app.services.payment_gateways import (
    _executor_for,
    GatewayConfig,
    PaymentGateway,
    PaymentOutcome,
    PayPalPaymentGateway,
    StripePaymentGateway,
)


@pytest.fixture
def factory():
    """按默认配置构建的网关工厂"""
    return PaymentGatewayFactory.from_settings(Settings())


class TestPaymentGatewayFactory:
    """网关工厂测试类"""

    @pytest.mark.parametrize("method, expected", [
        ("stripe", StripePaymentGateway),
        ("paypal", PayPalPaymentGateway),
        ("Stripe", StripePaymentGateway),
        ("  PAYPAL ", PayPalPaymentGateway),
    ])
    def test_create_normalizes_method(self, factory, method, expected):
        """测试支付方式忽略大小写和首尾空白"""
        gateway = factory.create(method)
        assert isinstance(gateway, expected)

    @pytest.mark.parametrize("method", [None, "", "   "])
    def test_create_empty_method(self, factory, method):
        """测试空支付方式"""
        with pytest.raises(EmptyPaymentMethodError) as exc_info:
            factory.create(method)
        assert str(exc_info.value) == "Payment method cannot be empty"

    def test_create_unsupported_method(self, factory):
        """测试不支持的支付方式，错误信息保留原始输入"""
        with pytest.raises(UnsupportedPaymentMethodError) as exc_info:
            factory.create("credit_card")
        assert str(exc_info.value) == "Unsupported payment method: credit_card"
        assert isinstance(exc_info.value, PaymentMethodError)

    def test_create_returns_new_instance(self, factory):
        """测试每次创建都是新实例"""
        assert factory.create("stripe") is not factory.create("stripe")

    def test_create_injects_config(self):
        """测试网关实例拿到各自的配置"""
        settings = Settings(
            STRIPE_API_KEY="sk_live_x",
            PAYPAL_CLIENT_ID="client_x",
            PAYPAL_CLIENT_SECRET="secret_x",
            PAYMENT_GATEWAY_TIMEOUT=5,
        )
        factory = PaymentGatewayFactory.from_settings(settings)

        stripe = factory.create("stripe")
        paypal = factory.create("paypal")

        assert stripe.config.api_key == "sk_live_x"
        assert stripe.config.timeout == 5
        assert paypal.config.api_key == "client_x"
        assert paypal.config.api_secret == "secret_x"

    def test_unconfigured_gateway_is_unsupported(self):
        """测试未配置的网关视为不支持"""
        factory = PaymentGatewayFactory({
            "stripe": GatewayConfig(api_key="k", endpoint="http://stripe.test"),
        })
        assert factory.supported_methods() == ["stripe"]
        with pytest.raises(UnsupportedPaymentMethodError):
            factory.create("paypal")


class TestSimulatedGateways:
    """模拟网关测试类"""

    @pytest.mark.parametrize("method, prefix", [
        ("stripe", "stripe_"),
        ("paypal", "paypal_"),
    ])
    def test_charge_success(self, factory, method, prefix):
        """测试扣款成功返回完整结果"""
        outcome = factory.create(method).charge(7, Decimal("41.97"))

        assert outcome.is_success
        assert outcome.transaction_id.startswith(prefix)
        assert outcome.amount == Decimal("41.97")
        assert outcome.gateway == method
        assert outcome.user_id == 7
        assert outcome.timestamp is not None
        assert outcome.error is None

    def test_transaction_ids_unique(self, factory):
        """测试同一秒内交易号也不重复"""
        gateway = factory.create("stripe")
        ids = {gateway.charge(1, Decimal("1.00")).transaction_id for _ in range(50)}
        assert len(ids) == 50

    def test_charge_negative_amount(self, factory):
        """测试负金额返回失败结果而不是抛异常"""
        outcome = factory.create("paypal").charge(1, Decimal("-1.00"))

        assert outcome.status == "error"
        assert outcome.transaction_id is None
        assert "Invalid charge amount" in outcome.error

    def test_to_payload(self, factory):
        """测试对外返回的结果格式"""
        payload = factory.create("stripe").charge(3, Decimal("9.99")).to_payload()

        assert payload["status"] == "success"
        assert payload["amount"] == 9.99
        assert "error" not in payload


class SlowGateway(PaymentGateway):
    name = "slow"

    def _process(self, payer_id, amount):
        time.sleep(0.5)
        return PaymentOutcome(status="success", transaction_id="slow_1", amount=amount)


class HungGateway(PaymentGateway):
    """一直阻塞到 release 被设置的网关"""
    name = "hung"

    def __init__(self, config, release):
        super().__init__(config)
        self.release = release

    def _process(self, payer_id, amount):
        self.release.wait(5)
        return PaymentOutcome(status="success", transaction_id="hung_1", amount=amount)


class BrokenGateway(PaymentGateway):
    name = "broken"

    def _process(self, payer_id, amount):
        raise ConnectionError("connection reset by peer")


class TestGatewayFailures:
    """网关超时与内部异常测试类"""

    def test_charge_timeout(self):
        """测试超时转换为失败结果"""
        gateway = SlowGateway(GatewayConfig(api_key="k", endpoint="http://slow.test", timeout=0.05))

        outcome = gateway.charge(1, Decimal("10.00"))

        assert outcome.status == "error"
        assert outcome.error == "Payment gateway timed out"
        assert outcome.gateway == "slow"
        assert outcome.transaction_id is None

    def test_charge_internal_exception(self):
        """测试网关内部异常转换为失败结果"""
        gateway = BrokenGateway(GatewayConfig(api_key="k", endpoint="http://broken.test"))

        outcome = gateway.charge(2, Decimal("10.00"))

        assert not outcome.is_success
        assert outcome.error == "connection reset by peer"
        assert outcome.user_id == 2

    def test_failure_payload(self):
        """测试失败结果不包含交易号和金额"""
        payload = PaymentOutcome.failure("stripe", 1, "Card declined").to_payload()

        assert payload["status"] == "error"
        assert payload["error"] == "Card declined"
        assert "transaction_id" not in payload
        assert "amount" not in payload

    def test_hung_gateway_does_not_block_others(self):
        """测试一个网关线程池被卡死的调用占满后，其他网关仍能正常扣款"""
        release = threading.Event()
        hung = HungGateway(GatewayConfig(api_key="k", endpoint="http://hung.test", timeout=0.05), release)
        stripe = StripePaymentGateway(GatewayConfig(api_key="k", endpoint="http://stripe.test", timeout=1.0))

        try:
            for user_id in range(8):
                assert hung.charge(user_id, Decimal("1.00")).error == "Payment gateway timed out"

            outcome = stripe.charge(99, Decimal("9.99"))
        finally:
            release.set()

        assert outcome.is_success
        assert outcome.transaction_id.startswith("stripe_")

    def test_executor_per_gateway(self):
        """测试每个网关使用独立的线程池"""
        assert _executor_for("stripe") is _executor_for("stripe")
        assert _executor_for("stripe") is not _executor_for("paypal")

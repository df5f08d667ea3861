"""支付网关工厂：按支付方式名称创建网关实例"""

from typing import Dict, List, Optional, Type

from app.core.config import Settings
from app.services.payment_gateways import (
    GatewayConfig,
    PaymentGateway,
    PayPalPaymentGateway,
    StripePaymentGateway,
)


class PaymentMethodError(ValueError):
    """支付方式参数错误"""
    pass


class EmptyPaymentMethodError(PaymentMethodError):
    """支付方式为空"""
    pass


class UnsupportedPaymentMethodError(PaymentMethodError):
    """不支持的支付方式"""
    pass


GATEWAY_CLASSES: Dict[str, Type[PaymentGateway]] = {
    StripePaymentGateway.name: StripePaymentGateway,
    PayPalPaymentGateway.name: PayPalPaymentGateway,
}


class PaymentGatewayFactory:
    """只持有不可变配置，每次 create 返回新实例，可并发调用"""

    def __init__(self, configs: Dict[str, GatewayConfig]):
        self._configs = dict(configs)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaymentGatewayFactory":
        timeout = settings.PAYMENT_GATEWAY_TIMEOUT
        return cls({
            "stripe": GatewayConfig(
                api_key=settings.STRIPE_API_KEY,
                endpoint=settings.STRIPE_ENDPOINT,
                timeout=timeout,
            ),
            "paypal": GatewayConfig(
                api_key=settings.PAYPAL_CLIENT_ID,
                api_secret=settings.PAYPAL_CLIENT_SECRET,
                endpoint=settings.PAYPAL_ENDPOINT,
                timeout=timeout,
            ),
        })

    def supported_methods(self) -> List[str]:
        return [name for name in GATEWAY_CLASSES if name in self._configs]

    def create(self, payment_method: Optional[str]) -> PaymentGateway:
        """根据支付方式创建网关

        Raises:
            EmptyPaymentMethodError: 支付方式为空
            UnsupportedPaymentMethodError: 未知支付方式（错误信息保留原始输入）
        """
        if payment_method is None or not payment_method.strip():
            raise EmptyPaymentMethodError("Payment method cannot be empty")

        method = payment_method.strip().lower()
        gateway_class = GATEWAY_CLASSES.get(method)
        config = self._configs.get(method)
        if gateway_class is None or config is None:
            raise UnsupportedPaymentMethodError(f"Unsupported payment method: {payment_method}")

        return gateway_class(config)

"""支付网关实现

所有网关对外只暴露 charge(payer_id, amount) 一个能力，
失败通过 PaymentOutcome(status="error") 返回，而不是抛异常。
"""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Literal, Optional
import logging
import threading
import time
import uuid

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# 每个网关独立的线程池，用于给同步调用加超时；
# 某个网关卡死只会占满它自己的线程池，不影响其他网关
_GATEWAY_POOL_SIZE = 8
_gateway_executors: Dict[str, ThreadPoolExecutor] = {}
_executors_lock = threading.Lock()


def _executor_for(gateway_name: str) -> ThreadPoolExecutor:
    with _executors_lock:
        executor = _gateway_executors.get(gateway_name)
        if executor is None:
            executor = ThreadPoolExecutor(
                max_workers=_GATEWAY_POOL_SIZE,
                thread_name_prefix=f"payment-gateway-{gateway_name}",
            )
            _gateway_executors[gateway_name] = executor
        return executor


@dataclass(frozen=True)
class GatewayConfig:
    """单个网关的启动配置（凭证、地址、超时）"""
    api_key: str
    endpoint: str
    timeout: float = 30.0
    api_secret: Optional[str] = None


class PaymentOutcome(BaseModel):
    """一次扣款尝试的结果（不落库）"""
    status: Literal["success", "error"]
    transaction_id: Optional[str] = None
    amount: Optional[Decimal] = None
    gateway: Optional[str] = None
    user_id: Optional[int] = None
    timestamp: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    @classmethod
    def failure(cls, gateway: str, user_id: int, error: str) -> "PaymentOutcome":
        return cls(
            status="error",
            gateway=gateway,
            user_id=user_id,
            timestamp=_utc_timestamp(),
            error=error,
        )

    def to_payload(self) -> dict:
        """对外返回的字典，金额转为浮点数"""
        payload = self.model_dump(exclude_none=True)
        if "amount" in payload:
            payload["amount"] = float(payload["amount"])
        return payload


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class PaymentGateway(ABC):
    """支付网关基类"""

    name: str = ""

    def __init__(self, config: GatewayConfig):
        self.config = config

    def charge(self, payer_id: int, amount: Decimal) -> PaymentOutcome:
        """向用户扣款，超时或内部异常都转换成 error 结果"""
        future = _executor_for(self.name).submit(self._process, payer_id, amount)
        try:
            return future.result(timeout=self.config.timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.error(f"{self.name} 扣款超时: user_id={payer_id}, amount={amount}, timeout={self.config.timeout}s")
            return PaymentOutcome.failure(self.name, payer_id, "Payment gateway timed out")
        except Exception as e:
            logger.error(f"{self.name} 扣款失败: user_id={payer_id}, amount={amount}, error={str(e)}")
            return PaymentOutcome.failure(self.name, payer_id, str(e) or "Payment processing failed")

    @abstractmethod
    def _process(self, payer_id: int, amount: Decimal) -> PaymentOutcome:
        """具体网关的扣款逻辑"""

    def _transaction_id(self) -> str:
        return f"{self.name}_{uuid.uuid4().hex[:13]}_{int(time.time())}"


class SimulatedPaymentGateway(PaymentGateway):
    """模拟网关：不发起真实网络请求，直接生成交易号"""

    def _process(self, payer_id: int, amount: Decimal) -> PaymentOutcome:
        if amount < 0:
            raise ValueError(f"Invalid charge amount: {amount}")

        transaction_id = self._transaction_id()
        logger.info(f"{self.name} 扣款成功: user_id={payer_id}, amount={amount}, transaction_id={transaction_id}")

        return PaymentOutcome(
            status="success",
            transaction_id=transaction_id,
            amount=amount,
            gateway=self.name,
            user_id=payer_id,
            timestamp=_utc_timestamp(),
        )


class StripePaymentGateway(SimulatedPaymentGateway):
    name = "stripe"


class PayPalPaymentGateway(SimulatedPaymentGateway):
    name = "paypal"


# 导出
__all__ = [
    "GatewayConfig",
    "PaymentOutcome",
    "PaymentGateway",
    "StripePaymentGateway",
    "PayPalPaymentGateway",
]

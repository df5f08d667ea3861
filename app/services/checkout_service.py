"""结账服务：计价 -> 扣款 -> 原子落库 -> 发布事件"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from sqlalchemy.orm import Session

from app.models.order import Order, OrderStatus
from app.models.order_item import OrderItem
from app.services.book_catalog import BookCatalog
from app.services.order_events import OrderEventPublisher
from app.services.order_pricing import (
    CartLine,
    ItemLookup,
    PricedOrder,
    price_order,
)
from app.services.payment_factory import PaymentGatewayFactory, PaymentMethodError
from app.services.payment_gateways import PaymentGateway, PaymentOutcome

logger = logging.getLogger(__name__)

EMPTY_CART_MESSAGE = "At least one item is required."
QUANTITY_MESSAGE = "Quantity must be at least 1."
UNKNOWN_BOOK_MESSAGE = "The selected book does not exist."


class CheckoutError(Exception):
    """结账异常基类"""
    pass


class CheckoutValidationError(CheckoutError):
    """请求数据不合法，errors 为 字段路径 -> 错误信息列表"""

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        super().__init__("The given data was invalid.")


class PaymentFailedError(CheckoutError):
    """网关返回非 success 结果"""

    def __init__(self, outcome: PaymentOutcome):
        self.outcome = outcome
        super().__init__(outcome.error or "Payment failed")


class OrderPersistenceError(CheckoutError):
    """扣款成功但订单写入失败"""

    def __init__(self, outcome: PaymentOutcome):
        self.outcome = outcome
        super().__init__(f"Order could not be recorded for transaction {outcome.transaction_id}")


@dataclass
class CheckoutResult:
    order: Order
    payment: PaymentOutcome


class CheckoutService:
    """结账核心服务类"""

    def __init__(
        self,
        db: Session,
        gateway_factory: PaymentGatewayFactory,
        event_publisher: Optional[OrderEventPublisher] = None,
        item_lookup: Optional[ItemLookup] = None,
    ):
        self.db = db
        self.gateway_factory = gateway_factory
        self.event_publisher = event_publisher
        self.item_lookup = item_lookup or BookCatalog(db).get_item

    def place_order(self, user_id: int, lines: Sequence[CartLine], payment_method: Optional[str]) -> CheckoutResult:
        """下单

        顺序固定：先计价，再扣款，扣款成功后才写订单。
        网关在一次结账中最多调用一次，失败不自动重试。

        Raises:
            CheckoutValidationError: 购物车或支付方式不合法（未扣款）
            PaymentFailedError: 网关拒绝（未落库）
            OrderPersistenceError: 扣款成功但落库失败（已回滚）
        """
        priced, gateway = self._validate(lines, payment_method)

        # 计价查询的只读事务在扣款前结束，网关调用期间不占用数据库连接
        self.db.rollback()

        outcome = gateway.charge(user_id, priced.total)
        if not outcome.is_success:
            logger.warning(f"支付失败: user_id={user_id}, gateway={gateway.name}, amount={priced.total}, error={outcome.error}")
            raise PaymentFailedError(outcome)

        order = self._commit(user_id, gateway.name, priced, outcome)
        logger.info(f"下单成功: order_id={order.id}, user_id={user_id}, total={order.total_amount}, transaction_id={order.transaction_id}")

        self._notify(order)
        return CheckoutResult(order=order, payment=outcome)

    def _validate(self, lines: Sequence[CartLine], payment_method: Optional[str]) -> Tuple[PricedOrder, PaymentGateway]:
        """校验购物车和支付方式，所有字段的错误一起报告"""
        errors: Dict[str, List[str]] = {}

        if not lines:
            errors["items"] = [EMPTY_CART_MESSAGE]

        catalog = {}
        for index, line in enumerate(lines):
            if not isinstance(line.quantity, int) or line.quantity < 1:
                errors[f"items.{index}.quantity"] = [QUANTITY_MESSAGE]
            if line.book_id not in catalog:
                catalog[line.book_id] = self.item_lookup(line.book_id)
            if catalog[line.book_id] is None:
                errors[f"items.{index}.book_id"] = [UNKNOWN_BOOK_MESSAGE]

        gateway = None
        try:
            gateway = self.gateway_factory.create(payment_method)
        except PaymentMethodError as e:
            errors["payment_method"] = [str(e)]

        if errors:
            raise CheckoutValidationError(errors)

        return price_order(lines, catalog.get), gateway

    def _commit(self, user_id: int, gateway_name: str, priced: PricedOrder, outcome: PaymentOutcome) -> Order:
        """订单与明细在同一个事务中写入，任何失败整体回滚"""
        order = Order(
            user_id=user_id,
            total_amount=priced.total,
            payment_method=gateway_name,
            status=OrderStatus.PAID,
            transaction_id=outcome.transaction_id,
        )
        order.items = [
            OrderItem(
                book_id=line.book_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_price=line.total_price,
            )
            for line in priced.lines
        ]

        try:
            self.db.add(order)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.critical(
                f"扣款成功但订单写入失败，需要人工对账: user_id={user_id}, "
                f"gateway={gateway_name}, transaction_id={outcome.transaction_id}, "
                f"amount={priced.total}, error={str(e)}"
            )
            raise OrderPersistenceError(outcome) from e

        return order

    def _notify(self, order: Order) -> None:
        """提交后发布事件，失败只记日志，不影响已提交的订单"""
        if self.event_publisher is None:
            return
        try:
            self.event_publisher.publish_order_placed(order)
        except Exception as e:
            logger.error(f"订单事件发布失败: order_id={order.id}, error={str(e)}", exc_info=True)

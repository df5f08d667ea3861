"""订单查询与后台状态管理"""

from decimal import Decimal
from typing import List, Optional, Tuple
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.order import Order, OrderStatus
from app.services.order_events import OrderEventPublisher

logger = logging.getLogger(__name__)


class OrderService:
    """订单查询服务类"""

    def __init__(self, db: Session, event_publisher: Optional[OrderEventPublisher] = None):
        self.db = db
        self.event_publisher = event_publisher

    def list_orders(
        self,
        page: int = 1,
        per_page: int = 10,
        user_id: Optional[int] = None,
        status: Optional[OrderStatus] = None,
    ) -> Tuple[List[Order], int]:
        """分页查询订单（按创建时间倒序），返回 (订单列表, 总数)"""
        conditions = []
        if user_id is not None:
            conditions.append(Order.user_id == user_id)
        if status is not None:
            conditions.append(Order.status == status)

        total = self.db.execute(
            select(func.count(Order.id)).where(*conditions)
        ).scalar_one()

        orders = self.db.execute(
            select(Order)
            .where(*conditions)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        ).scalars().all()

        return list(orders), total

    def get_order(self, order_id: int, user_id: Optional[int] = None) -> Optional[Order]:
        """查询单个订单；传入 user_id 时只返回该用户自己的订单"""
        stmt = select(Order).where(Order.id == order_id)
        if user_id is not None:
            stmt = stmt.where(Order.user_id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def update_status(self, order_id: int, new_status: OrderStatus) -> Optional[Order]:
        """后台修改订单状态，提交后发布状态变更事件"""
        order = self.get_order(order_id)
        if order is None:
            return None

        old_status = order.status
        try:
            order.status = new_status
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"订单状态更新失败: order_id={order_id}, error={str(e)}")
            raise

        logger.info(f"订单状态已更新: order_id={order_id}, {old_status.value} -> {new_status.value}")

        if self.event_publisher is not None and old_status != new_status:
            try:
                self.event_publisher.publish_order_status_changed(order, old_status, new_status)
            except Exception as e:
                logger.error(f"状态变更事件发布失败: order_id={order_id}, error={str(e)}", exc_info=True)

        return order

    def stats_summary(self) -> dict:
        """后台订单统计"""
        counts = dict(
            self.db.execute(
                select(Order.status, func.count(Order.id)).group_by(Order.status)
            ).all()
        )
        total_orders = sum(counts.values())

        total_revenue = self.db.execute(
            select(func.coalesce(func.sum(Order.total_amount), 0))
            .where(Order.status != OrderStatus.CANCELLED)
        ).scalar_one()
        total_revenue = Decimal(str(total_revenue)).quantize(Decimal("0.01"))

        average = total_revenue / total_orders if total_orders else Decimal("0")

        return {
            "total_orders": total_orders,
            "total_revenue": float(total_revenue),
            "pending_orders": counts.get(OrderStatus.PENDING, 0),
            "shipped_orders": counts.get(OrderStatus.SHIPPED, 0),
            "delivered_orders": counts.get(OrderStatus.DELIVERED, 0),
            "cancelled_orders": counts.get(OrderStatus.CANCELLED, 0),
            "average_order_value": float(average.quantize(Decimal("0.01"))),
        }

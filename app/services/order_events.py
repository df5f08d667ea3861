"""订单事件发布（投递到 Celery，由 worker 广播）"""

from datetime import datetime, timezone
import logging

from app.models.order import Order
from tasks.notification_tasks import broadcast_order_event

logger = logging.getLogger(__name__)

ORDER_PLACED = "order.placed"
ORDER_STATUS_CHANGED = "order.status_changed"

STATUS_MESSAGES = {
    "paid": "Your order has been paid successfully!",
    "shipped": "Your order has been shipped!",
    "delivered": "Your order has been delivered!",
    "cancelled": "Your order has been cancelled.",
}


def user_channel(user_id: int) -> str:
    return f"user.{user_id}"


class OrderEventPublisher:
    """订单事件发布器

    只负责把事件投递到任务队列，投递失败时抛出异常，
    由调用方决定是否吞掉。
    """

    def publish_order_placed(self, order: Order) -> str:
        payload = {
            "type": "order_placed",
            "message": f"Your order #{order.id} has been placed successfully!",
            "order_id": order.id,
            "user_id": order.user_id,
            "total_amount": str(order.total_amount),
            "status": _status_value(order.status),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return self._publish(order.user_id, ORDER_PLACED, payload)

    def publish_order_status_changed(self, order: Order, old_status, new_status) -> str:
        new_value = _status_value(new_status)
        payload = {
            "type": "order_status_changed",
            "message": STATUS_MESSAGES.get(new_value, "Your order status has been updated."),
            "order_id": order.id,
            "user_id": order.user_id,
            "old_status": _status_value(old_status),
            "new_status": new_value,
            "total_amount": str(order.total_amount),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return self._publish(order.user_id, ORDER_STATUS_CHANGED, payload)

    def _publish(self, user_id: int, event_name: str, payload: dict) -> str:
        task = broadcast_order_event.delay(user_channel(user_id), event_name, payload)
        logger.info(f"已提交事件任务: {event_name}, order_id={payload['order_id']}, task_id={task.id}")
        return task.id


def _status_value(status) -> str:
    return getattr(status, "value", status)

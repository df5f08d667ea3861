"""订单通知相关的 Celery 任务"""

import json
import logging

from celery_app import app
from app.core.redis import sync_redis

logger = logging.getLogger(__name__)


@app.task(name='tasks.notification.broadcast_order_event')
def broadcast_order_event(channel: str, event_name: str, payload: dict):
    """把订单事件广播到用户的 Redis 频道

    Args:
        channel: 频道名，例如 user.1
        event_name: 事件名，例如 order.placed
        payload: 事件数据

    Returns:
        收到消息的订阅者数量
    """
    message = json.dumps({"event": event_name, "data": payload})
    try:
        receivers = sync_redis.publish(channel, message)
        logger.info(f"事件已广播: {event_name} -> {channel}, 订阅者 {receivers} 个")
        return receivers
    except Exception as e:
        logger.error(f"事件广播失败: {event_name} -> {channel}, error: {str(e)}")
        raise


# 导出任务
__all__ = [
    'broadcast_order_event',
]

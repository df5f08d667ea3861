"""Redis 客户端配置模块"""

from redis import Redis
from redis.asyncio import Redis as AsyncRedis

from app.core.config import settings

# 统一的 Redis 配置
REDIS_URL = f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"

# 同步客户端供 Celery worker 广播事件，异步客户端供启动检查
async_redis = AsyncRedis.from_url(REDIS_URL, decode_responses=True)
sync_redis = Redis.from_url(REDIS_URL, decode_responses=True)

# 导出
__all__ = [
    "async_redis",
    "sync_redis",
    "REDIS_URL"
]

import os
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # 数据库配置
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "123456")
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "bookstore")

    # Redis 配置
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))

    # JWT 鉴权配置（令牌由认证服务签发，这里只负责校验）
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

    # 支付网关配置（模拟网关，凭证在启动时注入各网关实例）
    STRIPE_API_KEY: str = os.getenv("STRIPE_API_KEY", "sk_test_simulated")
    STRIPE_ENDPOINT: str = os.getenv("STRIPE_ENDPOINT", "https://api.stripe.com/v1")
    PAYPAL_CLIENT_ID: str = os.getenv("PAYPAL_CLIENT_ID", "paypal_client_simulated")
    PAYPAL_CLIENT_SECRET: str = os.getenv("PAYPAL_CLIENT_SECRET", "paypal_secret_simulated")
    PAYPAL_ENDPOINT: str = os.getenv("PAYPAL_ENDPOINT", "https://api-m.sandbox.paypal.com")
    PAYMENT_GATEWAY_TIMEOUT: float = float(os.getenv("PAYMENT_GATEWAY_TIMEOUT", "30"))

    # 分页配置
    ORDERS_PER_PAGE: int = int(os.getenv("ORDERS_PER_PAGE", "10"))
    ADMIN_ORDERS_PER_PAGE: int = int(os.getenv("ADMIN_ORDERS_PER_PAGE", "15"))

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+psycopg://"
            f"{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )

settings = Settings()

from .base import Base
from .session import engine


def init_db():
    # 注册所有模型到 Base.metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)

# Export for convenience
__all__ = ["Base", "engine", "init_db"]

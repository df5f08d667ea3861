
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from typing import Annotated, Optional
from datetime import datetime

# 金额：内部用 Decimal，JSON 输出为数字
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class BaseSchema(BaseModel):
    """基础响应字段"""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)  # 支持从 ORM 对象直接生成 Schema


class BaseResponse(BaseModel):
    """基础响应模型"""
    success: bool = Field(
        ...,
        description="请求是否成功"
    )
    message: Optional[str] = Field(
        None,
        description="响应消息"
    )

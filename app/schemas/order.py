"""订单API的Pydantic模型和响应格式"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from app.models.order import OrderStatus
from app.schemas.base import BaseResponse, BaseSchema, Money


# ==================== 请求模型 ====================

class CartItemRequest(BaseModel):
    """购物车行（数量和图书是否存在由结账服务统一校验）"""
    book_id: int = Field(
        ...,
        description="图书ID",
        examples=[1]
    )
    quantity: int = Field(
        ...,
        description="购买数量，至少为 1",
        examples=[2]
    )


class CreateOrderRequest(BaseModel):
    """创建订单请求"""
    items: List[CartItemRequest] = Field(
        default_factory=list,
        description="购物车行列表，至少一行"
    )
    payment_method: Optional[str] = Field(
        None,
        description="支付方式：stripe 或 paypal",
        examples=["stripe"]
    )


class OrderStatusUpdateRequest(BaseModel):
    """后台修改订单状态请求"""
    status: OrderStatus = Field(
        ...,
        description="新的订单状态",
        examples=["shipped"]
    )


# ==================== 响应模型 ====================

class OrderItemSchema(BaseSchema):
    id: int
    order_id: int
    book_id: int
    quantity: int
    unit_price: Money
    total_price: Money


class OrderSchema(BaseSchema):
    id: int
    user_id: int
    total_amount: Money
    payment_method: str
    status: OrderStatus
    transaction_id: Optional[str] = None
    items: List[OrderItemSchema] = []


class CreateOrderResponse(BaseResponse):
    """创建订单响应"""
    order: OrderSchema
    payment: Dict[str, Any] = Field(
        ...,
        description="支付网关返回结果"
    )


class OrderDetailResponse(BaseResponse):
    """订单详情响应"""
    data: OrderSchema


class OrderListResponse(BaseResponse):
    """订单分页响应"""
    data: List[OrderSchema]
    total: int = Field(..., ge=0, description="订单总数")
    page: int = Field(..., ge=1, description="当前页")
    per_page: int = Field(..., ge=1, description="每页数量")
    last_page: int = Field(..., ge=1, description="最后一页")


class OrderStatsResponse(BaseModel):
    """后台订单统计响应"""
    total_orders: int
    total_revenue: float
    pending_orders: int
    shipped_orders: int
    delivered_orders: int
    cancelled_orders: int
    average_order_value: float

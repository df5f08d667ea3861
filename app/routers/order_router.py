"""订单 API 路由（结账下单与订单查询）"""

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
import logging
import math

from app.core.config import settings
from app.core.dependencies import get_checkout_service, get_order_service
from app.core.security import CurrentUser, get_current_user
from app.services.checkout_service import CheckoutError, CheckoutService
from app.services.order_pricing import CartLine
from app.services.order_service import OrderService
from app.schemas.order import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderSchema,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/orders",
    tags=["订单"],
    responses={
        401: {"description": "未认证"},
        404: {"description": "订单不存在"},
        422: {"description": "请求验证失败或支付失败"},
        500: {"description": "服务器内部错误"}
    }
)


@router.post(
    "",
    response_model=CreateOrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="结账下单",
    description="""根据购物车计价，调用所选支付网关扣款，扣款成功后原子写入订单。

    **流程：**
    - 校验购物车并按当前图书价格计价
    - 通过支付网关工厂选择 stripe / paypal
    - 扣款成功后在同一事务中写入订单和明细
    - 提交后异步广播 order.placed 事件

    **失败：**
    - 参数不合法：422，errors 字段标明出错字段
    - 支付失败：422，payment_error 为网关原始结果，不会创建订单
    """,
    responses={
        201: {
            "description": "下单成功",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "Order created successfully.",
                        "order": {
                            "id": 1,
                            "user_id": 1,
                            "total_amount": 41.97,
                            "payment_method": "stripe",
                            "status": "paid",
                            "transaction_id": "stripe_65f1c2a9b3d4e_1718000000",
                            "items": [
                                {"id": 1, "order_id": 1, "book_id": 1, "quantity": 2, "unit_price": 15.99, "total_price": 31.98},
                                {"id": 2, "order_id": 1, "book_id": 3, "quantity": 1, "unit_price": 9.99, "total_price": 9.99}
                            ]
                        },
                        "payment": {
                            "status": "success",
                            "transaction_id": "stripe_65f1c2a9b3d4e_1718000000",
                            "amount": 41.97,
                            "gateway": "stripe",
                            "user_id": 1,
                            "timestamp": "2024-06-10T08:00:00+00:00"
                        }
                    }
                }
            }
        },
        422: {
            "description": "参数不合法或支付失败",
            "content": {
                "application/json": {
                    "examples": {
                        "validation_error": {
                            "summary": "图书不存在",
                            "value": {
                                "success": False,
                                "message": "The given data was invalid.",
                                "errors": {"items.0.book_id": ["The selected book does not exist."]}
                            }
                        },
                        "payment_failed": {
                            "summary": "支付失败",
                            "value": {
                                "success": False,
                                "message": "Payment failed. Please try again.",
                                "payment_error": {"status": "error", "error": "Payment processing failed"}
                            }
                        }
                    }
                }
            }
        }
    }
)
def create_order(
    request: CreateOrderRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service)
):
    """结账下单（核心接口）

    结账异常由全局异常处理器转换为对应的响应。
    """
    lines = [CartLine(book_id=item.book_id, quantity=item.quantity) for item in request.items]
    try:
        result = service.place_order(current_user.id, lines, request.payment_method)
    except (CheckoutError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"下单失败: user_id={current_user.id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Order could not be placed. Please try again later.")

    return CreateOrderResponse(
        success=True,
        message="Order created successfully.",
        order=OrderSchema.model_validate(result.order),
        payment=result.payment.to_payload(),
    )


@router.get(
    "",
    response_model=OrderListResponse,
    summary="我的订单列表",
)
def list_my_orders(
    page: int = Query(1, ge=1, description="页码"),
    current_user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """分页查询当前用户的订单（按创建时间倒序）"""
    per_page = settings.ORDERS_PER_PAGE
    try:
        orders, total = service.list_orders(page=page, per_page=per_page, user_id=current_user.id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"查询订单列表失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

    return OrderListResponse(
        success=True,
        data=[OrderSchema.model_validate(o) for o in orders],
        total=total,
        page=page,
        per_page=per_page,
        last_page=max(1, math.ceil(total / per_page)),
    )


@router.get(
    "/{order_id}",
    response_model=OrderDetailResponse,
    summary="我的订单详情",
)
def get_my_order(
    order_id: int = Path(..., gt=0, description="订单ID", examples=[1]),
    current_user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """查询当前用户的单个订单，别人的订单同样返回 404"""
    order = service.get_order(order_id, user_id=current_user.id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found.")
    return OrderDetailResponse(success=True, data=OrderSchema.model_validate(order))

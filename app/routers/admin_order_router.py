"""后台订单管理 API 路由（仅管理员）"""

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query
from typing import Optional
import logging
import math

from app.core.config import settings
from app.core.dependencies import get_order_service
from app.core.security import CurrentUser, require_admin
from app.models.order import OrderStatus
from app.services.order_service import OrderService
from app.schemas.order import (
    OrderDetailResponse,
    OrderListResponse,
    OrderSchema,
    OrderStatsResponse,
    OrderStatusUpdateRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin/orders",
    tags=["后台订单管理"],
    responses={
        401: {"description": "未认证"},
        403: {"description": "需要管理员权限"},
        404: {"description": "订单不存在"},
        500: {"description": "服务器内部错误"}
    }
)


@router.get("/stats/summary", response_model=OrderStatsResponse, summary="订单统计")
def order_stats(
    admin: CurrentUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """后台首页订单统计（收入不含已取消订单）"""
    try:
        return service.stats_summary()
    except Exception as e:
        logger.error(f"订单统计失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=OrderListResponse, summary="全部订单")
def list_orders(
    page: int = Query(1, ge=1, description="页码"),
    per_page: Optional[int] = Query(None, ge=1, le=100, description="每页数量"),
    status: Optional[OrderStatus] = Query(None, description="按状态过滤"),
    admin: CurrentUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """分页查询所有订单，可按状态过滤"""
    per_page = per_page or settings.ADMIN_ORDERS_PER_PAGE
    try:
        orders, total = service.list_orders(page=page, per_page=per_page, status=status)
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


@router.get("/{order_id}", response_model=OrderDetailResponse, summary="订单详情")
def get_order(
    order_id: int = Path(..., gt=0, description="订单ID"),
    admin: CurrentUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    order = service.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found.")
    return OrderDetailResponse(success=True, data=OrderSchema.model_validate(order))


@router.put("/{order_id}", response_model=OrderDetailResponse, summary="修改订单状态")
def update_order_status(
    order_id: int = Path(..., gt=0, description="订单ID"),
    request: OrderStatusUpdateRequest = Body(...),
    admin: CurrentUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """修改订单状态，成功后广播 order.status_changed 事件"""
    try:
        order = service.update_status(order_id, request.status)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"修改订单状态失败: order_id={order_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

    if order is None:
        raise HTTPException(status_code=404, detail="Order not found.")

    return OrderDetailResponse(
        success=True,
        message="Order status updated successfully",
        data=OrderSchema.model_validate(order),
    )

import enum

from sqlalchemy import (
    Column,
    BigInteger,
    Integer,
    String,
    Numeric,
    TIMESTAMP,
    Enum,
    CheckConstraint,
    Index,
    func,
)
from sqlalchemy.orm import relationship
from app.db.base import Base, utcnow



# 1️ 订单状态枚举

class OrderStatus(str, enum.Enum):
    PENDING = "pending"        # 待支付
    PAID = "paid"              # 已支付（结账成功后的状态）
    SHIPPED = "shipped"        # 已发货
    DELIVERED = "delivered"    # 已签收
    CANCELLED = "cancelled"    # 已取消



# 2️ 订单表

class Order(Base):
    __tablename__ = "orders"

    id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    user_id = Column(
        BigInteger,
        nullable=False,
        index=True,
        comment="下单用户ID",
    )

    total_amount = Column(
        Numeric(10, 2),
        nullable=False,
        comment="订单总金额，等于所有明细 total_price 之和",
    )

    payment_method = Column(
        String(32),
        nullable=False,
        comment="支付方式：stripe / paypal",
    )

    status = Column(
        Enum(
            OrderStatus,
            name="order_status_type",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        server_default=OrderStatus.PENDING.value,
        comment="订单状态",
    )

    transaction_id = Column(
        String(128),
        nullable=True,
        unique=True,
        comment="支付网关返回的交易号",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # 明细随订单一起删除
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.id",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "total_amount >= 0",
            name="ck_order_total_non_negative",
        ),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, user_id={self.user_id}, total_amount={self.total_amount}, status='{self.status}')>"



# 3️ 高频查询优化索引

Index(
    "idx_orders_user_created_desc",
    Order.user_id,
    Order.created_at.desc(),
)

from sqlalchemy import (
    Column,
    BigInteger,
    Integer,
    Numeric,
    ForeignKey,
    CheckConstraint,
    TIMESTAMP,
    func,
)
from sqlalchemy.orm import relationship
from app.db.base import Base, utcnow


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    order_id = Column(
        BigInteger,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="订单ID",
    )

    book_id = Column(
        BigInteger,
        ForeignKey("books.id"),
        nullable=False,
        index=True,
        comment="图书ID",
    )

    quantity = Column(
        Integer,
        nullable=False,
        comment="购买数量",
    )

    # 下单时的价格快照，之后不再回读图书价格
    unit_price = Column(
        Numeric(10, 2),
        nullable=False,
        comment="成交单价",
    )

    total_price = Column(
        Numeric(10, 2),
        nullable=False,
        comment="明细小计 = unit_price * quantity",
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

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint(
            "quantity > 0",
            name="ck_order_item_quantity_positive",
        ),
    )

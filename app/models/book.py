from sqlalchemy import (
    Column,
    BigInteger,
    Integer,
    String,
    Numeric,
    TIMESTAMP,
    CheckConstraint,
    Index,
    func,
)
from app.db.base import Base


class Book(Base):
    __tablename__ = "books"

    id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    title = Column(
        String(255),
        nullable=False,
        comment="书名",
    )

    author = Column(
        String(255),
        nullable=False,
        comment="作者",
    )

    isbn = Column(
        String(20),
        nullable=True,
        unique=True,
        comment="ISBN",
    )

    published_year = Column(
        Integer,
        nullable=True,
        comment="出版年份",
    )

    price = Column(
        Numeric(10, 2),
        nullable=False,
        comment="当前售价",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
        onupdate=func.now(),
    )

    __table_args__ = (
        CheckConstraint(
            "price >= 0",
            name="ck_book_price_non_negative",
        ),
    )


Index(
    "idx_books_title",
    Book.title,
)

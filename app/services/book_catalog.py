"""图书目录查询（结账只读取价格）"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.book import Book


class BookCatalog:

    def __init__(self, db: Session):
        self.db = db

    def get_item(self, book_id: int) -> Optional[Book]:
        """按ID查询图书，不存在返回 None"""
        return self.db.execute(
            select(Book).where(Book.id == book_id)
        ).scalar_one_or_none()

"""图书目录初始化脚本（本地 / 测试环境）"""

import argparse
import logging
from decimal import Decimal

from sqlalchemy import select

from app.db import init_db
from app.db.session import SessionLocal
from app.models.book import Book

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SAMPLE_BOOKS = [
    {"title": "The Great Gatsby", "author": "F. Scott Fitzgerald", "isbn": "9780743273565", "published_year": 1925, "price": Decimal("15.99")},
    {"title": "To Kill a Mockingbird", "author": "Harper Lee", "isbn": "9780061120084", "published_year": 1960, "price": Decimal("24.50")},
    {"title": "1984", "author": "George Orwell", "isbn": "9780451524935", "published_year": 1949, "price": Decimal("9.99")},
    {"title": "Pride and Prejudice", "author": "Jane Austen", "isbn": "9780141439518", "published_year": 1813, "price": Decimal("12.75")},
    {"title": "The Catcher in the Rye", "author": "J.D. Salinger", "isbn": "9780316769488", "published_year": 1951, "price": Decimal("18.00")},
]


def seed_books(session, books=SAMPLE_BOOKS, dry_run: bool = False) -> int:
    """写入尚不存在的示例图书（按 ISBN 判重），返回新增数量"""
    existing = set(session.execute(select(Book.isbn)).scalars().all())
    missing = [b for b in books if b["isbn"] not in existing]

    if dry_run:
        logger.info(f"试运行模式：有 {len(missing)} 本图书待写入")
        return len(missing)

    try:
        for data in missing:
            session.add(Book(**data))
        session.commit()
    except Exception as e:
        logger.error(f"图书写入失败: {str(e)}")
        session.rollback()
        raise

    logger.info(f"写入完成：新增 {len(missing)} 本图书")
    return len(missing)


def main():
    """主函数"""
    parser = argparse.ArgumentParser(description='图书目录初始化工具')
    parser.add_argument(
        '--create-tables',
        action='store_true',
        help='写入前先创建数据表'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='试运行模式，只统计不写入'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='详细输出模式'
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.create_tables:
        init_db()

    db = SessionLocal()
    try:
        result = seed_books(db, dry_run=args.dry_run)
        if args.dry_run:
            print(f"📊 试运行结果：{result} 本图书待写入")
        else:
            print(f"✅ 写入完成：新增 {result} 本图书")
    except Exception as e:
        print(f"❌ 执行失败: {str(e)}")
        return 1
    finally:
        db.close()

    return 0

if __name__ == "__main__":
    exit(main())

"""订单计价"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, NamedTuple, Optional, Protocol, Sequence

CENT = Decimal("0.01")


class CartLine(NamedTuple):
    """购物车行：(图书ID, 数量)"""
    book_id: int
    quantity: int


class PricedItem(Protocol):
    id: int
    price: Decimal


ItemLookup = Callable[[int], Optional[PricedItem]]


class ItemNotFoundError(LookupError):
    """购物车行引用了不存在的图书"""

    def __init__(self, index: int, book_id: int):
        self.index = index
        self.book_id = book_id
        super().__init__(f"Book {book_id} not found")


@dataclass(frozen=True)
class PricedLine:
    book_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal


@dataclass(frozen=True)
class PricedOrder:
    lines: List[PricedLine] = field(default_factory=list)
    total: Decimal = Decimal("0.00")


def to_money(value) -> Decimal:
    """转换为两位小数的金额，避免二进制浮点误差"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def price_order(lines: Sequence[CartLine], lookup: ItemLookup) -> PricedOrder:
    """计算每行小计与订单总额

    保持调用方的行顺序；任一图书不存在时立即抛出 ItemNotFoundError，
    不返回部分结果。空输入返回零总额。
    """
    priced: List[PricedLine] = []
    total = Decimal("0.00")

    for index, line in enumerate(lines):
        item = lookup(line.book_id)
        if item is None:
            raise ItemNotFoundError(index, line.book_id)

        unit_price = to_money(item.price)
        line_total = to_money(unit_price * line.quantity)
        priced.append(PricedLine(
            book_id=item.id,
            quantity=line.quantity,
            unit_price=unit_price,
            total_price=line_total,
        ))
        total += line_total

    return PricedOrder(lines=priced, total=to_money(total))

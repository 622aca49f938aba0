"""價格變動計算"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class PriceChange:
    """兩次價格之間的變動"""
    old_price: float
    new_price: float
    change: float
    percent: Optional[float]

    @property
    def is_decrease(self) -> bool:
        return self.change < 0


def classify_change(old_price: float, new_price: float) -> PriceChange:
    """
    計算價格變動

    Args:
        old_price: 原價格
        new_price: 新價格

    Returns:
        PriceChange，原價格為 0 時 percent 為 None
    """
    change = new_price - old_price
    percent = (change / old_price) * 100 if old_price else None
    return PriceChange(
        old_price=old_price,
        new_price=new_price,
        change=change,
        percent=percent,
    )

"""
Storage service for tracked items.

The whole item list lives in a single pretty-printed JSON file that is read
once at the start of a run and written back once at the end.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.config import DEFAULT_ITEMS_PATH

logger = logging.getLogger(__name__)

# 紀錄中固定的欄位（其他欄位原樣保留）
KNOWN_FIELDS = ("name", "url", "email", "currentPrice", "lastChecked", "priceHistory")
REQUIRED_FIELDS = ("name", "url", "email")
SAMPLE_FIELDS = ("price", "date")


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """
    產生儲存用的時間字串

    以 UTC 毫秒精度、"Z" 結尾表示，與既有紀錄的格式一致，
    同一份 priceHistory 內的字串排序即為時間順序。
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.isoformat(timespec="milliseconds") + "Z"


@dataclass
class PriceSample:
    """單筆價格紀錄"""
    price: float
    date: str
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceSample":
        """
        從 JSON 紀錄建立 PriceSample

        Raises:
            ValueError: 紀錄不是物件或缺少 price/date 時
        """
        if not isinstance(data, dict):
            raise ValueError(f"Price sample must be an object, got {type(data).__name__}")
        missing = [key for key in SAMPLE_FIELDS if key not in data]
        if missing:
            raise ValueError(f"Price sample is missing fields: {missing}")
        return cls(
            price=data["price"],
            date=data["date"],
            extra={k: v for k, v in data.items() if k not in SAMPLE_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"price": self.price, "date": self.date}
        data.update(self.extra)
        return data


@dataclass
class TrackedItem:
    """追蹤中的商品"""
    name: str
    url: str
    email: str
    current_price: Optional[float] = None
    last_checked: Optional[str] = None
    price_history: List[PriceSample] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def tracking_since(self) -> Optional[str]:
        """第一筆價格紀錄的日期"""
        if self.price_history:
            return self.price_history[0].date
        return None

    def record_price(self, price: float, checked_at: str) -> None:
        """先追加歷史紀錄，再覆寫目前價格"""
        self.price_history.append(PriceSample(price=price, date=checked_at))
        self.current_price = price
        self.last_checked = checked_at

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackedItem":
        """
        從 JSON 紀錄建立 TrackedItem

        Raises:
            ValueError: 紀錄不是物件或缺少必要欄位時
        """
        if not isinstance(data, dict):
            raise ValueError(f"Tracked item must be an object, got {type(data).__name__}")
        missing = [key for key in REQUIRED_FIELDS if key not in data]
        if missing:
            raise ValueError(f"Tracked item is missing fields: {missing}")

        history = [
            PriceSample.from_dict(sample)
            for sample in data.get("priceHistory") or []
        ]
        return cls(
            name=data["name"],
            url=data["url"],
            email=data["email"],
            current_price=data.get("currentPrice"),
            last_checked=data.get("lastChecked"),
            price_history=history,
            extra={k: v for k, v in data.items() if k not in KNOWN_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "url": self.url,
            "email": self.email,
            "currentPrice": self.current_price,
            "lastChecked": self.last_checked,
            "priceHistory": [sample.to_dict() for sample in self.price_history],
        }
        data.update(self.extra)
        return data


class ItemStorage:
    """追蹤清單儲存服務"""

    def __init__(self, items_path: str = DEFAULT_ITEMS_PATH):
        self.items_path = items_path

    def load(self) -> List[TrackedItem]:
        """
        讀取追蹤清單

        檔案不存在或無法解析時回傳空清單（視為沒有追蹤項目）。

        Returns:
            TrackedItem 列表

        Raises:
            ValueError: JSON 可解析但內容不是追蹤紀錄陣列時
        """
        if not os.path.exists(self.items_path):
            logger.info("No items file found at %s", self.items_path)
            return []

        try:
            with open(self.items_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning("Could not read items file %s: %s", self.items_path, e)
            return []

        if not isinstance(data, list):
            raise ValueError(f"Items file {self.items_path} must contain a JSON array")

        return [TrackedItem.from_dict(record) for record in data]

    def save(self, items: List[TrackedItem]) -> None:
        """以目前的記憶體狀態整份覆寫檔案"""
        directory = os.path.dirname(self.items_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(self.items_path, "w", encoding="utf-8") as f:
            json.dump([item.to_dict() for item in items], f, indent=2, ensure_ascii=False)
        logger.debug("Saved %d items to %s", len(items), self.items_path)

    def add_item(
        self,
        name: str,
        url: str,
        email: str,
        price: float,
        now: Optional[datetime] = None,
    ) -> TrackedItem:
        """
        新增追蹤項目並立即存檔

        Args:
            name: 顯示名稱
            url: 商品頁面 URL
            email: 通知收件人
            price: 初始價格，同時作為第一筆價格紀錄
            now: 紀錄時間，預設為當前 UTC 時間

        Returns:
            新增的 TrackedItem
        """
        checked_at = format_timestamp(now)
        items = self.load()
        item = TrackedItem(name=name, url=url, email=email)
        item.record_price(price, checked_at)
        items.append(item)
        self.save(items)
        return item

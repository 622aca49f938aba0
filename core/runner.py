"""
批次執行模組

依序檢查每個追蹤項目的價格，價格變動時寄送通知並更新紀錄，
全部處理完後一次存檔。
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from core.base_scraper import BaseScraper
from core.config import DEFAULT_DELAY_SECONDS
from core.notifier import EmailNotifier, format_usd_price
from core.price_change import classify_change
from core.storage import ItemStorage, TrackedItem, format_timestamp

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """單次批次執行結果"""
    checked: int = 0
    changes_detected: int = 0
    unchanged: int = 0
    failed: int = 0
    notifications_sent: int = 0


class PriceCheckRunner:
    """價格檢查批次"""

    def __init__(
        self,
        storage: ItemStorage,
        scraper: BaseScraper,
        notifier: Optional[EmailNotifier] = None,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        now: Optional[Callable[[], datetime]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            storage: 追蹤清單儲存服務
            scraper: 價格擷取器
            notifier: 通知服務，None 時為測試模式（照常更新紀錄，但不寄信）
            delay_seconds: 每個項目處理後的固定等待秒數
            now: 取得當前時間的函數，預設為 UTC 的 datetime.now
            sleep: 等待函數，預設為 time.sleep
        """
        self.storage = storage
        self.scraper = scraper
        self.notifier = notifier
        self.delay_seconds = delay_seconds
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep

    def run(self) -> RunSummary:
        """執行一次完整批次並存檔"""
        items = self.storage.load()
        print(f"Checking {len(items)} items...")

        summary = RunSummary()
        for item in items:
            self.check_item(item, summary)
            self._sleep(self.delay_seconds)

        self.storage.save(items)
        return summary

    def check_item(self, item: TrackedItem, summary: RunSummary) -> None:
        """檢查單一項目並就地更新"""
        print(f"Checking: {item.name}")
        summary.checked += 1

        new_price = self.scraper.extract_price(item.url)
        if new_price is None:
            logger.warning("Could not fetch price for %s", item.name)
            summary.failed += 1
            return

        checked_at = format_timestamp(self._now())

        if item.current_price is None:
            # 首次取得價格，建立基準
            print(f"Initial price for {item.name}: {format_usd_price(new_price)}")
            item.record_price(new_price, checked_at)
            return

        if new_price == item.current_price:
            print(f"✓ No change for {item.name}: {format_usd_price(new_price)}")
            item.last_checked = checked_at
            summary.unchanged += 1
            return

        change = classify_change(item.current_price, new_price)
        print(
            f"💰 Price change: {item.name}: "
            f"{format_usd_price(change.old_price)} → {format_usd_price(new_price)}"
        )
        summary.changes_detected += 1

        # 通知結果不影響價格更新
        if self.notifier is not None:
            if self.notifier.notify_price_change(item, change):
                summary.notifications_sent += 1
        else:
            logger.info("Dry run: notification for %s skipped", item.name)

        item.record_price(new_price, checked_at)


def describe_items(items: List[TrackedItem]) -> List[str]:
    """產生追蹤清單的顯示文字"""
    lines = []
    for index, item in enumerate(items, start=1):
        price = "-" if item.current_price is None else format_usd_price(item.current_price)
        last_checked = item.last_checked or "never"
        lines.append(
            f"{index}. {item.name} | {price} | last checked: {last_checked} | "
            f"{len(item.price_history)} samples | {item.url}"
        )
    return lines

"""
通知服務模組

透過交易型 Email 服務（MailerSend）寄送價格變動通知。
寄送失敗只記錄，不拋出例外，也不重試。
"""

import html
import logging
from datetime import datetime
from typing import Optional, Tuple

import requests

from core.config import NotifierConfig
from core.price_change import PriceChange
from core.storage import TrackedItem

logger = logging.getLogger(__name__)

MAILERSEND_ENDPOINT = "https://api.mailersend.com/v1/email"


def format_usd_price(price: float) -> str:
    """
    格式化 USD 價格

    Args:
        price: USD 價格數值

    Returns:
        格式化後的價格字串，如 "$19.99"
    """
    return f"${price:.2f}"


def format_tracking_since(date_str: Optional[str]) -> str:
    """將第一筆紀錄的 ISO 時間轉為日期字串"""
    if not date_str:
        return "unknown"
    try:
        # 相容 JavaScript toISOString() 產生的 "Z" 結尾
        return datetime.fromisoformat(date_str.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        return date_str


def compose_price_alert(item: TrackedItem, change: PriceChange) -> Tuple[str, str]:
    """
    組合價格變動通知

    Args:
        item: 追蹤項目（尚未更新為新價格）
        change: 價格變動

    Returns:
        (主旨, 內文)
    """
    is_decrease = change.is_decrease
    sign = "-" if is_decrease else "+"

    if change.percent is None:
        percent_str = "n/a"
    else:
        percent_str = f"{'' if is_decrease else '+'}{change.percent:.1f}%"

    headline = "📉 PRICE DROPPED!" if is_decrease else "📈 Price Increased"
    body = (
        f"🔔 Price Tracker - Price Alert!\n"
        f"\n"
        f"Product: {item.name}\n"
        f"{headline}\n"
        f"\n"
        f"Previous Price: {format_usd_price(change.old_price)}\n"
        f"New Price: {format_usd_price(change.new_price)}\n"
        f"Change: {sign}{format_usd_price(abs(change.change))} ({percent_str})\n"
        f"\n"
        f"View Product: {item.url}\n"
        f"\n"
        f"---\n"
        f"Sent by Price Tracker\n"
        f"Tracking since: {format_tracking_since(item.tracking_since)}"
    )

    if is_decrease:
        subject = f"{item.name} - Price Drop Alert! 📉"
    else:
        subject = f"{item.name} - Price Increase Alert! 📈"
    return subject, body


class EmailNotifier:
    """Email 通知服務"""

    def __init__(
        self,
        config: NotifierConfig,
        endpoint: str = MAILERSEND_ENDPOINT,
        timeout: float = 10,
    ):
        self.config = config
        self.endpoint = endpoint
        self.timeout = timeout
        if not config.is_complete:
            logger.warning(
                "Email notifier is not configured (api key or sender missing); "
                "notifications will fail"
            )

    def send_email(self, recipient: str, subject: str, body: str) -> bool:
        """
        寄送單封 Email

        Args:
            recipient: 收件人
            subject: 主旨
            body: 純文字內文，HTML 版本以 <pre> 包裝同樣內容

        Returns:
            是否寄送成功
        """
        if not self.config.is_complete:
            logger.error("Email error: missing MailerSend api key or sender address")
            return False

        payload = {
            "from": {"email": self.config.from_address},
            "to": [{"email": recipient}],
            "subject": subject,
            "text": body,
            "html": f"<pre>{html.escape(body)}</pre>",
        }
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = requests.post(
                self.endpoint, json=payload, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            detail = e.response.text if e.response is not None else str(e)
            logger.error("Email error: %s", detail)
            return False

        logger.info("Email sent to %s", recipient)
        return True

    def notify_price_change(self, item: TrackedItem, change: PriceChange) -> bool:
        """
        通知價格變動

        Args:
            item: 追蹤項目（price_history 尚未加入新價格）
            change: 價格變動

        Returns:
            是否寄送成功
        """
        subject, body = compose_price_alert(item, change)
        return self.send_email(item.email, subject, body)

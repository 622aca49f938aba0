#!/usr/bin/env python3
"""
測試 EmailNotifier 類別與通知內容
"""
import os
import unittest
from unittest.mock import patch, MagicMock

import requests

from core.config import NotifierConfig
from core.notifier import (
    MAILERSEND_ENDPOINT,
    EmailNotifier,
    compose_price_alert,
    format_tracking_since,
    format_usd_price,
)
from core.price_change import classify_change
from core.storage import PriceSample, TrackedItem


def make_item(current_price: float = 10.0) -> TrackedItem:
    return TrackedItem(
        name="Desk Lamp",
        url="https://example.com/lamp",
        email="me@example.com",
        current_price=current_price,
        last_checked="2025-01-10T00:00:00",
        price_history=[PriceSample(current_price, "2025-01-01T09:00:00.000Z")],
    )


class TestComposePriceAlert(unittest.TestCase):
    """測試通知內容組合"""

    def test_price_drop(self):
        """測試降價通知"""
        subject, body = compose_price_alert(make_item(10.0), classify_change(10.0, 8.0))

        self.assertEqual(subject, "Desk Lamp - Price Drop Alert! 📉")
        self.assertIn("Product: Desk Lamp", body)
        self.assertIn("📉 PRICE DROPPED!", body)
        self.assertIn("Previous Price: $10.00", body)
        self.assertIn("New Price: $8.00", body)
        self.assertIn("Change: -$2.00 (-20.0%)", body)
        self.assertIn("View Product: https://example.com/lamp", body)
        self.assertIn("Tracking since: 2025-01-01", body)

    def test_price_increase(self):
        """測試漲價通知"""
        subject, body = compose_price_alert(make_item(20.0), classify_change(20.0, 25.0))

        self.assertEqual(subject, "Desk Lamp - Price Increase Alert! 📈")
        self.assertIn("📈 Price Increased", body)
        self.assertIn("Change: +$5.00 (+25.0%)", body)

    def test_zero_previous_price(self):
        """測試原價為 0 時不計算百分比"""
        _, body = compose_price_alert(make_item(0), classify_change(0, 3.0))
        self.assertIn("Change: +$3.00 (n/a)", body)

    def test_no_history(self):
        """測試沒有歷史紀錄時的追蹤起始日"""
        item = make_item()
        item.price_history = []
        _, body = compose_price_alert(item, classify_change(10.0, 9.0))
        self.assertIn("Tracking since: unknown", body)


class TestFormatting(unittest.TestCase):
    def test_format_usd_price(self):
        self.assertEqual(format_usd_price(19.9), "$19.90")
        self.assertEqual(format_usd_price(1234.5), "$1234.50")

    def test_format_tracking_since(self):
        self.assertEqual(format_tracking_since("2025-01-01T09:00:00.000Z"), "2025-01-01")
        self.assertEqual(format_tracking_since("2025-02-03T04:05:06"), "2025-02-03")
        self.assertEqual(format_tracking_since("last spring"), "last spring")
        self.assertEqual(format_tracking_since(None), "unknown")


class TestEmailNotifier(unittest.TestCase):
    def setUp(self):
        self.config = NotifierConfig(api_key="test_key", from_address="noreply@example.com")

    def _ok_response(self) -> MagicMock:
        mock_response = MagicMock()
        mock_response.status_code = 202
        mock_response.raise_for_status = MagicMock()
        return mock_response

    @patch("core.notifier.requests.post")
    def test_send_email_payload(self, mock_post):
        """測試寄送內容與授權標頭"""
        mock_post.return_value = self._ok_response()
        notifier = EmailNotifier(self.config)

        result = notifier.send_email("me@example.com", "Subject", "Line <1>\nLine 2")

        self.assertTrue(result)
        mock_post.assert_called_once()
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], MAILERSEND_ENDPOINT)
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer test_key")
        self.assertEqual(kwargs["json"], {
            "from": {"email": "noreply@example.com"},
            "to": [{"email": "me@example.com"}],
            "subject": "Subject",
            "text": "Line <1>\nLine 2",
            "html": "<pre>Line &lt;1&gt;\nLine 2</pre>",
        })

    @patch("core.notifier.requests.post")
    def test_missing_credentials(self, mock_post):
        """測試缺少憑證時不寄送且回傳失敗"""
        notifier = EmailNotifier(NotifierConfig(api_key=None, from_address="noreply@example.com"))
        self.assertFalse(notifier.send_email("me@example.com", "s", "b"))

        notifier = EmailNotifier(NotifierConfig(api_key="key", from_address=None))
        self.assertFalse(notifier.send_email("me@example.com", "s", "b"))

        mock_post.assert_not_called()

    @patch("core.notifier.requests.post")
    def test_provider_error(self, mock_post):
        """測試服務回傳錯誤狀態"""
        error_response = MagicMock()
        error_response.text = '{"message": "Unauthenticated."}'
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.HTTPError(response=error_response)
        mock_post.return_value = mock_response

        notifier = EmailNotifier(self.config)
        with self.assertLogs("core.notifier", level="ERROR") as logs:
            self.assertFalse(notifier.send_email("me@example.com", "s", "b"))
        self.assertIn("Unauthenticated", logs.output[0])

    @patch("core.notifier.requests.post")
    def test_network_error(self, mock_post):
        """測試連線錯誤不拋出例外"""
        mock_post.side_effect = requests.ConnectionError("unreachable")
        notifier = EmailNotifier(self.config)
        self.assertFalse(notifier.send_email("me@example.com", "s", "b"))

    @patch("core.notifier.requests.post")
    def test_notify_price_change(self, mock_post):
        """測試價格變動通知寄給項目收件人"""
        mock_post.return_value = self._ok_response()
        notifier = EmailNotifier(self.config)

        self.assertTrue(notifier.notify_price_change(make_item(10.0), classify_change(10.0, 8.0)))
        payload = mock_post.call_args[1]["json"]
        self.assertEqual(payload["to"], [{"email": "me@example.com"}])
        self.assertEqual(payload["subject"], "Desk Lamp - Price Drop Alert! 📉")


class TestNotifierConfig(unittest.TestCase):
    def tearDown(self):
        os.environ.pop("MAILERSEND_API_KEY", None)
        os.environ.pop("MAILERSEND_FROM_EMAIL", None)

    def test_from_env(self):
        """測試從環境變數讀取"""
        os.environ["MAILERSEND_API_KEY"] = "env_key"
        os.environ["MAILERSEND_FROM_EMAIL"] = "env@example.com"
        config = NotifierConfig.from_env()
        self.assertEqual(config.api_key, "env_key")
        self.assertEqual(config.from_address, "env@example.com")
        self.assertTrue(config.is_complete)

    def test_from_env_missing(self):
        """測試缺少環境變數仍可建立設定"""
        os.environ.pop("MAILERSEND_API_KEY", None)
        os.environ.pop("MAILERSEND_FROM_EMAIL", None)
        config = NotifierConfig.from_env()
        self.assertFalse(config.is_complete)
        EmailNotifier(config)


if __name__ == "__main__":
    unittest.main()

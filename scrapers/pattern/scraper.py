"""
文字樣式價格擷取模組

繼承 BaseScraper，以固定順序的正規表示式在原始頁面文字中尋找價格。
不解析 HTML 結構，找到的第一個像價格的數字可能不是商品本身的價格。
"""

import logging
import re
from typing import Optional

import requests

from core.base_scraper import BaseScraper

logger = logging.getLogger(__name__)


# 依優先順序排列，第一個命中且在合理範圍內的樣式勝出
PRICE_PATTERNS = [
    re.compile(r'\$(\d+\.?\d{0,2})'),
    re.compile(r'USD\s*(\d+\.?\d{0,2})', re.IGNORECASE),
    re.compile(r'price["\s:]+\$?(\d+\.?\d{0,2})', re.IGNORECASE),
]

# 合理價格範圍（不含端點）
MIN_PRICE = 0
MAX_PRICE = 100000


def find_price(text: str) -> Optional[float]:
    """
    從頁面文字中找出價格

    每個樣式只取第一個匹配；數值超出範圍時改試下一個樣式。

    Args:
        text: 頁面原始文字

    Returns:
        價格（浮點數），若沒有可接受的匹配則返回 None
    """
    if not text:
        return None

    for pattern in PRICE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        price = float(match.group(1))
        if MIN_PRICE < price < MAX_PRICE:
            return price
        logger.debug("Rejected out-of-range price %s (pattern %s)", price, pattern.pattern)

    return None


class PatternScraper(BaseScraper):
    """以文字樣式比對擷取價格"""

    @property
    def source_name(self) -> str:
        """返回擷取器名稱"""
        return "pattern"

    def extract_price(self, url: str) -> Optional[float]:
        try:
            text = self._fetch_text(url)
        except requests.RequestException as e:
            logger.error("Price check error for %s: %s", url, e)
            return None

        price = find_price(text)
        if price is None:
            logger.info("No price pattern matched on %s", url)
        return price

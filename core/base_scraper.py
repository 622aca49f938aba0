"""
價格擷取基礎類別模組

定義所有價格擷取器的共用介面，包括：
- 抽象方法定義 (source_name, extract_price)
- 共用的 HTTP session 與 User-Agent 設定

批次執行只依賴此介面，日後可替換為理解 DOM 結構的擷取器。
"""

from abc import ABC, abstractmethod
from typing import Optional

import requests

from core.config import DEFAULT_REQUEST_TIMEOUT, DEFAULT_USER_AGENT


class BaseScraper(ABC):
    """
    價格擷取基礎類別

    子類別實作 extract_price，失敗時回傳 None，不向呼叫端拋出例外。
    """

    def __init__(
        self,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        """
        初始化擷取器

        Args:
            timeout: HTTP 請求逾時秒數
            user_agent: 模擬瀏覽器的 User-Agent
            session: 自訂 requests.Session，若為 None 則建立新的
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session or requests.Session()

    @property
    @abstractmethod
    def source_name(self) -> str:
        """返回擷取器名稱"""
        pass

    @abstractmethod
    def extract_price(self, url: str) -> Optional[float]:
        """
        擷取指定 URL 的商品價格

        Args:
            url: 商品頁面 URL

        Returns:
            價格（浮點數），若無法取得則返回 None
        """
        pass

    def _fetch_text(self, url: str) -> str:
        """
        以 GET 取得頁面原始文字

        Raises:
            requests.RequestException: 連線失敗、逾時或 HTTP 錯誤狀態
        """
        response = self.session.get(
            url,
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.text

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        """支援 context manager 用法"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """支援 context manager 用法"""
        self.close()
        return False

"""
設定載入模組

通知服務的憑證與批次執行參數，皆以 dataclass 表示並明確傳入各元件。
憑證缺漏時仍可建立設定（通知會失敗並記錄），不視為啟動錯誤。
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


# 預設值定義
DEFAULT_ITEMS_PATH = "tracked-items.json"
DEFAULT_REQUEST_TIMEOUT = 10
DEFAULT_DELAY_SECONDS = 2.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
)

# 環境變數名稱
ENV_API_KEY = "MAILERSEND_API_KEY"
ENV_FROM_EMAIL = "MAILERSEND_FROM_EMAIL"
ENV_ITEMS_FILE = "PRICE_CHECKER_ITEMS_FILE"


@dataclass
class NotifierConfig:
    """Email 通知服務設定"""
    api_key: Optional[str] = None
    from_address: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """兩項設定皆存在時才能實際寄信"""
        return bool(self.api_key) and bool(self.from_address)

    @classmethod
    def from_env(cls) -> "NotifierConfig":
        """從環境變數讀取（呼叫前應已執行 load_dotenv）"""
        return cls(
            api_key=os.getenv(ENV_API_KEY) or None,
            from_address=os.getenv(ENV_FROM_EMAIL) or None,
        )


@dataclass
class TrackerConfig:
    """批次執行設定"""
    items_path: str = DEFAULT_ITEMS_PATH
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    delay_seconds: float = DEFAULT_DELAY_SECONDS
    user_agent: str = DEFAULT_USER_AGENT
    notifier: NotifierConfig = field(default_factory=NotifierConfig)


def load_tracker_config(overrides: Optional[Dict[str, Any]] = None) -> TrackerConfig:
    """
    載入批次執行設定

    優先順序：overrides（命令列參數）> 環境變數 > 預設值。
    overrides 中值為 None 的項目會被忽略。

    Args:
        overrides: 要覆寫的設定欄位

    Returns:
        TrackerConfig: 合併後的設定

    Raises:
        ValueError: 當 overrides 含有未知欄位時
    """
    merged: Dict[str, Any] = {}

    items_path = os.getenv(ENV_ITEMS_FILE)
    if items_path:
        merged["items_path"] = items_path

    valid_fields = {"items_path", "request_timeout", "delay_seconds", "user_agent"}
    for key, value in (overrides or {}).items():
        if key not in valid_fields:
            raise ValueError(f"Unknown config option: {key}. Valid options: {sorted(valid_fields)}")
        if value is not None:
            merged[key] = value

    return TrackerConfig(notifier=NotifierConfig.from_env(), **merged)

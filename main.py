#!/usr/bin/env python3
"""
價格追蹤主程式

檢查所有追蹤項目的價格，價格變動時以 Email 通知，結束後一次存檔。
"""
import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from core.config import TrackerConfig, load_tracker_config
from core.notifier import EmailNotifier, format_usd_price
from core.runner import PriceCheckRunner, describe_items
from core.storage import ItemStorage
from scrapers.pattern.scraper import PatternScraper

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run_check(config: TrackerConfig, dry_run: bool = False) -> int:
    """
    執行一次價格檢查批次

    Args:
        config: 批次執行設定
        dry_run: 是否為測試模式（不寄送通知）

    Returns:
        偵測到的價格變動數
    """
    print("🔍 Starting price check...")
    if dry_run:
        print("Mode: DRY RUN (no notifications)")

    storage = ItemStorage(config.items_path)
    notifier = None if dry_run else EmailNotifier(config.notifier)

    with PatternScraper(timeout=config.request_timeout, user_agent=config.user_agent) as scraper:
        runner = PriceCheckRunner(
            storage,
            scraper,
            notifier=notifier,
            delay_seconds=config.delay_seconds,
        )
        summary = runner.run()

    if summary.failed:
        print(f"⚠️ {summary.failed} items could not be checked")
    print(f"✅ Check complete! {summary.changes_detected} price changes detected.")
    return summary.changes_detected


def add_item(
    config: TrackerConfig,
    name: str,
    url: str,
    email: str,
    price: Optional[float] = None,
) -> bool:
    """
    新增追蹤項目

    未指定價格時會先擷取一次頁面價格作為初始值。

    Returns:
        是否新增成功
    """
    if price is None:
        with PatternScraper(timeout=config.request_timeout, user_agent=config.user_agent) as scraper:
            price = scraper.extract_price(url)
        if price is None:
            print(f"Error: could not determine a price for {url}; use --price to set one")
            return False

    item = ItemStorage(config.items_path).add_item(name, url, email, price)
    print(f"Added {item.name} at {format_usd_price(item.current_price)}")
    return True


def list_items(config: TrackerConfig) -> None:
    """列出所有追蹤項目"""
    items = ItemStorage(config.items_path).load()
    if not items:
        print("No tracked items")
        return
    print(f"Tracked items ({len(items)}):")
    for line in describe_items(items):
        print(f"  {line}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="網頁價格追蹤與 Email 通知",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
範例:
  %(prog)s                                   # 檢查所有追蹤項目
  %(prog)s --dry-run                         # 測試模式（不寄送通知）
  %(prog)s --list                            # 列出追蹤項目
  %(prog)s --add "Desk Lamp" URL me@example.com --price 39.99
        """
    )
    parser.add_argument(
        "--items",
        type=str,
        default=None,
        help="追蹤清單 JSON 檔案路徑（預設 tracked-items.json）"
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="每個項目之間的等待秒數（預設 2）"
    )
    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="測試模式，不寄送通知"
    )
    parser.add_argument(
        "--list", "-l",
        action="store_true",
        help="列出所有追蹤項目"
    )
    parser.add_argument(
        "--add",
        nargs=3,
        metavar=("NAME", "URL", "EMAIL"),
        help="新增追蹤項目"
    )
    parser.add_argument(
        "--price",
        type=float,
        default=None,
        help="搭配 --add 指定初始價格"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="顯示除錯訊息"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """主程式"""
    # 載入 .env 檔案
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.price is not None and not args.add:
        parser.error("--price can only be used with --add")

    try:
        config = load_tracker_config({
            "items_path": args.items,
            "delay_seconds": args.delay,
        })

        if args.list:
            list_items(config)
            return 0

        if args.add:
            name, url, email = args.add
            return 0 if add_item(config, name, url, email, args.price) else 1

        run_check(config, dry_run=args.dry_run)
        return 0
    except Exception as e:
        logger.exception("Fatal error")
        print(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

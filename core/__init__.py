# Core module - shared components for the price checker
# Contains: config, storage, base_scraper, notifier, runner

from .base_scraper import BaseScraper
from .config import NotifierConfig, TrackerConfig, load_tracker_config
from .notifier import EmailNotifier, compose_price_alert
from .price_change import PriceChange, classify_change
from .runner import PriceCheckRunner, RunSummary
from .storage import ItemStorage, PriceSample, TrackedItem

__all__ = [
    'BaseScraper',
    'NotifierConfig',
    'TrackerConfig',
    'load_tracker_config',
    'EmailNotifier',
    'compose_price_alert',
    'PriceChange',
    'classify_change',
    'PriceCheckRunner',
    'RunSummary',
    'ItemStorage',
    'PriceSample',
    'TrackedItem',
]

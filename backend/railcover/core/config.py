import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_PAYOUT_MATRIX_PATH = Path(__file__).resolve().parents[1] / "data" / "payout.json"


@dataclass(frozen=True)
class Settings:
    prediction_url: str
    tracking_url: str

    timezone: str

    time_min_days: float
    time_max_days: float
    probability_cap: float

    cache_max_entries: int
    cache_ttl_seconds: float

    payout_matrix_path: str

    connect_timeout: float
    read_timeout: float
    write_timeout: float
    pool_timeout: float

    telegram_bot_token: Optional[str]
    telegram_chat_id: Optional[str]
    notify_queue_size: int
    notify_retries: int
    notify_backoff_base: float

    log_level: str

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


def load_config() -> Settings:
    load_dotenv()

    prediction_url = os.getenv("PREDICTION_URL")
    tracking_url = os.getenv("TRACKING_URL")
    if not prediction_url or not tracking_url:
        raise RuntimeError("PREDICTION_URL/TRACKING_URL not set in environment or .env")

    return Settings(
        prediction_url=prediction_url.rstrip("/"),
        tracking_url=tracking_url,
        timezone=os.getenv("RAILCOVER_TIMEZONE", "Europe/Berlin"),
        time_min_days=float(os.getenv("RAILCOVER_TIME_MIN_DAYS", "1")),
        time_max_days=float(os.getenv("RAILCOVER_TIME_MAX_DAYS", "10")),
        probability_cap=float(os.getenv("RAILCOVER_PROBABILITY_CAP", "40")),
        cache_max_entries=int(os.getenv("RAILCOVER_CACHE_MAX_ENTRIES", "500")),
        cache_ttl_seconds=float(os.getenv("RAILCOVER_CACHE_TTL_SECONDS", "600")),
        payout_matrix_path=os.getenv("RAILCOVER_PAYOUT_MATRIX_PATH", str(DEFAULT_PAYOUT_MATRIX_PATH)),
        connect_timeout=float(os.getenv("RAILCOVER_CONNECT_TIMEOUT_SECONDS", "5")),
        read_timeout=float(os.getenv("RAILCOVER_READ_TIMEOUT_SECONDS", "20")),
        write_timeout=float(os.getenv("RAILCOVER_WRITE_TIMEOUT_SECONDS", "10")),
        pool_timeout=float(os.getenv("RAILCOVER_POOL_TIMEOUT_SECONDS", "10")),
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
        telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID") or None,
        notify_queue_size=int(os.getenv("RAILCOVER_NOTIFY_QUEUE_SIZE", "100")),
        notify_retries=int(os.getenv("RAILCOVER_NOTIFY_RETRIES", "3")),
        notify_backoff_base=float(os.getenv("RAILCOVER_NOTIFY_BACKOFF_BASE_SECONDS", "1.0")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )

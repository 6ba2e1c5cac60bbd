"""
Shared fixtures: a fixed clock in Europe/Berlin, leg builders and a
ServiceContext whose outbound clients run on httpx.MockTransport.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Optional

import httpx
import pytest
import pytz

from railcover.clients.prediction import PredictionClient
from railcover.clients.tracking import TrackingClient
from railcover.core.config import DEFAULT_PAYOUT_MATRIX_PATH, Settings
from railcover.core.context import ServiceContext
from railcover.notify.telegram import TelegramNotifier
from railcover.pricing.v1.cache import ProbabilityCache
from railcover.pricing.v1.payouts import TIERS, PayoutMatrix

BERLIN = pytz.timezone("Europe/Berlin")
NOW = BERLIN.localize(datetime(2026, 5, 4, 12, 0))


def make_settings(**overrides: Any) -> Settings:
    values = dict(
        prediction_url="http://prediction.test",
        tracking_url="http://tracking.test/",
        timezone="Europe/Berlin",
        time_min_days=1.0,
        time_max_days=10.0,
        probability_cap=40.0,
        cache_max_entries=500,
        cache_ttl_seconds=600.0,
        payout_matrix_path=str(DEFAULT_PAYOUT_MATRIX_PATH),
        connect_timeout=1.0,
        read_timeout=1.0,
        write_timeout=1.0,
        pool_timeout=1.0,
        telegram_bot_token=None,
        telegram_chat_id=None,
        notify_queue_size=10,
        notify_retries=3,
        notify_backoff_base=0.0,
        log_level="DEBUG",
    )
    values.update(overrides)
    return Settings(**values)


def make_matrix() -> PayoutMatrix:
    # distinct amount per tier and row so lookups are easy to assert
    offsets = {"small": 1000, "medium": 2000, "large": 3000}
    return PayoutMatrix.from_dict({t: {str(p): offsets[t] + p for p in range(101)} for t in TIERS})


def make_leg(
    departure: datetime,
    *,
    train: str = "ICE 123",
    start_stop: str = "Leipzig Hbf",
    arrival_stop: str = "Berlin Hbf",
    duration: timedelta = timedelta(hours=1, minutes=15),
) -> dict[str, str]:
    arrival = departure + duration
    return {
        "train": train,
        "start_stop": start_stop,
        "start_time": departure.strftime("%H:%M"),
        "start_date": departure.strftime("%Y-%m-%d"),
        "arrival_stop": arrival_stop,
        "arrival_time": arrival.strftime("%H:%M"),
        "arrival_date": arrival.strftime("%Y-%m-%d"),
    }


def two_leg_journey(departure: datetime, *, second_train: str = "RE 4") -> dict[str, dict[str, str]]:
    first = make_leg(departure, train="IC 705", start_stop="Leipzig Hbf", arrival_stop="Berlin Hbf")
    second = make_leg(
        departure + timedelta(hours=2),
        train=second_train,
        start_stop="Berlin Hbf",
        arrival_stop="Rostock Hbf",
    )
    return {"leg_1": first, "leg_2": second}


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def submit(self, text: str) -> bool:
        self.messages.append(text)
        return True

    async def stop(self) -> None:
        return None


class FakeClock:
    """Monotonic seconds for the cache TTL."""

    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


def prediction_handler(probability: float, calls: Optional[list] = None) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(200, json={"delayProbability": probability})

    return handler


def build_context(
    *,
    prediction: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    tracking: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    notifier: Any = None,
    cache_clock: Optional[FakeClock] = None,
    settings: Optional[Settings] = None,
) -> ServiceContext:
    cfg = settings or make_settings()

    def unexpected(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected outbound call {request.method} {request.url}")

    cache_kwargs: dict[str, Any] = {}
    if cache_clock is not None:
        cache_kwargs["clock"] = cache_clock

    return ServiceContext(
        settings=cfg,
        tz=BERLIN,
        cache=ProbabilityCache(ttl_s=cfg.cache_ttl_seconds, max_entries=cfg.cache_max_entries, **cache_kwargs),
        matrix=make_matrix(),
        prediction=PredictionClient(cfg, transport=httpx.MockTransport(prediction or unexpected)),
        tracking=TrackingClient(cfg, transport=httpx.MockTransport(tracking or unexpected)),
        notifier=notifier if notifier is not None else TelegramNotifier(cfg),
        clock=lambda: NOW,
    )


@pytest.fixture
def now() -> datetime:
    return NOW

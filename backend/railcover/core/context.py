from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Callable, Optional

from railcover.clients.prediction import PredictionClient
from railcover.clients.tracking import TrackingClient
from railcover.core.config import Settings
from railcover.journeys.time import get_timezone
from railcover.notify.telegram import TelegramNotifier
from railcover.pricing.v1.cache import ProbabilityCache
from railcover.pricing.v1.payouts import PayoutMatrix


@dataclass
class OracleToggle:
    """Switch behind the oracle testing routes (delay 62 vs 2 minutes)."""

    delayed: bool = False


@dataclass
class ServiceContext:
    """Everything a request handler needs; one per app instance, no module globals."""

    settings: Settings
    tz: tzinfo
    cache: ProbabilityCache
    matrix: PayoutMatrix
    prediction: PredictionClient
    tracking: TrackingClient
    notifier: TelegramNotifier
    oracle: OracleToggle = field(default_factory=OracleToggle)
    clock: Optional[Callable[[], datetime]] = None

    def now(self) -> datetime:
        if self.clock is not None:
            return self.clock()
        return datetime.now(self.tz)

    async def aclose(self) -> None:
        await self.notifier.stop()
        await self.prediction.aclose()
        await self.tracking.aclose()


def build_context(cfg: Settings) -> ServiceContext:
    return ServiceContext(
        settings=cfg,
        tz=get_timezone(cfg.timezone),
        cache=ProbabilityCache(ttl_s=cfg.cache_ttl_seconds, max_entries=cfg.cache_max_entries),
        matrix=PayoutMatrix.load(cfg.payout_matrix_path),
        prediction=PredictionClient(cfg),
        tracking=TrackingClient(cfg),
        notifier=TelegramNotifier(cfg),
    )

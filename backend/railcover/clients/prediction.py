import logging
from datetime import tzinfo
from numbers import Real
from typing import Optional

import httpx

from railcover.clients.http import make_async_client, post_json
from railcover.core.config import Settings
from railcover.core.errors import MissingDataError, UpstreamError
from railcover.journeys.time import departure_instant, get_timezone, to_iso_with_offset
from railcover.journeys.types import Journey

logger = logging.getLogger(__name__)

PREDICT_PATH = "/v2/predict"
SERVICE = "prediction"


def build_prediction_request(journey: Journey, tz: tzinfo) -> dict:
    first, last = journey.first_leg, journey.last_leg
    departure = departure_instant(journey, tz)
    if first is None or last is None or departure is None:
        raise MissingDataError("journey has no departure leg/date to predict for")

    return {
        "departure": first.start_stop,
        "arrival": last.arrival_stop,
        "departureDate": to_iso_with_offset(departure),
    }


def probability_percent(body) -> float:
    """{"delayProbability": 0.2345} -> 23.45"""
    raw = body.get("delayProbability") if isinstance(body, dict) else None
    if not isinstance(raw, Real) or isinstance(raw, bool):
        raise UpstreamError(f"{SERVICE} response has no numeric delayProbability: {body!r}"[:300])
    if not 0.0 <= float(raw) <= 1.0:
        raise UpstreamError(f"{SERVICE} delayProbability out of range: {raw!r}")
    return round(float(raw) * 100.0, 2)


class PredictionClient:
    def __init__(
        self,
        cfg: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.tz = get_timezone(cfg.timezone)
        self._client = make_async_client(cfg, base_url=cfg.prediction_url, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request_probability(self, journey: Journey) -> float:
        payload = build_prediction_request(journey, self.tz)
        body = await post_json(self._client, PREDICT_PATH, payload, service=SERVICE)
        prob = probability_percent(body)
        logger.info(
            "Delay probability %.2f%% for %s -> %s at %s",
            prob,
            payload["departure"],
            payload["arrival"],
            payload["departureDate"],
        )
        return prob

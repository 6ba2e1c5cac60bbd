import logging
from typing import Optional

import httpx

from railcover.clients.http import make_async_client, post_json
from railcover.core.config import Settings
from railcover.core.errors import MalformedJourneyError, UpstreamError
from railcover.journeys.types import Journey

logger = logging.getLogger(__name__)

SERVICE = "tracking"


class TrackingClient:
    """Asks the train-tracking service how a scheduled journey actually ran."""

    def __init__(
        self,
        cfg: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = cfg.tracking_url
        self._client = make_async_client(cfg, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_observed(self, journey: Journey) -> Journey:
        body = await post_json(self._client, self.url, journey.as_mapping(), service=SERVICE)
        try:
            observed = Journey.from_mapping(body)
        except MalformedJourneyError as e:
            raise UpstreamError(f"{SERVICE} returned an unusable journey: {e}") from e

        logger.info("Received observed journey from tracking (%d legs)", len(observed))
        return observed

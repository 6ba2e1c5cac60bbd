"""
Telegram notifications about pricing decisions.

Delivery is best-effort: submit() only enqueues onto a bounded queue and a
background worker posts to the Bot API. A full queue drops the message; a
message that still fails after the configured attempts is dropped too.
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime, tzinfo
from typing import Optional

import httpx

from railcover.clients.http import make_async_client, mask_bot_token
from railcover.core.config import Settings
from railcover.journeys.time import departure_instant
from railcover.journeys.types import Journey

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"

MARKDOWN_V2_SPECIAL = ".[]!?:%+&$-{}()"

GERMAN_MONTHS = (
    "Januar", "Februar", "März", "April", "Mai", "Juni",
    "Juli", "August", "September", "Oktober", "November", "Dezember",
)


def escape_markdown_v2(text: str) -> str:
    return "".join("\\" + ch if ch in MARKDOWN_V2_SPECIAL else ch for ch in text)


def format_german(dt: datetime) -> str:
    # e.g. 19. September 2026 um 15:50:00
    return f"{dt.day}. {GERMAN_MONTHS[dt.month - 1]} {dt.year} um {dt:%H:%M:%S}"


def journey_stops(journey: Journey) -> str:
    first = journey.first_leg
    if first is None:
        return "-"
    return " - ".join([first.start_stop] + [leg.arrival_stop for leg in journey])


def format_decision_message(
    *,
    probability: Optional[float],
    outcome: str,
    journey: Journey,
    now: datetime,
    tz: tzinfo,
) -> str:
    departure = departure_instant(journey, tz)
    return (
        "*New query on Website* \n\n"
        f"*Time*: {format_german(now)}\n"
        f"*Probability*: {'n/a' if probability is None else f'{probability:.2f}'}\n"
        f"*Status*: {outcome}\n"
        f"*Departure*: {format_german(departure) if departure else 'unknown'}\n"
        f"*Journey*: {journey_stops(journey)}"
    )


class TelegramNotifier:
    def __init__(
        self,
        cfg: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.enabled = cfg.notifications_enabled
        self.chat_id = cfg.telegram_chat_id
        self.retries = max(1, cfg.notify_retries)
        self.backoff_base = cfg.notify_backoff_base
        self._path = f"/bot{cfg.telegram_bot_token}/sendMessage"
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max(1, cfg.notify_queue_size))
        self._client = make_async_client(cfg, base_url=TELEGRAM_API, transport=transport)
        self._worker: Optional[asyncio.Task] = None

        self.sent = 0
        self.dropped = 0

        if not self.enabled:
            logger.info("Telegram notifications disabled (TELEGRAM_BOT_TOKEN/TELEGRAM_CHAT_ID not set)")

    def start(self) -> None:
        if self.enabled and self._worker is None:
            self._worker = asyncio.create_task(self._run(), name="telegram-notifier")

    async def stop(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        await self._client.aclose()

    def submit(self, text: str) -> bool:
        """Never blocks, never raises. Returns False when the message was not queued."""
        if not self.enabled:
            return False
        try:
            self._queue.put_nowait(text)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("Notification queue full (%d), dropping message", self._queue.maxsize)
            return False
        return True

    async def _run(self) -> None:
        while True:
            text = await self._queue.get()
            try:
                await self.deliver(text)
            except Exception:
                self.dropped += 1
                logger.exception("Notification delivery crashed, dropping message")
            finally:
                self._queue.task_done()

    async def deliver(self, text: str) -> bool:
        payload = {
            "chat_id": self.chat_id,
            "text": escape_markdown_v2(text),
            "parse_mode": "MarkdownV2",
            "disable_web_page_preview": True,
        }
        for attempt in range(1, self.retries + 1):
            try:
                r = await self._client.post(self._path, json=payload)
                r.raise_for_status()
                self.sent += 1
                return True
            except httpx.HTTPError as e:
                logger.warning(
                    "Telegram send failed (attempt %d/%d): %s",
                    attempt,
                    self.retries,
                    mask_bot_token(repr(e)),
                )
            if attempt < self.retries:
                await asyncio.sleep(self.backoff_base * (2 ** (attempt - 1)) + random.uniform(0, 0.5))

        self.dropped += 1
        logger.error("Dropping notification after %d attempts", self.retries)
        return False

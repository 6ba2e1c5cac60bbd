"""
Payout decision and delay settlement flows.

Payout path, terminal at the first failing stage:

  decode -> empty check -> leg validation -> tier validation
  -> timeframe (TIME) -> rail replacement (SEV)
  -> cached / fetched probability -> probability cap (PROBABILITY)
  -> matrix lookup (OK)

Policy rejections are normal business outcomes and are logged at INFO.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from railcover.api.v1.schemas.journey import validate_leg, validate_type
from railcover.core.context import ServiceContext
from railcover.core.errors import MalformedJourneyError, MissingDataError, UpstreamError
from railcover.core.status import Status
from railcover.journeys.codec import decode
from railcover.journeys.time import arrival_instant
from railcover.journeys.types import Journey
from railcover.notify.telegram import format_decision_message
from railcover.pricing.v1.cache import fingerprint
from railcover.pricing.v1.payouts import Payout, exceeds_probability_cap, resolve_payout
from railcover.pricing.v1.policy_gate import includes_rail_replacement, is_out_of_timeframe
from railcover.settlement.delay import calculate_delay_minutes

logger = logging.getLogger(__name__)

ORIGIN_CONTRACT = "contract"  # ';'-encoded string
ORIGIN_WEBSITE = "website"    # structured leg_1..leg_n object


@dataclass(frozen=True)
class PolicyDecision:
    status: Status
    payout: Payout = 0
    delay: int = 0
    probability: Optional[float] = None

    def payout_body(self) -> dict:
        return {"status": int(self.status), "payout": self.payout}

    def delay_body(self) -> dict:
        return {"status": int(self.status), "delay": self.delay}


@dataclass(frozen=True)
class ParsedJourney:
    journey: Journey
    origin: Optional[str]
    errors: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.journey and not self.errors


def parse_journey(raw: Any) -> ParsedJourney:
    """Decode or structure the incoming journey and run leg validation on it."""
    if isinstance(raw, str):
        journey = decode(raw)
        errors = [
            f"leg_{i}.{msg}"
            for i, leg in enumerate(journey, start=1)
            for msg in validate_leg(leg.as_dict())
        ]
        return ParsedJourney(journey=journey, origin=ORIGIN_CONTRACT, errors=tuple(errors))

    if isinstance(raw, Mapping):
        errors = [f"{key}.{msg}" for key, leg in raw.items() for msg in validate_leg(leg)]
        if errors:
            return ParsedJourney(journey=Journey(), origin=ORIGIN_WEBSITE, errors=tuple(errors))
        try:
            journey = Journey.from_mapping(raw)
        except MalformedJourneyError as e:
            return ParsedJourney(journey=Journey(), origin=ORIGIN_WEBSITE, errors=(str(e),))
        return ParsedJourney(journey=journey, origin=ORIGIN_WEBSITE)

    if raw is None:
        return ParsedJourney(journey=Journey(), origin=None)
    return ParsedJourney(
        journey=Journey(),
        origin=None,
        errors=(f"journey must be a string or an object, got {type(raw).__name__}",),
    )


def _notify(ctx: ServiceContext, journey: Journey, outcome: str, probability: Optional[float] = None) -> None:
    ctx.notifier.submit(
        format_decision_message(
            probability=probability,
            outcome=outcome,
            journey=journey,
            now=ctx.now(),
            tz=ctx.tz,
        )
    )


async def decide_payout(ctx: ServiceContext, body: Any) -> PolicyDecision:
    if not isinstance(body, Mapping):
        logger.info("Payout request rejected: body is not an object")
        return PolicyDecision(Status.ERROR)

    parsed = parse_journey(body.get("journey"))
    if parsed.is_empty:
        logger.info("Payout request rejected: empty journey")
        return PolicyDecision(Status.ERROR)

    errors = list(parsed.errors) + validate_type({"type": body.get("type")})
    if errors:
        logger.info("Payout request rejected: %d validation errors %s", len(errors), errors)
        return PolicyDecision(Status.ERROR)

    journey = parsed.journey
    tier: str = body["type"]
    cfg = ctx.settings

    try:
        if is_out_of_timeframe(
            journey,
            now=ctx.now(),
            tz=ctx.tz,
            min_days=cfg.time_min_days,
            max_days=cfg.time_max_days,
        ):
            logger.info("Journey out of timeframe")
            _notify(ctx, journey, "out of timeframe")
            return PolicyDecision(Status.TIME)

        if includes_rail_replacement(journey):
            logger.info("Journey contains rail replacement service")
            _notify(ctx, journey, "includes rail replacement service")
            return PolicyDecision(Status.SEV)

        key = fingerprint(journey)
        probability, cached = await ctx.cache.get_or_fetch(
            key, lambda: ctx.prediction.request_probability(journey)
        )
    except MissingDataError as e:
        logger.warning("Payout request failed: %s", e)
        return PolicyDecision(Status.ERROR)
    except UpstreamError as e:
        logger.warning("Payout request failed: %s", e)
        return PolicyDecision(Status.ERROR)

    logger.info("%s probability %.2f%% key=%s", "Cached" if cached else "Fetched", probability, key[:12])

    if parsed.origin == ORIGIN_WEBSITE:
        _notify(ctx, journey, "ok", probability)

    if exceeds_probability_cap(probability, cfg.probability_cap):
        logger.info("Probability too high (%.2f%% > %.0f%%)", probability, cfg.probability_cap)
        return PolicyDecision(Status.PROBABILITY, probability=probability)

    payout = resolve_payout(ctx.matrix, probability, tier)
    return PolicyDecision(Status.OK, payout=payout, probability=probability)


async def settle_delay(ctx: ServiceContext, body: Any) -> PolicyDecision:
    if not isinstance(body, Mapping) or not body:
        logger.info("Delay request rejected: empty body")
        return PolicyDecision(Status.ERROR)

    raw = body["journey"] if "journey" in body else body
    parsed = parse_journey(raw)
    if parsed.is_empty:
        logger.info("Delay request rejected: empty journey")
        return PolicyDecision(Status.ERROR)
    if parsed.errors:
        logger.info("Delay request rejected: %d validation errors %s", len(parsed.errors), list(parsed.errors))
        return PolicyDecision(Status.ERROR)

    journey = parsed.journey
    scheduled = arrival_instant(journey, ctx.tz)
    if scheduled is None:
        logger.warning("Delay request failed: scheduled journey has no usable arrival")
        return PolicyDecision(Status.ERROR)

    try:
        observed_journey = await ctx.tracking.fetch_observed(journey)
    except UpstreamError as e:
        logger.warning("Delay request failed: %s", e)
        return PolicyDecision(Status.ERROR)

    logger.info("Received response from tracking; calculating delay..")
    observed = arrival_instant(observed_journey, ctx.tz)
    if observed is None:
        logger.warning("Delay request failed: observed journey has no usable arrival")
        return PolicyDecision(Status.ERROR)

    delay = calculate_delay_minutes(scheduled, observed)
    logger.info("Calculated delay in minutes: %d", delay)
    return PolicyDecision(Status.OK, delay=delay)

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from railcover.api.v1.schemas.payouts import DelayResponse, PayoutResponse
from railcover.core.context import ServiceContext
from railcover.core.deps import get_context
from railcover.core.status import Status
from railcover.pricing.v1.pipeline import PolicyDecision, decide_payout, settle_delay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payouts"])


async def read_json_body(request: Request) -> Any:
    """Parsed JSON body, or None when the body is empty or not JSON."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return await request.json()
    except ValueError:
        return None


@router.post("/payouts", response_model=PayoutResponse)
async def post_payouts(request: Request, ctx: ServiceContext = Depends(get_context)):
    """
    Payout for one tier, or all tiers when type == "all".

    Accepts the contract's ';'-encoded journey or the website's leg_1..leg_n
    object under "journey". Always answers 200; "status" tells the outcome.
    """
    logger.info("Received request to endpoint /payouts")
    try:
        decision = await decide_payout(ctx, await read_json_body(request))
    except Exception:
        logger.exception("Unhandled error while pricing journey")
        decision = PolicyDecision(Status.ERROR)
    return decision.payout_body()


@router.post("/delay", response_model=DelayResponse)
async def post_delay(request: Request, ctx: ServiceContext = Depends(get_context)):
    """Actual arrival delay (minutes, >= 0) of a journey that already took place."""
    logger.info("Received request to endpoint /delay")
    try:
        decision = await settle_delay(ctx, await read_json_body(request))
    except Exception:
        logger.exception("Unhandled error while settling delay")
        decision = PolicyDecision(Status.ERROR)
    return decision.delay_body()

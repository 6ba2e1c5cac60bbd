"""Routes the contract's test deployment uses to get a fixed on-demand delay."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from railcover.api.v1.routes.payouts import read_json_body
from railcover.api.v1.schemas.payouts import DelayResponse
from railcover.core.context import ServiceContext
from railcover.core.deps import get_context
from railcover.core.status import Status

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oracle-testing"])

DELAYED_MINUTES = 62
ON_TIME_MINUTES = 2


@router.post("/delayOracleTesting", response_model=DelayResponse)
async def delay_oracle_testing(ctx: ServiceContext = Depends(get_context)):
    delay = DELAYED_MINUTES if ctx.oracle.delayed else ON_TIME_MINUTES
    return {"status": int(Status.OK), "delay": delay}


@router.post("/changeDelay", response_class=PlainTextResponse)
async def change_delay(request: Request, ctx: ServiceContext = Depends(get_context)):
    body = await read_json_body(request)
    value = body.get("delay") if isinstance(body, dict) else None
    if value is True or value is False:
        ctx.oracle.delayed = value
        logger.info("Changed oracle delay to %s", str(value).lower())
        return f"changed delay to {str(value).lower()}"
    return "delay has to be true or false"


@router.get("/getDelay", response_class=PlainTextResponse)
async def get_delay(ctx: ServiceContext = Depends(get_context)):
    state = str(ctx.oracle.delayed).lower()
    logger.info("Oracle delay is currently set to: %s", state)
    return f"delay is currently set to: {state}"

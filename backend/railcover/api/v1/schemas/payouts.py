from typing import Union

from pydantic import BaseModel, Field

Amount = Union[int, float]


class TierPayouts(BaseModel):
    small: Amount
    medium: Amount
    large: Amount


class PayoutResponse(BaseModel):
    status: int = Field(..., description="0 ok, 10 rail replacement, 20 timeframe, 30 probability, 100 error")
    payout: Union[TierPayouts, Amount] = 0


class DelayResponse(BaseModel):
    status: int
    delay: int = Field(0, ge=0, description="Arrival delay in minutes")

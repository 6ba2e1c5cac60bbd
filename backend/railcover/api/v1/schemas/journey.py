from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

TIME_PATTERN = r"^([0-2][0-9]):([0-5][0-9])$"
DATE_PATTERN = r"^(2[0-9]{3})-([0-1][0-9])-([0-3][0-9])$"


class LegSchema(BaseModel):
    train: str = Field(..., min_length=1, description="Train identifier, e.g. IC 705")
    start_stop: str = Field(..., min_length=1)
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN, description="HH:MM")
    start_date: Optional[str] = Field(None, pattern=DATE_PATTERN, description="YYYY-MM-DD")
    arrival_stop: str = Field(..., min_length=1)
    arrival_time: Optional[str] = Field(None, pattern=TIME_PATTERN, description="HH:MM")
    arrival_date: Optional[str] = Field(None, pattern=DATE_PATTERN, description="YYYY-MM-DD")


class TierSchema(BaseModel):
    type: Literal["small", "medium", "large", "all"]


def _messages(e: ValidationError) -> list[str]:
    out: list[str] = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "value"
        out.append(f"{loc}: {err.get('msg')}")
    return out


def validate_leg(payload: Any) -> list[str]:
    """All problems with one leg as readable messages; empty list when valid."""
    try:
        LegSchema.model_validate(payload)
    except ValidationError as e:
        return _messages(e)
    return []


def validate_type(payload: Any) -> list[str]:
    try:
        TierSchema.model_validate(payload)
    except ValidationError as e:
        return _messages(e)
    return []

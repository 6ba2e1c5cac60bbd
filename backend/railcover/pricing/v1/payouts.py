from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Union

from railcover.core.errors import PayoutMatrixError

logger = logging.getLogger(__name__)

TIERS: tuple[str, ...] = ("small", "medium", "large")
ALL_TIERS = "all"
MAX_PERCENT = 100

# coverage is refused above this delay probability (percent)
PROBABILITY_CAP = 40.0

Payout = Union[float, dict[str, float]]


class PayoutMatrix:
    """Read-only tier -> rounded probability (0..100) -> payout table."""

    def __init__(self, table: Mapping[str, Mapping[int, float]]):
        self._table = MappingProxyType(
            {tier: MappingProxyType(dict(rows)) for tier, rows in table.items()}
        )

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> PayoutMatrix:
        table: dict[str, dict[int, float]] = {}
        for tier in TIERS:
            rows = raw.get(tier)
            if not isinstance(rows, Mapping):
                raise PayoutMatrixError(f"payout matrix is missing tier {tier!r}")

            parsed: dict[int, float] = {}
            for key, amount in rows.items():
                try:
                    pct = int(key)
                except (TypeError, ValueError):
                    raise PayoutMatrixError(f"tier {tier!r}: bad probability key {key!r}") from None
                if not isinstance(amount, (int, float)) or isinstance(amount, bool):
                    raise PayoutMatrixError(f"tier {tier!r} row {pct}: amount must be a number")
                parsed[pct] = amount

            missing = [p for p in range(MAX_PERCENT + 1) if p not in parsed]
            if missing:
                raise PayoutMatrixError(f"tier {tier!r} is missing rows {missing[:5]}...")
            table[tier] = parsed

        return cls(table)

    @classmethod
    def load(cls, path: Union[str, Path]) -> PayoutMatrix:
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PayoutMatrixError(f"cannot read payout matrix {path}: {e}") from e

        matrix = cls.from_dict(raw)
        logger.info("Loaded payout matrix from %s tiers=%s", path, list(TIERS))
        return matrix

    def amount(self, tier: str, percent: int) -> float:
        return self._table[tier][percent]


def exceeds_probability_cap(probability: float, cap: float = PROBABILITY_CAP) -> bool:
    # compared unrounded: 40.0 is insurable, 40.01 is not
    return probability > cap


def payout_row(probability: float) -> int:
    """Probabilities are rounded up to the next whole percent before lookup."""
    row = math.ceil(probability)
    if not 0 <= row <= MAX_PERCENT:
        raise ValueError(f"probability {probability!r} outside 0..{MAX_PERCENT}")
    return row


def resolve_payout(matrix: PayoutMatrix, probability: float, tier: str) -> Payout:
    row = payout_row(probability)
    if tier == ALL_TIERS:
        return {t: matrix.amount(t, row) for t in TIERS}
    return matrix.amount(tier, row)

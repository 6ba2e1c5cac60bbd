from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import make_matrix
from railcover.core.config import DEFAULT_PAYOUT_MATRIX_PATH
from railcover.core.errors import PayoutMatrixError
from railcover.pricing.v1.payouts import (
    TIERS,
    PayoutMatrix,
    exceeds_probability_cap,
    payout_row,
    resolve_payout,
)


@pytest.mark.parametrize(
    ("probability", "refused"),
    [(40.0, False), (40.01, True), (39.99, False), (0.0, False), (100.0, True)],
)
def test_probability_cap_uses_unrounded_value(probability: float, refused: bool) -> None:
    assert exceeds_probability_cap(probability) is refused


def test_cap_is_configurable() -> None:
    assert exceeds_probability_cap(30.5, cap=30) is True
    assert exceeds_probability_cap(30.0, cap=30) is False


def test_probability_rounds_up_to_next_row() -> None:
    assert payout_row(12.3) == 13
    assert payout_row(12.0) == 12
    assert payout_row(0.01) == 1
    assert payout_row(0) == 0
    assert payout_row(39.01) == 40


def test_resolve_single_tier() -> None:
    matrix = make_matrix()
    assert resolve_payout(matrix, 12.3, "medium") == 2013
    assert resolve_payout(matrix, 25, "small") == 1025


def test_resolve_all_tiers_uses_the_same_row() -> None:
    matrix = make_matrix()
    assert resolve_payout(matrix, 24.5, "all") == {"small": 1025, "medium": 2025, "large": 3025}


def test_bundled_matrix_is_complete() -> None:
    matrix = PayoutMatrix.load(DEFAULT_PAYOUT_MATRIX_PATH)
    for tier in TIERS:
        for pct in (0, 13, 40, 100):
            assert matrix.amount(tier, pct) > 0


def test_matrix_accepts_string_keys_from_json(tmp_path: Path) -> None:
    raw = {t: {str(p): p * 2 for p in range(101)} for t in TIERS}
    path = tmp_path / "payout.json"
    path.write_text(json.dumps(raw), encoding="utf-8")

    assert PayoutMatrix.load(path).amount("large", 13) == 26


def test_matrix_is_read_only() -> None:
    matrix = make_matrix()
    with pytest.raises(TypeError):
        matrix._table["small"][13] = 0  # type: ignore[index]


@pytest.mark.parametrize(
    "raw",
    [
        {"small": {str(p): 1 for p in range(101)}, "medium": {str(p): 1 for p in range(101)}},
        {t: {str(p): 1 for p in range(100)} for t in TIERS},
        {t: {**{str(p): 1 for p in range(101)}, "x": 1} for t in TIERS},
        {t: {str(p): "1" for p in range(101)} for t in TIERS},
    ],
)
def test_incomplete_or_bad_matrix_is_rejected(raw: dict) -> None:
    with pytest.raises(PayoutMatrixError):
        PayoutMatrix.from_dict(raw)


def test_missing_matrix_file_is_reported(tmp_path: Path) -> None:
    with pytest.raises(PayoutMatrixError):
        PayoutMatrix.load(tmp_path / "nope.json")

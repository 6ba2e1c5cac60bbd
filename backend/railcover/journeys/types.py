from __future__ import annotations

import re
from dataclasses import asdict, dataclass, fields
from typing import Any, Iterator, Mapping, Optional

from railcover.core.errors import MalformedJourneyError

LEG_KEY_RE = re.compile(r"^leg_([1-9]\d*)$")


@dataclass(frozen=True)
class Leg:
    train: str
    start_stop: str
    start_time: str
    start_date: str
    arrival_stop: str
    arrival_time: str
    arrival_date: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Leg:
        # validation happens before this; absent fields become "" and fail instant parsing
        return cls(**{f.name: str(data.get(f.name) or "") for f in fields(cls)})

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


LEG_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(Leg))


@dataclass(frozen=True)
class Journey:
    """
    Ordered legs of one trip. Positional keys leg_1..leg_n only exist at the
    wire boundary (as_mapping / from_mapping).
    """

    legs: tuple[Leg, ...] = ()

    def __len__(self) -> int:
        return len(self.legs)

    def __iter__(self) -> Iterator[Leg]:
        return iter(self.legs)

    def __bool__(self) -> bool:
        return bool(self.legs)

    @property
    def first_leg(self) -> Optional[Leg]:
        return self.legs[0] if self.legs else None

    @property
    def last_leg(self) -> Optional[Leg]:
        return self.legs[-1] if self.legs else None

    def as_mapping(self) -> dict[str, dict[str, str]]:
        return {f"leg_{i}": leg.as_dict() for i, leg in enumerate(self.legs, start=1)}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Journey:
        """Build from {"leg_1": {...}, "leg_2": {...}}; keys must run 1..n without gaps."""
        if not isinstance(data, Mapping):
            raise MalformedJourneyError(f"journey must be an object, got {type(data).__name__}")

        numbered: dict[int, Any] = {}
        for key, value in data.items():
            m = LEG_KEY_RE.match(str(key))
            if not m:
                raise MalformedJourneyError(f"unexpected journey key {key!r}")
            if not isinstance(value, Mapping):
                raise MalformedJourneyError(f"{key} must be an object")
            index = int(m.group(1))
            if index in numbered:
                raise MalformedJourneyError(f"duplicate journey leg {key!r}")
            numbered[index] = value

        expected = list(range(1, len(numbered) + 1))
        if sorted(numbered) != expected:
            raise MalformedJourneyError(
                f"journey legs must be numbered leg_1..leg_{len(numbered)}, got {sorted(numbered)}"
            )

        return cls(legs=tuple(Leg.from_dict(numbered[i]) for i in expected))

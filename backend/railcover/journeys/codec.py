"""
Compact wire encoding of a journey, as sent by the on-chain contract.

One leg is seven ';'-separated fields, legs are simply concatenated:

  IC 705;Leipzig Hbf;10:15;2026-03-10;Berlin Hbf;11:30;2026-03-10;RE 4;Berlin Hbf;...
"""

from typing import Any

from railcover.journeys.types import LEG_FIELDS, Journey, Leg

SEPARATOR = ";"
FIELDS_PER_LEG = len(LEG_FIELDS)


def decode(encoded: Any) -> Journey:
    """Never raises; anything that is not a whole number of legs decodes to an empty Journey."""
    if not isinstance(encoded, str):
        return Journey()

    values = encoded.split(SEPARATOR)
    if len(values) % FIELDS_PER_LEG != 0:
        return Journey()

    legs = []
    for start in range(0, len(values), FIELDS_PER_LEG):
        chunk = values[start:start + FIELDS_PER_LEG]
        legs.append(Leg(**dict(zip(LEG_FIELDS, chunk))))

    return Journey(legs=tuple(legs))


def encode(journey: Journey) -> str:
    return SEPARATOR.join(getattr(leg, name) for leg in journey for name in LEG_FIELDS)

"""Decimal wire encodings.

The API is inconsistent: some decimal fields travel as JSON strings, others
as JSON numbers, and the same concept can use either depending on the
endpoint. Both parse into ``Decimal``; they differ only when serialized.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer


def decimal_to_wire_str(value: Decimal) -> str:
    # Fixed-point so small increments never turn into "1E-8".
    return format(value, "f")


def decimal_to_wire_float(value: Decimal) -> float:
    return float(value)


WireStrDecimal = Annotated[
    Decimal, PlainSerializer(decimal_to_wire_str, return_type=str, when_used="json")
]
WireFloatDecimal = Annotated[
    Decimal, PlainSerializer(decimal_to_wire_float, return_type=float, when_used="json")
]

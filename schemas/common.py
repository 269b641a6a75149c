from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import BaseModel, PlainSerializer
from pydantic.alias_generators import to_camel

CENT = Decimal("0.01")


def _money_json(value: Decimal) -> float:
    # Quantized first so the JSON number is the exact two-decimal amount
    return float(Decimal(value).quantize(CENT, ROUND_HALF_UP))


# Decimal in Python, a two-decimal JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(_money_json, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Snake_case attributes in Python, camelCase field names on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class MessageOut(CamelModel):
    success: bool = True
    message: str

"""PriceHistoryPoint, PriceHistory - CLOB price series."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PriceHistoryPoint(BaseModel):
    """Single price sample."""

    t: int = Field(..., description="Unix seconds")
    p: float = Field(..., gt=0)


class PriceHistory(BaseModel):
    """Price series for one CLOB token. synthetic=True marks placeholder data, not market data."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    token_id: str
    period: str
    points: list[PriceHistoryPoint] = Field(default_factory=list)
    synthetic: bool = False

"""RawMarket, RawEvent, ProcessedMarket, MarketDetails - Gamma records and their canonical forms."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from betwixt.models.history import PriceHistoryPoint

# Gamma field names are camelCase; attributes are snake_case. Unknown provider fields are kept.
_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class Tag(BaseModel):
    """Event/market category tag. Gamma sends ids as strings or ints."""

    model_config = _WIRE_CONFIG

    id: str | int | None = None
    label: str | None = None
    slug: str | None = None


class MarketFields(BaseModel):
    """Fields shared by raw and processed markets."""

    model_config = _WIRE_CONFIG

    id: str
    question: str = ""
    slug: str | None = None
    condition_id: str | None = None
    volume: str | None = None
    volume24hr: str | None = Field(None, alias="volume24hr")  # to_camel would give volume24Hr
    liquidity: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    image: str | None = None
    description: str | None = None
    enable_order_book: bool | None = None
    active: bool | None = None
    closed: bool | None = None
    tags: list[Tag] | None = None
    event_title: str | None = None
    events: list[dict[str, Any]] | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("question", mode="before")
    @classmethod
    def _question_or_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("volume", "volume24hr", "liquidity", mode="before")
    @classmethod
    def _number_as_str(cls, v: Any) -> Any:
        # Gamma usually sends these as strings; the events payload sometimes sends numbers.
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class RawMarket(MarketFields):
    """Gamma market record. Outcome labels, prices and CLOB token ids are JSON-encoded arrays."""

    outcomes: str | list[Any] | None = None
    outcome_prices: str | list[Any] | None = None
    clob_token_ids: str | list[Any] | None = None


class RawEvent(BaseModel):
    """Gamma event grouping markets that share dates, tags and title."""

    model_config = _WIRE_CONFIG

    id: str | None = None
    title: str | None = None
    slug: str | None = None
    description: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    tags: list[Tag] | None = None
    markets: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class OutcomeWithPrice(BaseModel):
    """One outcome with its price formatted for display ("65%") and as a float."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    outcome: str
    price: str
    raw_price: float


class ProcessedMarket(MarketFields):
    """Canonical market: raw fields plus decoded outcomes, Yes/No prices and CLOB token ids."""

    outcomes: list[OutcomeWithPrice] = Field(default_factory=list)
    yes_price: float | None = None
    no_price: float | None = None
    token_ids: list[str] = Field(default_factory=list)

    def to_raw(self) -> RawMarket:
        """Re-encode decoded fields into a raw-shaped record."""
        data = self.model_dump(
            by_alias=True, exclude={"outcomes", "yes_price", "no_price", "token_ids"}
        )
        data["outcomes"] = json.dumps([o.outcome for o in self.outcomes])
        data["outcomePrices"] = json.dumps([str(o.raw_price) for o in self.outcomes])
        data["clobTokenIds"] = json.dumps(self.token_ids)
        return RawMarket.model_validate(data)


class MarketDetails(ProcessedMarket):
    """Single-market detail view: processed market plus resolution metadata and history."""

    volume24hr: str = Field("0", alias="volume24hr")
    liquidity: str = "0"
    tags: list[Tag] = Field(default_factory=list)
    resolution_source: str | None = None
    resolution_criteria: str | None = None
    price_history: list[PriceHistoryPoint] | None = None

"""Gamma/CLOB payloads -> canonical ProcessedMarket, PriceHistoryPoint, PriceLevel."""

from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from typing import Any, Mapping

import structlog
from pydantic import ValidationError

from betwixt.models.history import PriceHistoryPoint
from betwixt.models.market import MarketFields, OutcomeWithPrice, ProcessedMarket, RawMarket
from betwixt.models.orderbook import PriceLevel

log = structlog.get_logger(__name__)

_ENCODED_FIELDS = {"outcomes", "outcome_prices", "clob_token_ids"}


def _decode_array(value: str | list[Any] | None) -> list[Any] | None:
    """Decode a JSON-encoded array. Already-decoded lists pass through; anything else is None."""
    if isinstance(value, list):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        decoded = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return None
    return decoded if isinstance(decoded, list) else None


def _float(s: Any) -> float | None:
    """Finite float or None. Booleans are not numbers here."""
    if s is None or isinstance(s, bool):
        return None
    try:
        value = float(s)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def format_price(raw_price: float) -> str:
    """0.65 -> "65%"."""
    return f"{round(raw_price * 100)}%"


def parse_outcomes(
    outcomes_str: str | list[Any] | None,
    prices_str: str | list[Any] | None,
) -> list[OutcomeWithPrice]:
    """Pair outcome labels with prices.

    Returns [] when either side is missing, fails to decode, or the two arrays differ
    in length. A single non-numeric price becomes "0%" / 0.0 without affecting the rest.
    """
    if not outcomes_str or not prices_str:
        return []
    names = _decode_array(outcomes_str)
    prices = _decode_array(prices_str)
    if names is None or prices is None or len(names) != len(prices):
        return []
    if not all(isinstance(name, str) for name in names):
        return []
    out = []
    for name, raw in zip(names, prices):
        price = _float(raw)
        if price is None:
            out.append(OutcomeWithPrice(outcome=name, price="0%", raw_price=0.0))
        else:
            out.append(OutcomeWithPrice(outcome=name, price=format_price(price), raw_price=price))
    return out


def parse_token_ids(clob_token_ids: str | list[Any] | None) -> list[str]:
    """Decode clobTokenIds; unparseable input gives []."""
    token_ids = _decode_array(clob_token_ids)
    if token_ids is None:
        return []
    return [str(tid) for tid in token_ids if tid is not None]


def _price_for(outcomes: list[OutcomeWithPrice], label: str) -> float | None:
    # Exact, case-sensitive label match only.
    for o in outcomes:
        if o.outcome == label:
            return o.raw_price
    return None


def _decoded_outcomes(value: Any) -> list[OutcomeWithPrice] | None:
    """Outcomes that already went through parse_outcomes ({outcome, rawPrice} dicts), else None."""
    if not isinstance(value, list) or not value:
        return None
    if not all(isinstance(o, Mapping) and isinstance(o.get("outcome"), str) for o in value):
        return None
    out = []
    for o in value:
        price = _float(o.get("rawPrice", o.get("raw_price")))
        if price is None:
            out.append(OutcomeWithPrice(outcome=o["outcome"], price="0%", raw_price=0.0))
        else:
            out.append(OutcomeWithPrice(outcome=o["outcome"], price=format_price(price), raw_price=price))
    return out


def _coerce_raw(payload: Any) -> RawMarket:
    """Validate a mapping as RawMarket, dropping fields that fail validation. A missing id becomes ""."""
    data = dict(payload) if isinstance(payload, Mapping) else {}
    try:
        return RawMarket.model_validate(data)
    except ValidationError as e:
        bad = {err["loc"][0] for err in e.errors() if err["loc"]}
        log.warning("market_fields_dropped", market_id=data.get("id"), fields=sorted(map(str, bad)))
    data = {k: v for k, v in data.items() if k not in bad}
    data.setdefault("id", "")
    return RawMarket.model_validate(data)


def normalize_market(raw: MarketFields | Mapping[str, Any]) -> ProcessedMarket:
    """Convert a Gamma market (flat, event-nested or already processed) to ProcessedMarket.

    Never raises: fields that fail validation are dropped and decode failures give defaults.
    """
    if isinstance(raw, ProcessedMarket):
        raw = raw.to_raw()
    elif isinstance(raw, MarketFields) and not isinstance(raw, RawMarket):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, RawMarket):
        raw = _coerce_raw(raw)

    outcomes = _decoded_outcomes(raw.outcomes)
    if outcomes is None:
        outcomes = parse_outcomes(raw.outcomes, raw.outcome_prices)
    token_ids = parse_token_ids(raw.clob_token_ids)
    if raw.clob_token_ids is None:
        token_ids = parse_token_ids((raw.model_extra or {}).get("tokenIds"))
    data = raw.model_dump(by_alias=True, exclude=_ENCODED_FIELDS)
    data.update(
        outcomes=outcomes,
        yesPrice=_price_for(outcomes, "Yes"),
        noPrice=_price_for(outcomes, "No"),
        tokenIds=token_ids,
    )
    return ProcessedMarket.model_validate(data)


def _timestamp(value: Any) -> int | None:
    """Unix seconds from a number, numeric string or ISO-8601 string."""
    number = _float(value)
    if number is not None:
        return int(number)
    if isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp())
    return None


def _first_present(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None and value != "":
            return value
    return None


def normalize_history_point(payload: Any) -> PriceHistoryPoint | None:
    """Reconcile one price sample to PriceHistoryPoint.

    Timestamp precedence: t, timestamp, createdAt. Price precedence: p, price,
    outcomePrices[0]. Returns None when there is no timestamp or the price is not positive.
    """
    if not isinstance(payload, Mapping):
        return None
    t = _timestamp(_first_present(payload, "t", "timestamp", "createdAt"))
    if t is None or t <= 0:
        return None
    raw_price = _first_present(payload, "p", "price")
    if raw_price is None:
        outcome_prices = _decode_array(payload.get("outcomePrices"))
        raw_price = outcome_prices[0] if outcome_prices else None
    p = _float(raw_price)
    if p is None or p <= 0:
        return None
    return PriceHistoryPoint(t=t, p=p)


def parse_book_levels(levels: Any) -> list[PriceLevel]:
    """CLOB book side [{"price": "0.52", "size": "100"}, ...] -> PriceLevels. Unparseable levels are dropped."""
    out = []
    for lev in levels or []:
        if not isinstance(lev, Mapping):
            continue
        p, s = _float(lev.get("price")), _float(lev.get("size"))
        if p is None or s is None:
            continue
        out.append(PriceLevel(price=p, size=s))
    return out

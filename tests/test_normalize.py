"""Outcome parsing, market normalization and payload reconciliation."""

import json

from betwixt.ingestion.polymarket.normalize import (
    normalize_history_point,
    normalize_market,
    parse_book_levels,
    parse_outcomes,
    parse_token_ids,
)
from betwixt.models import RawMarket


def test_parse_outcomes_pairs_labels_and_prices():
    out = parse_outcomes('["Yes","No"]', '["0.65","0.35"]')
    assert [(o.outcome, o.price, o.raw_price) for o in out] == [
        ("Yes", "65%", 0.65),
        ("No", "35%", 0.35),
    ]


def test_parse_outcomes_multi_outcome_lengths_match():
    labels = ["A", "B", "C", "D"]
    prices = ["0.1", "0.2", "0.3", "0.4"]
    out = parse_outcomes(json.dumps(labels), json.dumps(prices))
    assert len(out) == 4
    assert all(0 <= o.raw_price <= 1 for o in out)
    assert [o.price for o in out] == ["10%", "20%", "30%", "40%"]


def test_parse_outcomes_malformed_is_empty():
    assert parse_outcomes("", '["0.5"]') == []
    assert parse_outcomes('["Yes"]', None) == []
    assert parse_outcomes("not json", '["0.5"]') == []
    assert parse_outcomes('["Yes","No"]', "[0.5,") == []
    assert parse_outcomes('{"a": 1}', '["0.5"]') == []
    assert parse_outcomes("[1, 2]", '["0.5","0.5"]') == []


def test_parse_outcomes_mismatched_lengths_is_empty():
    assert parse_outcomes('["Yes","No"]', '["0.65"]') == []
    assert parse_outcomes('["Yes"]', '["0.65","0.35"]') == []


def test_parse_outcomes_non_numeric_price_only_zeroes_that_entry():
    out = parse_outcomes('["Yes","No"]', '["abc","0.4"]')
    assert out[0].price == "0%" and out[0].raw_price == 0
    assert out[1].price == "40%" and out[1].raw_price == 0.4


def test_parse_outcomes_accepts_decoded_lists():
    out = parse_outcomes(["Yes", "No"], [0.2, 0.8])
    assert [o.price for o in out] == ["20%", "80%"]


def test_parse_token_ids():
    assert parse_token_ids('["111","222"]') == ["111", "222"]
    assert parse_token_ids("[111, 222]") == ["111", "222"]
    assert parse_token_ids("garbage") == []
    assert parse_token_ids(None) == []
    assert parse_token_ids('"123"') == []


def test_normalize_market_yes_no_and_tokens(binary_market):
    m = normalize_market(binary_market("m1"))
    assert m.id == "m1"
    assert m.yes_price == 0.65
    assert m.no_price == 0.35
    assert m.token_ids == ["m1-yes", "m1-no"]
    dumped = m.model_dump(by_alias=True)
    assert dumped["yesPrice"] == 0.65
    assert dumped["outcomes"][0] == {"outcome": "Yes", "price": "65%", "rawPrice": 0.65}
    assert "outcomePrices" not in dumped


def test_normalize_market_yes_no_match_is_case_sensitive():
    m = normalize_market({"id": "x", "outcomes": '["yes","NO"]', "outcomePrices": '["0.5","0.5"]'})
    assert len(m.outcomes) == 2
    assert m.yes_price is None
    assert m.no_price is None


def test_normalize_market_never_raises_on_bad_encodings():
    m = normalize_market(
        {"id": 42, "outcomes": "[", "outcomePrices": "]", "clobTokenIds": "{{", "volume": 12.5}
    )
    assert m.id == "42"
    assert m.outcomes == []
    assert m.token_ids == []
    assert m.volume == "12.5"


def test_normalize_market_keeps_unknown_fields(binary_market):
    m = normalize_market(binary_market("m1", resolutionSource="https://example.com"))
    assert m.model_dump(by_alias=True)["resolutionSource"] == "https://example.com"


def test_renormalizing_processed_market_is_idempotent(binary_market):
    cases = [
        binary_market("m1"),
        {"id": "m2", "outcomes": '["Up","Down"]', "outcomePrices": '["0.1","0.9"]'},
        {"id": "m3", "outcomes": '["Yes","No"]', "outcomePrices": '["n/a","0.3"]', "clobTokenIds": "bad"},
    ]
    for raw in cases:
        first = normalize_market(raw)
        again = normalize_market(first.to_raw())
        assert isinstance(first.to_raw(), RawMarket)
        assert again.yes_price == first.yes_price
        assert again.no_price == first.no_price
        assert again.token_ids == first.token_ids
        assert again.outcomes == first.outcomes


def test_normalize_accepts_processed_market_and_its_dump(binary_market):
    first = normalize_market(binary_market("m1"))
    for again in (normalize_market(first), normalize_market(first.model_dump(by_alias=True))):
        assert again.yes_price == 0.65
        assert again.no_price == 0.35
        assert again.token_ids == ["m1-yes", "m1-no"]
        assert [o.price for o in again.outcomes] == ["65%", "35%"]


def test_normalize_market_degrades_instead_of_raising():
    m = normalize_market({"question": "no id", "outcomes": '["Yes","No"]', "outcomePrices": '["0.4","0.6"]'})
    assert m.id == ""
    assert m.yes_price == 0.4
    m = normalize_market({"id": "m1", "active": "maybe", "tags": "politics", "question": None})
    assert (m.id, m.question, m.active, m.tags) == ("m1", "", None, None)


def test_volume24hr_keeps_its_wire_name():
    body = normalize_market({"id": "m1", "volume24hr": "12"}).model_dump(by_alias=True)
    assert body["volume24hr"] == "12"
    assert "volume24Hr" not in body


def test_history_point_field_precedence():
    assert normalize_history_point({"t": 100, "p": 0.4}).model_dump() == {"t": 100, "p": 0.4}
    pt = normalize_history_point({"timestamp": "200", "price": "0.3"})
    assert (pt.t, pt.p) == (200, 0.3)
    pt = normalize_history_point({"createdAt": "1970-01-01T00:05:00Z", "outcomePrices": '["0.7","0.3"]'})
    assert (pt.t, pt.p) == (300, 0.7)
    pt = normalize_history_point({"t": 100, "timestamp": 999, "p": 0.2, "price": 0.9})
    assert (pt.t, pt.p) == (100, 0.2)


def test_history_point_drops_invalid():
    assert normalize_history_point({"t": 100, "p": 0}) is None
    assert normalize_history_point({"t": 100, "p": -0.1}) is None
    assert normalize_history_point({"t": 100, "p": "x"}) is None
    assert normalize_history_point({"p": 0.5}) is None
    assert normalize_history_point("nope") is None


def test_parse_book_levels_parses_strings_and_drops_garbage():
    levels = parse_book_levels(
        [{"price": "0.52", "size": "100"}, {"price": "bad", "size": "1"}, "x", {"price": 0.5, "size": 3}]
    )
    assert [(lev.price, lev.size) for lev in levels] == [(0.52, 100.0), (0.5, 3.0)]
    assert parse_book_levels(None) == []

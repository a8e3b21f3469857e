"""Order-book adapter: parsing, ordering and synthetic fallback."""

import asyncio
import random

from betwixt.orderbook.adapter import fetch_order_book


def test_no_token_id_returns_none(fake_clob):
    clob = fake_clob(book={"bids": [], "asks": []})
    assert asyncio.run(fetch_order_book(clob, "")) is None
    assert asyncio.run(fetch_order_book(clob, None)) is None
    assert clob.book_calls == []


def test_book_levels_parsed_and_sorted(fake_clob):
    clob = fake_clob(
        book={
            "bids": [{"price": "0.48", "size": "10"}, {"price": "0.50", "size": "100"}, {"price": "0.49", "size": "5"}],
            "asks": [{"price": "0.55", "size": "7"}, {"price": "0.52", "size": "80"}],
        }
    )
    book = asyncio.run(fetch_order_book(clob, "tok"))
    assert not book.synthetic
    assert [(lev.price, lev.size) for lev in book.bids] == [(0.5, 100.0), (0.49, 5.0), (0.48, 10.0)]
    assert [lev.price for lev in book.asks] == [0.52, 0.55]
    assert book.best_bid == 0.5
    assert book.best_ask == 0.52
    assert abs(book.spread - 0.02) < 1e-9
    assert clob.book_calls == ["tok"]


def test_missing_sides_are_empty(fake_clob):
    book = asyncio.run(fetch_order_book(fake_clob(book={"market": "x"}), "tok"))
    assert book.bids == [] and book.asks == []
    assert book.spread is None


def test_upstream_failure_synthesizes_book(fake_clob):
    book = asyncio.run(fetch_order_book(fake_clob(book=None), "tok", rng=random.Random(3)))
    assert book.synthetic
    assert len(book.bids) == 10 and len(book.asks) == 10
    bid_prices = [lev.price for lev in book.bids]
    ask_prices = [lev.price for lev in book.asks]
    assert bid_prices == sorted(bid_prices, reverse=True)
    assert ask_prices == sorted(ask_prices)
    assert all(0.3 <= p <= 0.51 for p in bid_prices)
    assert all(0.5 <= p <= 0.7 for p in ask_prices)
    assert all(100 <= lev.size <= 1100 for lev in book.bids + book.asks)


def test_malformed_payload_synthesizes_book(fake_clob):
    book = asyncio.run(fetch_order_book(fake_clob(book=ValueError("bad json")), "tok"))
    assert book.synthetic

"""LLM market insights: summary payload, analyst prompt, Groq chat-completions call."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from betwixt.insights.cache import InsightCache
from betwixt.models.history import PriceHistoryPoint
from betwixt.models.market import MarketDetails, OutcomeWithPrice
from betwixt.models.orderbook import OrderBook

log = structlog.get_logger(__name__)

SYSTEM_PROMPT = "You are a concise prediction market analyst. Respond with well-structured markdown."
HISTORY_SAMPLE_SIZE = 50


class InsightError(Exception):
    status_code = 500
    code = "insight_error"


class InsightRequestError(InsightError):
    status_code = 400
    code = "bad_request"


class InsightConfigError(InsightError):
    status_code = 500
    code = "not_configured"


class InsightUpstreamError(InsightError):
    status_code = 502
    code = "upstream_error"


class InsightRequest(BaseModel):
    """Market summary handed to the insight generator."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    market_id: str | None = None
    question: str | None = None
    outcomes: list[OutcomeWithPrice] = Field(default_factory=list)
    yes_price: float | None = None
    no_price: float | None = None
    volume24hr: str | None = Field(None, alias="volume24hr")
    liquidity: str | None = None
    end_date: str | None = None
    description: str | None = None
    price_history: list[PriceHistoryPoint] = Field(default_factory=list)
    order_book_summary: str | None = None


@dataclass
class InsightResult:
    insight: str
    cached: bool


def sample_history(points: list[PriceHistoryPoint], size: int = HISTORY_SAMPLE_SIZE) -> list[PriceHistoryPoint]:
    """Evenly spaced subset of at most size points, always keeping the first and last."""
    if len(points) <= size or size < 2:
        return list(points)
    step = (len(points) - 1) / (size - 1)
    return [points[round(i * step)] for i in range(size)]


def summarize_order_book(book: OrderBook | None, levels: int = 10) -> str | None:
    if book is None or not (book.bids or book.asks):
        return None
    parts = []
    if book.best_bid is not None:
        parts.append(f"best bid {book.best_bid * 100:.1f}%")
    if book.best_ask is not None:
        parts.append(f"best ask {book.best_ask * 100:.1f}%")
    if book.spread is not None:
        parts.append(f"spread {book.spread * 100:.1f} pts")
    bid_depth = sum(lev.size for lev in book.bids[:levels])
    ask_depth = sum(lev.size for lev in book.asks[:levels])
    parts.append(f"depth {bid_depth:.0f} bid / {ask_depth:.0f} ask (top {levels} levels)")
    return ", ".join(parts)


def build_insight_request(
    details: MarketDetails,
    history: list[PriceHistoryPoint] | None = None,
    book: OrderBook | None = None,
) -> InsightRequest:
    """Summary payload for one market from its detail view."""
    return InsightRequest(
        market_id=details.id,
        question=details.question,
        outcomes=details.outcomes,
        yes_price=details.yes_price,
        no_price=details.no_price,
        volume24hr=details.volume24hr,
        liquidity=details.liquidity,
        end_date=details.end_date,
        description=details.description,
        price_history=sample_history(history if history is not None else details.price_history or []),
        order_book_summary=summarize_order_book(book),
    )


def _trend_text(points: list[PriceHistoryPoint]) -> str:
    if len(points) < 2:
        return ""
    first, last = points[0], points[-1]
    change = (last.p - first.p) * 100
    direction = "up" if last.p > first.p else "down" if last.p < first.p else "flat"
    return (
        f"Price trend: {direction} {change:.1f}% (from {first.p * 100:.1f}% to {last.p * 100:.1f}%) "
        f"over {len(points)} data points."
    )


def _time_text(end_date: str | None, now: float) -> str:
    if not end_date:
        return ""
    try:
        end = datetime.fromisoformat(end_date.replace("Z", "+00:00"))
    except ValueError:
        return ""
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    remaining = end.timestamp() - now
    if remaining > 0:
        return f"Time remaining: {int(remaining // 86400)} days until resolution."
    return "Market has ended."


def build_prompt(req: InsightRequest, now: float | None = None) -> str:
    now = time.time() if now is None else now
    outcomes_text = ", ".join(f"{o.outcome}: {o.price}" for o in req.outcomes) or "N/A"
    lines = [
        "You are a prediction market analyst for Betwixt, a Polymarket dashboard. "
        "Analyze this market and provide concise, actionable insights. Be direct and data-driven.",
        "",
        f'MARKET: "{req.question}"',
    ]
    if req.description:
        lines.append(f"DESCRIPTION: {req.description}")
    lines.append(f"CURRENT PRICES: {outcomes_text}")
    if req.yes_price is not None:
        no_text = f"{req.no_price * 100:.1f}%" if req.no_price is not None else "N/A"
        lines.append(f"Yes: {req.yes_price * 100:.1f}% | No: {no_text}")
    lines.append(f"24H VOLUME: ${req.volume24hr or '0'}")
    lines.append(f"LIQUIDITY: ${req.liquidity or '0'}")
    for extra in (_trend_text(req.price_history), _time_text(req.end_date, now)):
        if extra:
            lines.append(extra)
    if req.order_book_summary:
        lines.append(f"ORDER BOOK: {req.order_book_summary}")
    lines += [
        "",
        "Provide your analysis in this exact format (use markdown):",
        "",
        "**Market Summary**",
        "One short paragraph explaining what this market is predicting in plain English.",
        "",
        "**Trend Analysis**",
        "2-3 sentences analyzing recent price movement, momentum, and what it signals about market sentiment.",
        "",
        "**Key Signals**",
        "- Bullet point 1 (most important signal)",
        "- Bullet point 2",
        "- Bullet point 3",
        "",
        "**Outlook**",
        "One sentence summarizing the overall market stance (bullish/bearish/neutral) with brief reasoning.",
        "",
        "Keep the total response under 200 words. Be specific with numbers. Do not give financial advice.",
    ]
    return "\n".join(lines)


class InsightGenerator:
    """Generates analysis text through Groq's OpenAI-compatible API, cached per market id."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.groq.com/openai/v1",
        model: str = "llama-3.3-70b-versatile",
        cache: InsightCache | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.cache = cache or InsightCache()
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _payload(self, req: InsightRequest) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(req)},
            ],
            "temperature": 0.6,
            "max_tokens": 512,
        }

    async def generate(self, req: InsightRequest) -> InsightResult:
        if not self.api_key:
            raise InsightConfigError("GROQ_API_KEY not configured")
        if not req.market_id or not req.question:
            raise InsightRequestError("marketId and question are required")

        cached = self.cache.get(req.market_id)
        if cached is not None:
            return InsightResult(insight=cached, cached=True)

        try:
            resp = await self._client.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=self._payload(req),
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.error("insight_request_failed", market_id=req.market_id, error=str(e))
            raise InsightUpstreamError(str(e) or "Failed to generate AI insight") from e

        try:
            text = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            text = ""
        text = text or "No insight generated."
        self.cache.set(req.market_id, text)
        log.info("insight_generated", market_id=req.market_id, chars=len(text))
        return InsightResult(insight=text, cached=False)

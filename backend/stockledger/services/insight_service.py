# Overview: Business recommendations for the reports view, from a pluggable provider.

from __future__ import annotations

from typing import Any, Protocol

import httpx
from flask import current_app


FALLBACK_INSIGHTS = (
    "Optimize stock for high-demand items.",
    "Review shipping costs for Ecotact products.",
    "Focus on Finca Don Rafa seasonal peaks.",
)

MAX_INSIGHTS = 5

SUMMARY_FIELDS = ("brand", "period", "totalSales", "revenue", "lowStockItems")


class InsightProviderError(RuntimeError):
    """Raised by a provider when it cannot produce a usable answer."""


class InsightProvider(Protocol):
    provider: str

    def generate(self, summary: dict[str, Any]) -> list[str]:
        ...


class StubInsightProvider:
    """Offline rules over the summary numbers."""

    provider = "stub"

    def generate(self, summary: dict[str, Any]) -> list[str]:
        brand = summary.get("brand") or "the brand"
        period = summary.get("period") or "period"
        low = int(summary.get("lowStockItems") or 0)
        sales = int(summary.get("totalSales") or 0)
        revenue = float(summary.get("revenue") or 0)

        insights = []
        if low:
            insights.append(f"Restock {low} low-stock item{'s' if low != 1 else ''} for {brand} before the next {period} cycle.")
        if sales == 0:
            insights.append(f"No confirmed sales for {brand} this {period}; follow up on pending quotes.")
        else:
            insights.append(f"Average confirmed order value for {brand} is ${revenue / sales:,.2f}.")
        insights.append("Review shipping costs for products moved between locations.")
        return insights


class HttpInsightProvider:
    """
    POSTs the summary as JSON and expects {"insights": ["...", ...]}.

    transport is passed straight to httpx.Client (tests use MockTransport).
    """

    provider = "http"

    def __init__(
        self,
        *,
        url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        if not url:
            raise ValueError("INSIGHTS_URL is required when INSIGHTS_PROVIDER=http")
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def generate(self, summary: dict[str, Any]) -> list[str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            response = client.post(self.url, json=summary, headers=headers)
            response.raise_for_status()
            payload = response.json()

        if not isinstance(payload, dict) or not isinstance(payload.get("insights"), list):
            raise InsightProviderError("Insight response has no 'insights' list")
        return payload["insights"]


def get_provider() -> InsightProvider:
    name = str(current_app.config.get("INSIGHTS_PROVIDER", "stub")).strip().lower()
    if name == "stub":
        return StubInsightProvider()
    if name == "http":
        return HttpInsightProvider(
            url=current_app.config.get("INSIGHTS_URL"),
            api_key=current_app.config.get("INSIGHTS_API_KEY"),
            timeout=float(current_app.config.get("INSIGHTS_TIMEOUT_SECONDS", 10.0)),
        )
    raise ValueError(f"Unsupported INSIGHTS_PROVIDER: {name}")


def _clean(raw) -> list[str]:
    cleaned = []
    for item in raw or []:
        if not isinstance(item, str):
            continue
        text = item.strip()
        if text:
            cleaned.append(text)
        if len(cleaned) == MAX_INSIGHTS:
            break
    return cleaned


def get_report_insights(summary: dict[str, Any], provider: InsightProvider | None = None) -> list[str]:
    """
    1-5 recommendation strings for a report summary.

    Never raises: any provider failure (configuration, network, status,
    malformed body) or an empty answer yields FALLBACK_INSIGHTS.
    """
    payload = {key: summary.get(key) for key in SUMMARY_FIELDS}
    try:
        provider = provider or get_provider()
        insights = _clean(provider.generate(payload))
    except Exception:
        current_app.logger.exception("Insight generation failed for %s", payload.get("brand"))
        return list(FALLBACK_INSIGHTS)

    if not insights:
        current_app.logger.warning("Insight provider %s returned nothing usable", provider.provider)
        return list(FALLBACK_INSIGHTS)
    return insights

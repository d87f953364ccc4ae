"""Web search used for explicit ``cari ...`` requests and the AI fallback.

Providers:
- "brave"      -> Brave Search API (needs api_key / BRAVE_API_KEY)
- "duckduckgo" -> DuckDuckGo Lite via jina-ai mirror (no API key)

A configured Brave key wins; otherwise DuckDuckGo is the no-key baseline.
"""

import html
import os
import re
from typing import Any
from urllib.parse import parse_qs, quote_plus, unquote, urlparse

import httpx
from loguru import logger

from asisbot.agent.tools.base import Tool
from asisbot.errors import SearchError

USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_7_2) AppleWebKit/537.36"

SEARCH_FAILED = "Maaf, pencarian lagi bermasalah 😅 Coba lagi nanti ya."
SEARCH_EMPTY = "Aku belum nemu info soal itu 😅"


class WebSearchTool(Tool):
    """Best-effort web search returning a short plain-text summary."""

    name = "web_search"
    description = "Search the web. Returns titles, URLs, and snippets."

    def __init__(
        self,
        provider: str = "duckduckgo",
        api_key: str | None = None,
        max_results: int = 3,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.provider = (provider or "duckduckgo").strip().lower()
        self.api_key = api_key or os.environ.get("BRAVE_API_KEY", "")
        self.max_results = max_results
        self.timeout = timeout
        self._transport = transport

    async def search(self, query: str) -> str:
        """Return a summary of the top results, or ``""`` when nothing was found.

        Raises:
            SearchError: the provider could not be reached or answered garbage.
        """
        if self.provider == "brave" and self.api_key:
            results = await self._search_brave(query)
        else:
            results = await self._search_duckduckgo(query)
        return self._summarize(results)

    async def execute(self, query: str = "", **kwargs: Any) -> str:
        try:
            summary = await self.search(query)
        except SearchError as exc:
            logger.warning(f"Web search failed for {query!r}: {exc}")
            return SEARCH_FAILED
        return summary or SEARCH_EMPTY

    def _summarize(self, results: list[dict[str, str]]) -> str:
        lines: list[str] = []
        for i, item in enumerate(results[: self.max_results], 1):
            lines.append(f"{i}. {item['title']}")
            if item.get("snippet"):
                lines.append(f"   {item['snippet']}")
            lines.append(f"   {item['url']}")
        return "\n".join(lines)

    # -- Brave --------------------------------------------------------

    async def _search_brave(self, query: str) -> list[dict[str, str]]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(
                    "https://api.search.brave.com/res/v1/web/search",
                    params={"q": query, "count": self.max_results},
                    headers={"Accept": "application/json", "X-Subscription-Token": self.api_key},
                )
                r.raise_for_status()
                payload = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SearchError(f"brave: {exc}") from exc
        if not isinstance(payload, dict):
            raise SearchError("brave: unexpected payload")
        items = (payload.get("web") or {}).get("results") or []
        return [
            {
                "title": _strip_tags(item.get("title", "")),
                "url": item.get("url", ""),
                "snippet": _strip_tags(item.get("description", "")),
            }
            for item in items
            if item.get("url")
        ]

    # -- DuckDuckGo (no key) -------------------------------------------

    async def _search_duckduckgo(self, query: str) -> list[dict[str, str]]:
        mirror_url = f"https://r.jina.ai/http://lite.duckduckgo.com/lite/?q={quote_plus(query)}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True, transport=self._transport,
            ) as client:
                r = await client.get(mirror_url, headers={"User-Agent": USER_AGENT})
                r.raise_for_status()
        except httpx.HTTPError as exc:
            raise SearchError(f"duckduckgo: {exc}") from exc
        return extract_duckduckgo_results(r.text, self.max_results)


def _strip_tags(text: str) -> str:
    text = re.sub(r"<[^>]+>", "", text or "")
    return html.unescape(text).strip()


_DDG_RESULT_RE = re.compile(
    r"(?ms)^\s*\d+\.\[(?P<title>.+?)\]\((?P<url>https?://[^\s)]+)\)\s*"
    r"(?P<snippet>.*?)(?=^\s*\d+\.\[|\Z)"
)


def extract_duckduckgo_results(body: str, limit: int) -> list[dict[str, str]]:
    """Parse the markdown rendering of DuckDuckGo Lite served by r.jina.ai."""
    marker = "Markdown Content:"
    text = body.split(marker, 1)[1] if marker in body else body
    results: list[dict[str, str]] = []
    for match in _DDG_RESULT_RE.finditer(text):
        title = html.unescape(match.group("title").strip())
        url = _unwrap_duckduckgo_redirect(match.group("url").strip())
        if not title or not url:
            continue
        results.append({"title": title, "url": url, "snippet": _first_line(match.group("snippet"))})
        if len(results) >= limit:
            break
    return results


def _first_line(raw: str) -> str:
    lines = [line.strip() for line in raw.splitlines() if line.strip()]
    if not lines:
        return ""
    return html.unescape(re.sub(r"\*\*(.*?)\*\*", r"\1", lines[0]))


def _unwrap_duckduckgo_redirect(url: str) -> str:
    parsed = urlparse(url)
    if "duckduckgo.com" not in parsed.netloc or parsed.path != "/l/":
        return url
    target = parse_qs(parsed.query).get("uddg", [""])[0]
    return unquote(target) if target else url

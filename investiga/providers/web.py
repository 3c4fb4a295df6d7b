"""Free web search providers: Wikipedia, DuckDuckGo and GitHub."""

from __future__ import annotations

from typing import Any, List
from urllib.parse import quote

from investiga.normalization.field_picker import FieldPicker, as_text, dig
from investiga.providers.base import BaseProvider, ProviderError, SearchOptions, strip_html
from investiga.providers.models import Provider, SearchItem

WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"
DUCKDUCKGO_API_URL = "https://api.duckduckgo.com/"
GITHUB_SEARCH_URL = "https://api.github.com/search/repositories"

_DDG_TITLE = FieldPicker.keys("Heading")
_DDG_URL = FieldPicker.keys("AbstractURL")


def normalize_wikipedia(query: str, payload: Any, *, limit: int = 5) -> List[SearchItem]:
    results = dig(payload, ("query", "search"))
    if not isinstance(results, list):
        return []
    items: List[SearchItem] = []
    for entry in results[:limit]:
        if not isinstance(entry, dict) or not entry.get("title"):
            continue
        title = str(entry["title"])
        items.append(
            SearchItem(
                title=title,
                description=strip_html(entry.get("snippet")) or None,
                url=f"https://en.wikipedia.org/wiki/{quote(title)}",
                source=Provider.WIKIPEDIA,
            )
        )
    return items


def normalize_duckduckgo(query: str, payload: Any, *, limit: int = 5) -> List[SearchItem]:
    """RelatedTopics with text; falls back to the abstract when there are none."""
    if not isinstance(payload, dict):
        return []

    topics = payload.get("RelatedTopics")
    items: List[SearchItem] = []
    for topic in topics if isinstance(topics, list) else []:
        if len(items) >= limit:
            break
        if not isinstance(topic, dict) or not as_text(topic.get("Text")):
            continue
        items.append(
            SearchItem(
                title=topic["Text"],
                description=topic["Text"],
                url=as_text(topic.get("FirstURL")),
                source=Provider.DUCKDUCKGO,
            )
        )

    abstract = payload.get("AbstractText")
    if not items and as_text(abstract):
        items.append(
            SearchItem(
                title=_DDG_TITLE.pick(payload, default=query),
                description=abstract,
                url=_DDG_URL.pick(payload, default=f"https://duckduckgo.com/?q={quote(query)}"),
                source=Provider.DUCKDUCKGO,
            )
        )
    return items


def normalize_github(query: str, payload: Any, *, limit: int = 5) -> List[SearchItem]:
    repos = payload.get("items") if isinstance(payload, dict) else None
    if not isinstance(repos, list):
        return []
    items: List[SearchItem] = []
    for repo in repos[:limit]:
        if not isinstance(repo, dict) or not as_text(repo.get("full_name")):
            continue
        items.append(
            SearchItem(
                title=repo["full_name"],
                description=as_text(repo.get("description")) or "",
                url=as_text(repo.get("html_url")),
                source=Provider.GITHUB,
                stars=repo.get("stargazers_count"),
            )
        )
    return items


class WikipediaProvider(BaseProvider):
    provider = Provider.WIKIPEDIA

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        if not query:
            return []
        params = {
            "action": "query",
            "list": "search",
            "srsearch": query,
            "format": "json",
            "srlimit": self.max_items,
            "utf8": 1,
        }
        status, data = await self._get_json(WIKIPEDIA_API_URL, params=params)
        if data is None:
            raise ProviderError(f"Wikipedia HTTP {status}")
        return normalize_wikipedia(query, data, limit=self.max_items)


class DuckDuckGoProvider(BaseProvider):
    provider = Provider.DUCKDUCKGO

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        if not query:
            return []
        params = {"q": query, "format": "json", "no_redirect": 1, "no_html": 1}
        status, data = await self._get_json(DUCKDUCKGO_API_URL, params=params)
        if data is None:
            raise ProviderError(f"DuckDuckGo HTTP {status}")
        return normalize_duckduckgo(query, data, limit=self.max_items)


class GitHubProvider(BaseProvider):
    provider = Provider.GITHUB

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        if not query:
            return []
        headers = {"Accept": "application/vnd.github+json"}
        if self.credentials.github_token:
            headers["Authorization"] = f"Bearer {self.credentials.github_token}"
        params = {"q": query, "per_page": self.max_items}
        status, data = await self._get_json(GITHUB_SEARCH_URL, params=params, headers=headers)
        if data is None:
            raise ProviderError(f"GitHub HTTP {status}")
        return normalize_github(query, data, limit=self.max_items)

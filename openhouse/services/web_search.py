"""Web search client used to ground idea validation in current market data."""

import os

import httpx
import structlog

logger = structlog.get_logger(__name__)

SEARCH_UNAVAILABLE = "Web search temporarily unavailable."
SEARCH_FAILED = "Unable to fetch web results at this time."


class WebSearchClient:
    """Serper (Google search) client.

    Search failures never propagate: callers get a short placeholder string
    and validation continues without fresh web context.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        num_results: int = 5,
    ):
        """Initialize web search client.

        Args:
            api_key: Serper API key (defaults to SERPER_API_KEY env var)
            base_url: API root (defaults to SERPER_API_URL env var or the public API)
            http_client: Preconfigured HTTP client (tests inject a mock transport)
            num_results: Number of organic results to request and format
        """
        self.api_key = api_key if api_key is not None else os.getenv("SERPER_API_KEY")
        self.base_url = base_url or os.getenv("SERPER_API_URL", "https://google.serper.dev")
        self.num_results = num_results
        self.http_client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(10.0),
        )

    @property
    def is_configured(self) -> bool:
        """An API key is available."""
        return bool(self.api_key)

    async def search(self, query: str) -> str:
        """Search the web and format the results as prompt context.

        Args:
            query: Search query

        Returns:
            Formatted results, or a placeholder message on failure
        """
        if not self.api_key:
            logger.error("web_search_not_configured")
            return SEARCH_UNAVAILABLE

        try:
            response = await self.http_client.post(
                "/search",
                headers={"X-API-KEY": self.api_key},
                json={"q": query, "num": self.num_results},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("web_search_failed", error=str(exc))
            return SEARCH_FAILED

        return self.format_results(data)

    def format_results(self, data: dict) -> str:
        """Format organic results and the answer box."""
        parts = ["\n--- Web Search Results ---\n"]

        for index, result in enumerate((data.get("organic") or [])[: self.num_results], 1):
            parts.append(f"\n{index}. {result.get('title', '')}\n")
            parts.append(f"   {result.get('snippet', '')}\n")
            if result.get("link"):
                parts.append(f"   Source: {result['link']}\n")

        answer_box = data.get("answerBox")
        if answer_box:
            answer = answer_box.get("answer") or answer_box.get("snippet")
            parts.append(f"\n--- Quick Answer ---\n{answer}\n")

        return "".join(parts)

    async def close(self) -> None:
        """Close HTTP client."""
        await self.http_client.aclose()

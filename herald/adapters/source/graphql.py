"""GraphQL finding source adapter.

Implements FindingSourcePort by querying the security testing tool's
GraphQL API for findings and normalizing them into core Finding models.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

import httpx

from herald.core.models import Finding
from herald.core.ports import FindingSourcePort

logger = logging.getLogger(__name__)

FINDINGS_QUERY = """
query GetFindings {
  findings {
    nodes {
      id
      title
      description
      reporter
      host
      path
      createdAt
    }
  }
}
"""


def parse_timestamp_ms(created_at: str | None, default_ms: int) -> int:
    """Convert an ISO-8601 creation time to epoch milliseconds.

    Returns default_ms when the value is missing or unparseable. Naive
    times are taken as UTC.
    """
    if not created_at:
        return default_ms
    try:
        parsed = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable createdAt {created_at!r}, using current time")
        return default_ms
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


class GraphQLFindingSource(FindingSourcePort):
    """Fetches findings over HTTP from a GraphQL endpoint."""

    def __init__(
        self,
        api_url: str,
        api_token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the GraphQL source.

        Args:
            api_url: Full GraphQL endpoint URL.
            api_token: Optional bearer token.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.api_url = api_url
        self.api_token = api_token
        self.client = httpx.AsyncClient(
            headers=self._get_headers(),
            timeout=timeout,
            transport=transport,
        )

    def _get_headers(self) -> dict[str, str]:
        """Build request headers."""
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.client.aclose()

    async def close(self) -> None:
        """Close the httpx client and clean up resources."""
        await self.client.aclose()

    async def get_findings(self) -> list[Finding]:
        """Return all findings reported by the GraphQL API.

        Raises:
            httpx.HTTPError: If the request fails.
            RuntimeError: If the response carries GraphQL errors.
        """
        try:
            response = await self.client.post(
                self.api_url,
                json={"query": FINDINGS_QUERY, "operationName": "GetFindings"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch findings: {e}")
            raise

        payload = response.json()

        errors = payload.get("errors") or []
        if errors:
            messages = ", ".join(str(e.get("message", e)) for e in errors)
            logger.error(f"GraphQL errors: {errors}")
            raise RuntimeError(f"GraphQL query failed: {messages}")

        nodes = ((payload.get("data") or {}).get("findings") or {}).get("nodes") or []

        now = int(time.time() * 1000)
        findings = []
        for node in nodes:
            finding = self._parse_finding(node, now)
            if finding is not None:
                findings.append(finding)
        return findings

    @staticmethod
    def _parse_finding(node: dict[str, Any], now_ms: int) -> Finding | None:
        """Convert a GraphQL node to a Finding, skipping nodes without an id."""
        finding_id = node.get("id")
        if not finding_id:
            logger.warning(f"Skipping finding without id: {node}")
            return None

        created_at = node.get("createdAt")
        return Finding(
            id=str(finding_id),
            title=node.get("title") or "",
            reporter=node.get("reporter") or "",
            description=node.get("description") or "",
            created_at=created_at,
            timestamp=parse_timestamp_ms(created_at, now_ms),
        )

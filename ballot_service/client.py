"""
Async HTTP client for the Ballot API.

Used by administrative tooling and user-facing clients. Error responses from
the service are raised again as the matching domain exception, so callers
handle ``AlreadyVotedError`` and friends the same way they would in-process.
"""
import logging
from urllib.parse import quote
from typing import Any, Dict, List, Optional

import httpx

from .shared import Candidate, error_from_payload

logger = logging.getLogger(__name__)

DEFAULT_CALLER_HEADER = "X-Caller-Address"


class BallotClient:
    """
    Client bound to one caller identity.

    Args:
        base_url: Service root, e.g. ``http://localhost:8000``
        caller: Identity sent with every request
        api_version: Route version segment
        transport: Optional httpx transport (an ``ASGITransport`` in tests)
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        caller: Optional[str] = None,
        api_version: str = "v1",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
        caller_header: str = DEFAULT_CALLER_HEADER
    ):
        headers = {caller_header: caller} if caller else {}
        self.caller = caller
        self.prefix = f"/api/{api_version}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            transport=transport,
            timeout=timeout
        )

    async def __aenter__(self) -> 'BallotClient':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._client.request(method, f"{self.prefix}{path}", **kwargs)
        if response.is_success:
            return response.json()

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if isinstance(payload, dict) and "error" in payload:
            error = error_from_payload(payload)
            logger.debug(f"{method} {path} rejected: {error.error_type}")
            raise error
        response.raise_for_status()
        return payload

    async def deploy(self, candidate_names: List[str], duration_minutes: int) -> Dict[str, Any]:
        """Deploy the ballot with this client's caller as administrator."""
        return await self._request(
            "POST", "/ballot",
            json={"candidate_names": candidate_names, "duration_minutes": duration_minutes}
        )

    async def get_summary(self) -> Dict[str, Any]:
        return await self._request("GET", "/ballot")

    async def get_administrator(self) -> str:
        data = await self._request("GET", "/ballot/administrator")
        return data["administrator"]

    async def cast_vote(self, candidate_index: int) -> Candidate:
        data = await self._request("POST", "/vote", json={"candidate_index": candidate_index})
        candidate = data["candidate"]
        return Candidate(name=candidate["name"], vote_count=candidate["vote_count"])

    async def add_candidate(self, name: str) -> int:
        """Append a candidate and return its index."""
        data = await self._request("POST", "/candidates", json={"name": name})
        return data["index"]

    async def get_all_candidates(self) -> List[Candidate]:
        data = await self._request("GET", "/candidates")
        return [Candidate(name=c["name"], vote_count=c["vote_count"]) for c in data]

    async def get_voting_status(self) -> bool:
        data = await self._request("GET", "/status")
        return data["voting_open"]

    async def get_remaining_time(self) -> int:
        data = await self._request("GET", "/remaining-time")
        return data["remaining_seconds"]

    async def has_voted(self, address: str) -> bool:
        data = await self._request("GET", f"/voters/{quote(address, safe='')}")
        return data["has_voted"]


__all__ = ['BallotClient']

"""Integration tests for double-vote prevention.

Tests that each caller identity is counted once, that rejected attempts leave
every tally unchanged, and that identities are compared exactly.
"""

import httpx
import pytest

from .conftest import OWNER, VOTER1, VOTER2


async def tallies(api_client: httpx.AsyncClient, api_prefix: str) -> list:
    candidates = (await api_client.get(f"{api_prefix}/candidates")).json()
    return [c["vote_count"] for c in candidates]


@pytest.mark.asyncio
class TestDuplicateDetection:
    """Tests for duplicate vote detection and handling."""

    async def test_same_vote_twice_counts_once(
        self,
        api_client: httpx.AsyncClient,
        api_prefix: str,
        as_caller,
        deployed_store
    ):
        """Submit the same vote twice; the count is 1, not 2."""
        response1 = await api_client.post(
            f"{api_prefix}/vote", json={"candidate_index": 1}, headers=as_caller(VOTER1)
        )
        response2 = await api_client.post(
            f"{api_prefix}/vote", json={"candidate_index": 1}, headers=as_caller(VOTER1)
        )

        assert response1.status_code == 200
        assert response2.status_code == 409
        assert await tallies(api_client, api_prefix) == [0, 1, 0]

    async def test_five_attempts_count_once(
        self,
        api_client: httpx.AsyncClient,
        api_prefix: str,
        as_caller,
        deployed_store
    ):
        """Five attempts across all candidates: one accepted, four rejected."""
        codes = []
        for i in range(5):
            response = await api_client.post(
                f"{api_prefix}/vote", json={"candidate_index": i % 3}, headers=as_caller(VOTER2)
            )
            codes.append(response.status_code)

        assert codes == [200, 409, 409, 409, 409]
        assert await tallies(api_client, api_prefix) == [1, 0, 0]

    async def test_rejected_out_of_range_vote_keeps_voter_eligible(
        self,
        api_client: httpx.AsyncClient,
        api_prefix: str,
        as_caller,
        deployed_store
    ):
        invalid = await api_client.post(
            f"{api_prefix}/vote", json={"candidate_index": 7}, headers=as_caller(VOTER1)
        )
        valid = await api_client.post(
            f"{api_prefix}/vote", json={"candidate_index": 0}, headers=as_caller(VOTER1)
        )

        assert invalid.status_code == 400
        assert valid.status_code == 200
        assert await tallies(api_client, api_prefix) == [1, 0, 0]

    async def test_administrator_votes_once(
        self,
        api_client: httpx.AsyncClient,
        api_prefix: str,
        as_caller,
        deployed_store
    ):
        first = await api_client.post(
            f"{api_prefix}/vote", json={"candidate_index": 2}, headers=as_caller(OWNER)
        )
        second = await api_client.post(
            f"{api_prefix}/vote", json={"candidate_index": 2}, headers=as_caller(OWNER)
        )

        assert first.status_code == 200
        assert second.status_code == 409

    async def test_identities_are_distinct_strings(
        self,
        api_client: httpx.AsyncClient,
        api_prefix: str,
        as_caller,
        deployed_store
    ):
        """Identities are opaque; differently cased strings are separate voters."""
        await api_client.post(
            f"{api_prefix}/vote", json={"candidate_index": 0}, headers=as_caller(VOTER1)
        )
        response = await api_client.post(
            f"{api_prefix}/vote", json={"candidate_index": 0}, headers=as_caller(VOTER1.lower())
        )

        assert response.status_code == 200
        assert await tallies(api_client, api_prefix) == [2, 0, 0]

    async def test_vote_sum_matches_voter_count(
        self,
        api_client: httpx.AsyncClient,
        api_prefix: str,
        as_caller,
        deployed_store
    ):
        voters = [f"0x{i:040x}" for i in range(1, 11)]
        for i, voter in enumerate(voters):
            await api_client.post(
                f"{api_prefix}/vote", json={"candidate_index": i % 3}, headers=as_caller(voter)
            )
            await api_client.post(
                f"{api_prefix}/vote", json={"candidate_index": 0}, headers=as_caller(voter)
            )

        assert sum(await tallies(api_client, api_prefix)) == len(voters)
        for voter in voters:
            data = (await api_client.get(f"{api_prefix}/voters/{voter}")).json()
            assert data["has_voted"] is True

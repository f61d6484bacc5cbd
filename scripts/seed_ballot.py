#!/usr/bin/env python3
"""
Deploy a ballot on a running Ballot API and cast simulated votes.

Usage:
    python scripts/seed_ballot.py --candidates Alice Bob Charlie --duration 30 --voters 50

The administrator and voter identities are generated hex addresses. The API
URL comes from --url, or BALLOT_API_URL (read from the environment / .env).
"""
import argparse
import asyncio
import os
import random
import sys

from dotenv import load_dotenv

from ballot_service.client import BallotClient
from ballot_service.shared import AlreadyVotedError, BallotError, format_results

load_dotenv()

DEFAULT_API_URL = os.getenv('BALLOT_API_URL', 'http://localhost:8000')


def make_address(seed: int) -> str:
    """Deterministic 20-byte hex address for a test identity."""
    return "0x" + f"{seed:040x}"


async def seed(url: str, candidates: list, duration: int, voters: int, admin: str) -> int:
    async with BallotClient(url, caller=admin) as client:
        try:
            summary = await client.deploy(candidates, duration)
            print(f"✅ Ballot deployed by {summary['administrator']}")
            print(f"   Deadline: {summary['deadline']} ({summary['remaining_seconds']}s left)")
        except BallotError as e:
            print(f"⚠️  {e.error_type}: {e}; voting on the existing ballot")

        candidate_count = len(await client.get_all_candidates())
        if candidate_count == 0:
            print("❌ Ballot has no candidates, nothing to vote for")
            return 1

    print(f"\n🗳️  Casting {voters} votes...")
    recorded = 0
    rejected = 0
    for i in range(1, voters + 1):
        async with BallotClient(url, caller=make_address(i)) as voter:
            try:
                await voter.cast_vote(random.randrange(candidate_count))
                recorded += 1
            except AlreadyVotedError:
                rejected += 1
            except BallotError as e:
                print(f"❌ Voter {i} rejected: {e.error_type}: {e}")
                rejected += 1

    async with BallotClient(url) as reader:
        candidates_now = await reader.get_all_candidates()
        voting_open = await reader.get_voting_status()

    print(f"\n   Recorded: {recorded}, rejected: {rejected}")
    print(format_results(candidates_now, voting_open))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed a Ballot API with a ballot and votes")
    parser.add_argument('--url', default=DEFAULT_API_URL, help='Ballot API base URL')
    parser.add_argument('--candidates', nargs='*', default=['Alice', 'Bob', 'Charlie'])
    parser.add_argument('--duration', type=int, default=30, help='Voting window in minutes')
    parser.add_argument('--voters', type=int, default=25, help='Number of simulated voters')
    parser.add_argument('--admin', default=make_address(0), help='Administrator identity')
    args = parser.parse_args()

    print("=" * 60)
    print(f"SEEDING BALLOT AT {args.url}")
    print("=" * 60)

    return asyncio.run(seed(args.url, args.candidates, args.duration, args.voters, args.admin))


if __name__ == '__main__':
    sys.exit(main())

"""Integration tests for the Ballot API.

This package exercises the FastAPI service in-process, including:

- Ballot deployment and candidate management
- Vote casting and double-vote rejection
- Deadline enforcement with a controllable clock
- The async client against the same app
"""

"""Integration tests against a real PostgreSQL container via Testcontainers.

Covers:
- Container lifecycle shared across the whole session
- Per-test connections
- NULL materialization and serialization for real driver values

All tests require PGHARNESS_USE_TESTCONTAINERS=true and Docker socket access.
"""

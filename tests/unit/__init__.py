"""In-process tests for the fixture lifecycle and row materialization (no Docker)."""

"""Canonical seed rows for the ``test_users`` table.

Some users deliberately leave ``age`` unset so every seeded database carries
SQL NULLs in a numeric column. Emails are the natural key used for upserts,
so seeding twice converges to the same state.
"""
from __future__ import annotations

from decimal import Decimal

TEST_USERS_TABLE: str = "test_users"

JOHN_DOE_EMAIL: str = "john@example.com"
JANE_ROE_EMAIL: str = "jane@example.com"
ALEX_POE_EMAIL: str = "alex@example.com"
SAM_LOWE_EMAIL: str = "sam@example.com"

SEED_USERS: list[dict[str, object]] = [
    {"name": "John Doe", "email": JOHN_DOE_EMAIL, "age": None},
    {"name": "Jane Roe", "email": JANE_ROE_EMAIL, "age": Decimal("34")},
    {"name": "Alex Poe", "email": ALEX_POE_EMAIL, "age": Decimal("0")},
    {"name": "Sam Lowe", "email": SAM_LOWE_EMAIL, "age": None},
]

NULL_AGE_EMAILS: frozenset[str] = frozenset(
    str(user["email"]) for user in SEED_USERS if user["age"] is None
)

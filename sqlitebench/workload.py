from __future__ import annotations

import random
import string
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .store import StoreHandle

SEED_COUNT = 100_000
DATA_LEN = 30
TABLE_NAME = "bench"

LETTERS = string.ascii_uppercase


def rand_string(n: int) -> str:
    return "".join(random.choices(LETTERS, k=n))


def read_once(store: StoreHandle) -> int:
    """Look up one random seeded row and fetch every column of the result.

    Returns the id that was looked up.
    """
    target = random.randrange(SEED_COUNT)
    with store.connection() as conn:
        # fetchall converts every column value, the result itself is unused
        conn.execute(f"SELECT * FROM {TABLE_NAME} WHERE id = ?", (target,)).fetchall()
    return target


def write_once(store: StoreHandle, payload: str) -> None:
    with store.connection() as conn:
        conn.execute(f"INSERT INTO {TABLE_NAME}(name) VALUES (?)", (payload,))


__all__ = [
    "SEED_COUNT",
    "DATA_LEN",
    "TABLE_NAME",
    "rand_string",
    "read_once",
    "write_once",
]

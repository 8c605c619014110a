from __future__ import annotations

from typing import Any

"""Header string normalization.

Used identically by the exact and fuzzy comparison rules so that
"First Name", "FirstName", "first_name" and "First  Name" all reduce to
the same token "firstname".
"""

__all__ = [
    "normalize_header",
]


def normalize_header(header: Any) -> str:
    """Lowercase and drop every whitespace / non-alphanumeric character.

    Non-string headers (spreadsheets happily produce numeric column names)
    are converted with ``str()`` first.
    """
    text = header if isinstance(header, str) else str(header)
    return "".join(ch for ch in text.lower() if ch.isalnum())

"""Opaque identifier generation for genres and clusters.

Genre ids carry a structural tag so callers can tell a subgenre from a main
genre without a store round trip:

    main genre:  G-XXXXXXXXXXXX
    subgenre:    G-XXXXXXXXXXXXS-YYYYYYYYYYYY
    cluster:     C-XXXXXXXXXXXX

Each block is 12 characters drawn from ``[A-Z0-9]``.
"""

from __future__ import annotations

import re
import secrets
import string

_ALPHABET = string.ascii_uppercase + string.digits
_BLOCK_LENGTH = 12

_MAIN_GENRE_ID_RE = re.compile(r"^G-[A-Z0-9]{12}$")
_SUBGENRE_ID_RE = re.compile(r"^G-[A-Z0-9]{12}S-[A-Z0-9]{12}$")
_CLUSTER_ID_RE = re.compile(r"^C-[A-Z0-9]{12}$")


def _random_block(length: int = _BLOCK_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_genre_id(is_subgenre: bool) -> str:
    """Return a fresh genre id, tagged with an ``S-`` block for subgenres."""
    genre_block = _random_block()
    if not is_subgenre:
        return f"G-{genre_block}"
    return f"G-{genre_block}S-{_random_block()}"


def generate_cluster_id() -> str:
    """Return a fresh cluster id (``C-`` + 12 characters)."""
    return f"C-{_random_block()}"


def is_subgenre_id(genre_id: str) -> bool:
    """True if *genre_id* has the subgenre shape."""
    return bool(_SUBGENRE_ID_RE.match(genre_id))


def is_genre_id(genre_id: str) -> bool:
    """True if *genre_id* is a well-formed main-genre or subgenre id."""
    return bool(_MAIN_GENRE_ID_RE.match(genre_id) or _SUBGENRE_ID_RE.match(genre_id))


def is_cluster_id(cluster_id: str) -> bool:
    return bool(_CLUSTER_ID_RE.match(cluster_id))


def fold_name(name: str) -> str:
    """Lookup key for case-insensitive genre name matching.

    Full Unicode case folding, so "MÚSICA ANDINA" finds "Música Andina".
    """
    return name.casefold()

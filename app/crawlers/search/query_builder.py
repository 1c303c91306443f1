"""Search query string assembly for `/search/repositories`."""

from __future__ import annotations

from typing import Optional


def build_search_query(
    path: str,
    query: str,
    *,
    language: Optional[str] = None,
    sort: Optional[str] = None,
) -> str:
    """Assemble `{path}?q={query}[+language:{language}]&order=desc[&sort={sort}]`.

    Values are embedded verbatim. `sort` is not checked against the values
    GitHub accepts; GitHub rejects bad ones itself.
    """

    parts = [path, "?q=", query]
    if language:
        parts.append(f"+language:{language}")
    parts.append("&order=desc")
    if sort:
        parts.append(f"&sort={sort}")
    return "".join(parts)

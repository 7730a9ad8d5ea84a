"""Conditional request evaluation (``If-None-Match`` / ``If-Modified-Since``)."""

from __future__ import annotations

from .http import parse_http_date
from .validators import Validator


def parse_entity_tags(header: str) -> tuple[str, ...]:
    return tuple(tag for tag in (part.strip() for part in header.split(",")) if tag)


def etag_matches(if_none_match: str, etag: str | None) -> bool:
    """Return ``True`` when ``If-None-Match`` names ``*`` or exactly ``etag``.

    Comparison is a plain string match, so ``W/"x"`` does not match ``"x"``.
    Without an ``etag`` (ETags disabled) nothing matches, not even ``*``.
    """

    if etag is None:
        return False
    tags = parse_entity_tags(if_none_match)
    return "*" in tags or etag in tags


def not_modified_since(if_modified_since: str, mtime_seconds: int) -> bool:
    client_time = parse_http_date(if_modified_since)
    if client_time is None:
        return False
    return mtime_seconds <= client_time


def evaluate_conditional(
    if_none_match: str | None,
    if_modified_since: str | None,
    validator: Validator,
    mtime_seconds: int,
) -> bool:
    """Decide whether the client's cached copy is still current.

    ``If-None-Match`` wins outright when present, even when ETags are disabled
    and it therefore cannot match; ``If-Modified-Since`` is only consulted
    without it.
    """

    if if_none_match is not None:
        return etag_matches(if_none_match, validator.etag)
    if if_modified_since is not None:
        return not_modified_since(if_modified_since, mtime_seconds)
    return False


__all__ = ["etag_matches", "evaluate_conditional", "not_modified_since", "parse_entity_tags"]

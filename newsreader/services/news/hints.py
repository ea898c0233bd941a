from __future__ import annotations

from newsreader.core.errors import ClientError, ErrorCode


NETWORK_HINT = "If this persists, verify network access and try again."
CONFIG_HINT = (
    "For direct NewsAPI usage, set NEWSREADER_NEWS_API_KEY. "
    "To keep the key off the client, set NEWSREADER_NEWS_API_BASE to a proxy."
)


def describe_error(err: ClientError, *, fallback: str) -> str:
    """Reader-facing text for a failed fetch: the error message plus a hint for its code."""
    msg = err.message or fallback
    if err.code is ErrorCode.NETWORK:
        return f"{msg} {NETWORK_HINT}"
    if err.code is ErrorCode.CONFIG:
        return f"{msg} {CONFIG_HINT}"
    return msg

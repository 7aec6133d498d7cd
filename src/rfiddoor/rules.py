from typing import Optional

DEFAULT_DEBOUNCE_SECONDS = 5.0

# an idle reader frames all zeros, a saturated one all Fs
_SENTINEL_CHARS = ("0", "F")


def is_valid_token(token: str) -> bool:
    """False for empty reads and all-``0`` / all-``F`` sentinel frames.

    Only uniform frames are sentinels. Mixed tokens such as ``0F0F`` or
    ``0000FF00`` count as real scans and are reported when unknown.
    """
    return all(token.replace(ch, "") for ch in _SENTINEL_CHARS)


def debounce_allows(now: float, last: Optional[float], window: float = DEFAULT_DEBOUNCE_SECONDS) -> bool:
    if last is None:
        return True
    return now - last >= window

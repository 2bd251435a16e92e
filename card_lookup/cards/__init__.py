"""Card-name normalization and rate-limited card database lookups."""

from card_lookup.cards.normalize import MAX_NAME_LENGTH, normalize_name
from card_lookup.cards.rate_limit import RateLimiter, get_rate_limiter
from card_lookup.cards.resolver import ScryfallCardResolver, card_from_payload

__all__ = [
    "MAX_NAME_LENGTH",
    "RateLimiter",
    "ScryfallCardResolver",
    "card_from_payload",
    "get_rate_limiter",
    "normalize_name",
]

"""Service layer helpers"""

from .sns import LookupOutcome, LookupResult, NameResolver

__all__ = [
    "LookupOutcome",
    "LookupResult",
    "NameResolver",
]

"""Date Resolver Module.

Resolves spoken date references ("kahapon", "2 days ago", "last monday")
into record dates, rejecting future and over-aged references.
"""

from date_resolver.resolver import (
    DEFAULT_MAX_BACKDATE_DAYS,
    DateClassification,
    ResolvedDate,
    resolve_date_reference,
)

__all__ = [
    "DEFAULT_MAX_BACKDATE_DAYS",
    "DateClassification",
    "ResolvedDate",
    "resolve_date_reference",
]

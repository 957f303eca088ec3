"""Feed type normalization.

"  Corn   Silages " and "corn silage" must compare equal, so feed names are
trimmed, lower-cased, whitespace-collapsed and each token singularized.
"""

import re
from typing import Optional


_WHITESPACE = re.compile(r"\s+")
_SIBILANT_ENDINGS = ("s", "x", "z", "ch", "sh")


def singularize(token: str) -> str:
    """Fold a simple English plural to its singular form.

    Examples:
        >>> singularize("bales")
        'bale'
        >>> singularize("berries")
        'berry'
        >>> singularize("grass")
        'grass'
    """
    if len(token) > 4 and token.endswith("ies"):
        return token[:-3] + "y"
    if len(token) > 3 and token.endswith("es") and token[:-2].endswith(_SIBILANT_ENDINGS):
        return token[:-2]
    if len(token) > 3 and token.endswith("s") and not token.endswith("ss"):
        return token[:-1]
    return token


def normalize_feed_type(value: Optional[str]) -> str:
    """Normalize a feed type for comparison."""
    if not value:
        return ""
    collapsed = _WHITESPACE.sub(" ", value.strip().lower())
    return " ".join(singularize(token) for token in collapsed.split(" "))

from __future__ import annotations

import re
from typing import Any

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def coerce_quantity(raw: Any) -> int:
    """Quantity as typed into the form, as a positive int. Anything unusable becomes 1."""
    if isinstance(raw, bool) or raw is None:
        return 1
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if raw != raw or raw in (float("inf"), float("-inf")):
            return 1
        value = int(raw)
    else:
        # "3 units" -> 3, "2.5" -> 2
        m = _LEADING_INT_RE.match(str(raw))
        if not m:
            return 1
        value = int(m.group(1))
    return value if value >= 1 else 1

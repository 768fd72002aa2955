from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Notification:
    level: str  # "info", "warning", "error"
    message: str
    context: dict[str, Any] = field(default_factory=dict)

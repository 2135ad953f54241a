from dataclasses import dataclass
from typing import Optional


@dataclass
class ActionResult:
    """Outcome of a write that returns a row; `warning` marks a side effect that failed."""
    success: bool
    message: str
    data: Optional[dict] = None
    warning: Optional[str] = None

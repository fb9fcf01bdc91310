from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class AuditEvent:
    """One audit entry, independent of the backend that stores it."""

    action: str
    actor: Any = None
    object_type: str = ""
    object_id: str = ""
    level: str = "info"
    category: str = "system"
    ip_address: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

    @property
    def actor_id(self):
        return getattr(self.actor, "pk", None)

    @property
    def target(self) -> str:
        if not self.object_type:
            return "-"
        return f"{self.object_type}:{self.object_id or '-'}"

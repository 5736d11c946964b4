from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class RepositoryDescriptor(BaseModel):
    """Remote repository as returned by the create call. Never mutated locally."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    full_name: str
    owner: str
    private: bool = False
    html_url: str
    default_branch: str = "main"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def visibility(self) -> str:
        return "private" if self.private else "public"

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "RepositoryDescriptor":
        """Build a descriptor from a GitHub repository payload."""
        owner = payload.get("owner") or {}
        name = payload["name"]
        owner_login = owner.get("login") if isinstance(owner, dict) else str(owner)
        return cls(
            id=payload["id"],
            name=name,
            full_name=payload.get("full_name") or f"{owner_login}/{name}",
            owner=owner_login or "",
            private=bool(payload.get("private", False)),
            html_url=payload.get("html_url", ""),
            default_branch=payload.get("default_branch") or "main",
            created_at=payload.get("created_at"),
            updated_at=payload.get("updated_at"),
        )

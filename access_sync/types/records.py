"""Access record models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class AccessStatus(str, Enum):
    """Closed set of access statuses the oracle is asked to choose from."""

    UNKNOWN = "Unknown"
    BANNED = "Banned"
    LIMITED_ACCESS_TRIALS = "Limited Access Trials"
    APPROVED_MEDICAL_USE = "Approved Medical Use"

    @classmethod
    def values(cls) -> list[str]:
        """Wire values in declaration order."""
        return [member.value for member in cls]

    @classmethod
    def is_known(cls, value: str) -> bool:
        """Case-sensitive membership check on the wire value."""
        return value in cls._value2member_map_


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AccessRecord(BaseModel):
    """Canonical (subject, scope, status) fact produced during a run."""

    subject: str = Field(alias="substance", description="Substance name")
    scope: str = Field(alias="country_code", description="ISO 3166-1 alpha-2 code")
    status: str = Field(alias="access_status", description="AccessStatus value or oracle text")
    observed_at: datetime = Field(default_factory=utc_now)

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def key(self) -> tuple[str, str]:
        """Uniqueness key in the store."""
        return (self.subject, self.scope)

    @property
    def is_known_status(self) -> bool:
        return AccessStatus.is_known(self.status)

    def to_row(self, updated_at: Optional[datetime] = None) -> dict[str, Any]:
        """Serialize to the store's column names."""
        row: dict[str, Any] = {
            "substance": self.subject,
            "country_code": self.scope,
            "access_status": self.status,
        }
        if updated_at is not None:
            row["updated_at"] = updated_at.isoformat()
        return row


class PersistedRow(BaseModel):
    """Store-side view of an access record."""

    id: Any = Field(description="Opaque row identity")
    subject: str = Field(alias="substance")
    scope: str = Field(alias="country_code")
    status: Optional[str] = Field(default=None, alias="access_status")
    updated_at: Optional[datetime] = Field(default=None)

    model_config = {"populate_by_name": True, "extra": "allow"}

    @property
    def key(self) -> tuple[str, str]:
        return (self.subject, self.scope)

"""Data models for playground cluster configuration."""

import re
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Component roles in the order their replica flags are passed to tiup
ROLES = ("db", "pd", "tiflash", "kv")


def new_cluster_id() -> str:
    """Generate a short random cluster tag."""
    return uuid.uuid4().hex[:8]


class ClusterConfig(BaseModel):
    """Requested shape of one playground cluster."""

    model_config = ConfigDict(frozen=True)

    version: str | None = None
    tag: str = Field(default_factory=new_cluster_id)
    db: int | None = Field(default=None, ge=0)
    pd: int | None = Field(default=None, ge=0)
    tiflash: int | None = Field(default=None, ge=0)
    kv: int | None = Field(default=None, ge=0)
    without_monitor: bool = False
    # Each role uses its own count instead of mirroring ``db``
    independent_counts: bool = False

    @field_validator("version", "db", "pd", "tiflash", "kv", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat unset pipeline inputs (empty strings) as missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str | None) -> str | None:
        """Validate version is a single token."""
        if v is not None:
            v = v.strip()
            if re.search(r"\s", v):
                raise ValueError(f"version '{v}' must not contain whitespace")
        return v

    @field_validator("tag", mode="before")
    @classmethod
    def validate_tag(cls, v):
        """Generate a tag when none was supplied, reject unusable ones."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return new_cluster_id()
        v = str(v).strip()
        if not re.match(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$", v):
            raise ValueError(
                f"tag '{v}' must start with an alphanumeric character and contain only "
                "alphanumerics, dots, underscores and hyphens"
            )
        return v

    def replica_counts(self) -> dict[str, int]:
        """Replica count passed for each role.

        Unless ``independent_counts`` is set, every role takes the ``db``
        count (or 1 when it is unset), matching what the upstream action has
        always passed to tiup.
        """
        if self.independent_counts:
            return {role: getattr(self, role) or 1 for role in ROLES}
        return {role: self.db or 1 for role in ROLES}

    def ignored_counts(self) -> dict[str, int]:
        """Supplied counts that ``replica_counts`` does not honor."""
        if self.independent_counts:
            return {}
        counts = self.replica_counts()
        return {
            role: getattr(self, role)
            for role in ROLES[1:]
            if getattr(self, role) is not None and getattr(self, role) != counts[role]
        }

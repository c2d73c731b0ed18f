from __future__ import annotations

from enum import IntEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

OWNER_NOT_FOUND = "N/A"
UNKNOWN_IDENTITY = "Unknown"
NO_MEMBERS = "No members found"
NO_PERMISSIONS = "N/A"
RESTRICTED_OWNER = "Restricted access"
RESTRICTED_MEMBERS = "Could not fetch list"
RESTRICTED_PERMISSIONS = "N/A"


class AccessLevel(IntEnum):
    """Ordinal permission tiers granted by a share."""

    VIEWER = 1
    EDITOR = 2
    EDITOR_SHARE = 3
    ADMIN = 4
    OWNER = 5


class WorkspaceRef(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str


class ShareEntry(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str | int | None = None
    type: str = "USER"
    email: str | None = None
    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "displayName"))
    access_level: str = Field(validation_alias=AliasChoices("accessLevel", "access_level"))

    @property
    def identity(self) -> str:
        """Email, then display name, then a placeholder; never empty."""

        for candidate in (self.email, self.name):
            if candidate and candidate.strip():
                return candidate.strip()
        return UNKNOWN_IDENTITY

    @property
    def level(self) -> AccessLevel | None:
        """Known tier of this share, or None for levels such as COMMENTER."""

        return AccessLevel.__members__.get(self.access_level)


class AuditRecord(BaseModel):
    """Flattened sharing state of one workspace."""

    model_config = ConfigDict(frozen=True)

    workspace_name: str
    owner: str = OWNER_NOT_FOUND
    members: tuple[str, ...] = ()
    permissions: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_parallel(self) -> "AuditRecord":
        if len(self.members) != len(self.permissions):
            raise ValueError("members and permissions must have the same length")
        return self

    @classmethod
    def restricted(cls, workspace_name: str) -> "AuditRecord":
        return cls(
            workspace_name=workspace_name,
            owner=RESTRICTED_OWNER,
            members=(RESTRICTED_MEMBERS,),
            permissions=(RESTRICTED_PERMISSIONS,),
        )

    @property
    def is_restricted(self) -> bool:
        return self.owner == RESTRICTED_OWNER and self.members == (RESTRICTED_MEMBERS,)

    def display_row(self) -> dict[str, str]:
        """Row with members and permissions joined for tables and exports."""

        if self.members:
            members = "\n".join(self.members)
            permissions = "\n".join(self.permissions)
        else:
            members = NO_MEMBERS
            permissions = NO_PERMISSIONS
        return {
            "workspace_name": self.workspace_name,
            "owner": self.owner,
            "members": members,
            "permissions": permissions,
        }

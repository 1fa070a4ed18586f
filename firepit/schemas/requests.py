"""Pydantic schemas for API request bodies and auxiliary responses."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from firepit.schemas.permissions import OverrideValue


class CreateServerRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Server display name.")


class CreateRoleRequest(BaseModel):
    """Body for creating a role."""

    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(
        default=None,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Hex color code like '#5865F2'.",
    )
    position: int = Field(
        default=0,
        ge=0,
        description="Rank in the role hierarchy; higher ranks above lower.",
    )
    permissions: Dict[str, bool] = Field(
        default_factory=dict,
        description="Permission name to grant flag, e.g. {'sendMessages': true}.",
    )
    default_on_join: bool = Field(
        default=False,
        description="Assign this role to new members. Clears the flag on every other role.",
    )
    mentionable: bool = False


class UpdateRoleRequest(BaseModel):
    """Partial update of a role; omitted fields are left untouched."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    position: Optional[int] = Field(default=None, ge=0)
    permissions: Optional[Dict[str, bool]] = None
    default_on_join: Optional[bool] = None
    mentionable: Optional[bool] = None


class SetMemberRolesRequest(BaseModel):
    role_ids: List[str] = Field(default_factory=list)


class ChannelOverrideRequest(BaseModel):
    """Override of one role or one user on a channel."""

    role_id: Optional[str] = None
    user_id: Optional[str] = None
    permissions: Dict[str, OverrideValue] = Field(
        default_factory=dict,
        description="Permission name to 'allow', 'deny' or 'inherit'.",
    )


class RateLimitStatusResponse(BaseModel):
    scope: str
    allowed: bool
    limit: int
    remaining: int
    reset_at: int = Field(..., description="UNIX epoch milliseconds when the window resets.")
    retry_after: Optional[int] = Field(
        default=None, description="Seconds until the next request is allowed."
    )


class VersionInfo(BaseModel):
    """Running version compared with the latest published release.

    Serialised in camelCase (``currentVersion``, ``isOutdated``, ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_version: str
    latest_version: str
    is_outdated: bool
    release_url: Optional[str] = None
    published_at: Optional[str] = None
    error: Optional[str] = None

"""Normalized identity-provider profile."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Profile(BaseModel):
    """
    Profile returned by an identity provider after a successful login.

    Every provider shapes its user payload differently, so strategies normalize it into this
    model. The fields follow the common social-login profile shape:

    - provider: Name of the identity provider, e.g. ``github``
    - id: The provider's external account identifier
    - displayName: Human readable name, used to name the local user on first login

    The untouched provider payload is kept in ``raw``.
    """

    model_config = ConfigDict(populate_by_name=True)

    provider: str
    id: str
    display_name: str = Field(alias="displayName")
    username: Optional[str] = None
    emails: List[str] = Field(default_factory=list)
    photos: List[str] = Field(default_factory=list)
    raw: Dict[str, Any] = Field(default_factory=dict, alias="_json")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v) -> str:
        # GitHub and Facebook issue numeric ids
        if isinstance(v, int):
            return str(v)
        return v

    def as_json(self) -> Dict[str, Any]:
        """Snapshot stored in ``OAuthIdentity.profile_json``."""
        return self.model_dump(mode="json", by_alias=True)

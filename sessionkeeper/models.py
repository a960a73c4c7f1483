from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CredentialPair(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)
    expires_in: int = Field(gt=0)
    token_type: str = "bearer"


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    VALID = "valid"
    REFRESHING = "refreshing"
    # access credential unusable, refresh credential still stored
    EXPIRED = "expired"


class SessionReason(str, Enum):
    VALID = "valid"
    REFRESHED = "refreshed"
    ANONYMOUS = "anonymous"
    REJECTED = "rejected"
    TRANSIENT = "transient"
    STORE_UNAVAILABLE = "store_unavailable"


@dataclass
class SessionCheck:
    credentials: Optional[CredentialPair]
    reason: SessionReason

    @property
    def usable(self) -> bool:
        return self.credentials is not None

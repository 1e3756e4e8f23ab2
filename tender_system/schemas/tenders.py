from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tender_system.models.enums import ServiceType


class TenderCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    serviceType: ServiceType
    organizationId: str = Field(..., min_length=1)
    creatorUsername: str = Field(..., min_length=1)


class TenderEditRequest(BaseModel):
    """
    Patch body: omitted fields keep their current value.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    serviceType: Optional[ServiceType] = None


class TenderResponse(BaseModel):
    id: str
    name: str
    description: str
    serviceType: str
    status: str
    version: int
    createdAt: datetime

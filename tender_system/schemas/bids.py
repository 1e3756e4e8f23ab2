from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tender_system.models.enums import AuthorType


class BidCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    tenderId: str = Field(..., min_length=1)
    authorType: AuthorType
    authorId: str = Field(..., min_length=1)


class BidEditRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)


class BidResponse(BaseModel):
    # description and tenderId stay out of listings
    id: str
    name: str
    status: str
    authorType: str
    authorId: str
    version: int
    createdAt: datetime


class BidReviewResponse(BaseModel):
    id: str
    description: str
    createdAt: datetime

#tender_system/models/enums.py
from __future__ import annotations
from enum import Enum


class ServiceType(str, Enum):
    delivery = "Delivery"
    manufacture = "Manufacture"
    construction = "Construction"


class TenderStatus(str, Enum):
    created = "Created"
    published = "Published"
    closed = "Closed"


class BidStatus(str, Enum):
    created = "Created"
    published = "Published"
    canceled = "Canceled"


class AuthorType(str, Enum):
    user = "User"
    organization = "Organization"


class DecisionStatus(str, Enum):
    pending = "Pending"
    closed = "Closed"


class VoteDecision(str, Enum):
    approved = "Approved"
    rejected = "Rejected"


class OrganizationType(str, Enum):
    IE = "IE"
    LLC = "LLC"
    JSC = "JSC"

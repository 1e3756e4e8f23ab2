from tender_system.models.employee import Employee
from tender_system.models.organization import Organization, OrganizationResponsible
from tender_system.models.tender import Tender, TenderHistory
from tender_system.models.bid import Bid, BidHistory
from tender_system.models.feedback import Feedback
from tender_system.models.decision import Decision, Vote

__all__ = [
    "Employee",
    "Organization",
    "OrganizationResponsible",
    "Tender",
    "TenderHistory",
    "Bid",
    "BidHistory",
    "Feedback",
    "Decision",
    "Vote",
]

from tender_system.schemas.tenders import TenderCreateRequest, TenderEditRequest, TenderResponse
from tender_system.schemas.bids import BidCreateRequest, BidEditRequest, BidResponse, BidReviewResponse

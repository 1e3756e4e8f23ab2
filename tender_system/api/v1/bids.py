# tender_system/api/v1/bids.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tender_system.core.deps import Page, pagination, require_username
from tender_system.db.session import get_db
from tender_system.models.bid import Bid
from tender_system.models.feedback import Feedback
from tender_system.schemas.bids import BidCreateRequest, BidEditRequest, BidResponse, BidReviewResponse
from tender_system.services.bids import BidService

router = APIRouter(prefix="/bids")


def _to_response(b: Bid) -> BidResponse:
    return BidResponse(
        id=str(b.id),
        name=b.name,
        status=b.status,
        authorType=b.author_type,
        authorId=str(b.author_id),
        version=b.version,
        createdAt=b.created_at,
    )


def _to_review(f: Feedback) -> BidReviewResponse:
    return BidReviewResponse(id=str(f.id), description=f.description, createdAt=f.created_at)


# ---------------------------------------------------------------------
# create / listings
# ---------------------------------------------------------------------


@router.post("/new", response_model=BidResponse)
def create_bid(payload: BidCreateRequest, db: Session = Depends(get_db)):
    bid = BidService().create_bid(
        db,
        name=payload.name,
        description=payload.description,
        tender_id=payload.tenderId,
        author_type=payload.authorType.value,
        author_id=payload.authorId,
    )
    return _to_response(bid)


@router.get("/my", response_model=List[BidResponse])
def list_my_bids(
    username: Optional[str] = Query(default=None),
    page: Page = Depends(pagination),
    db: Session = Depends(get_db),
):
    # anonymous callers simply own nothing
    if not username:
        return []
    rows = BidService().list_my_bids(db, username=username, limit=page.limit, offset=page.offset)
    return [_to_response(b) for b in rows]


@router.get("/{tenderId}/list", response_model=List[BidResponse])
def list_tender_bids(
    tenderId: str,
    username: Optional[str] = Query(default=None),
    page: Page = Depends(pagination),
    db: Session = Depends(get_db),
):
    rows = BidService().list_tender_bids(
        db,
        tender_id=tenderId,
        username=require_username(username),
        limit=page.limit,
        offset=page.offset,
    )
    return [_to_response(b) for b in rows]


# ---------------------------------------------------------------------
# status
# ---------------------------------------------------------------------


@router.get("/{bidId}/status", response_model=str)
def get_bid_status(
    bidId: str,
    username: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    return BidService().get_bid_status(db, bid_id=bidId, username=require_username(username))


@router.put("/{bidId}/status", response_model=BidResponse)
def put_bid_status(
    bidId: str,
    status: str = Query(...),
    username: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    bid = BidService().set_bid_status(
        db, bid_id=bidId, status=status, username=require_username(username)
    )
    return _to_response(bid)


# ---------------------------------------------------------------------
# edit / rollback
# ---------------------------------------------------------------------


@router.patch("/{bidId}/edit", response_model=BidResponse)
def edit_bid(
    bidId: str,
    payload: BidEditRequest,
    username: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    bid = BidService().edit_bid(
        db,
        bid_id=bidId,
        username=require_username(username),
        name=payload.name,
        description=payload.description,
    )
    return _to_response(bid)


@router.put("/{bidId}/rollback/{version}", response_model=BidResponse)
def rollback_bid(
    bidId: str,
    version: int,
    username: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    bid = BidService().rollback_bid(
        db, bid_id=bidId, version=version, username=require_username(username)
    )
    return _to_response(bid)


# ---------------------------------------------------------------------
# reviews & decisions
# ---------------------------------------------------------------------


@router.put("/{bidId}/feedback", response_model=BidResponse)
def leave_feedback(
    bidId: str,
    bidFeedback: str = Query(..., max_length=1000),
    username: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    bid = BidService().leave_feedback(
        db, bid_id=bidId, feedback=bidFeedback, username=require_username(username)
    )
    return _to_response(bid)


@router.get("/{tenderId}/reviews", response_model=List[BidReviewResponse])
def list_reviews(
    tenderId: str,
    authorUsername: str = Query(..., min_length=1),
    requesterUsername: Optional[str] = Query(default=None),
    page: Page = Depends(pagination),
    db: Session = Depends(get_db),
):
    rows = BidService().list_reviews(
        db,
        tender_id=tenderId,
        author_username=authorUsername,
        requester_username=require_username(requesterUsername),
        limit=page.limit,
        offset=page.offset,
    )
    return [_to_review(f) for f in rows]


@router.put("/{bidId}/submit_decision", response_model=BidResponse)
def submit_decision(
    bidId: str,
    decision: str = Query(...),
    username: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    bid = BidService().submit_decision(
        db, bid_id=bidId, decision=decision, username=require_username(username)
    )
    return _to_response(bid)

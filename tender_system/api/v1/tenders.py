# tender_system/api/v1/tenders.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tender_system.core.deps import Page, pagination, require_username
from tender_system.db.session import get_db
from tender_system.models.tender import Tender
from tender_system.schemas.tenders import TenderCreateRequest, TenderEditRequest, TenderResponse
from tender_system.services.tenders import TenderService

router = APIRouter(prefix="/tenders")


def _to_response(t: Tender) -> TenderResponse:
    return TenderResponse(
        id=str(t.id),
        name=t.name,
        description=t.description,
        serviceType=t.service_type,
        status=t.status,
        version=t.version,
        createdAt=t.created_at,
    )


# ---------------------------------------------------------------------
# GET /api/tenders
# ---------------------------------------------------------------------


@router.get("", response_model=List[TenderResponse])
def list_tenders(
    service_type: Optional[List[str]] = Query(default=None),
    page: Page = Depends(pagination),
    db: Session = Depends(get_db),
):
    rows = TenderService().list_tenders(
        db, limit=page.limit, offset=page.offset, service_types=service_type
    )
    return [_to_response(t) for t in rows]


@router.post("/new", response_model=TenderResponse)
def create_tender(payload: TenderCreateRequest, db: Session = Depends(get_db)):
    tender = TenderService().create_tender(
        db,
        name=payload.name,
        description=payload.description,
        service_type=payload.serviceType.value,
        organization_id=payload.organizationId,
        creator_username=payload.creatorUsername,
    )
    return _to_response(tender)


@router.get("/my", response_model=List[TenderResponse])
def list_my_tenders(
    username: Optional[str] = Query(default=None),
    page: Page = Depends(pagination),
    db: Session = Depends(get_db),
):
    rows = TenderService().list_my_tenders(
        db, username=require_username(username), limit=page.limit, offset=page.offset
    )
    return [_to_response(t) for t in rows]


# ---------------------------------------------------------------------
# status
# ---------------------------------------------------------------------


@router.get("/{tenderId}/status", response_model=str)
def get_tender_status(
    tenderId: str,
    username: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    return TenderService().get_tender_status(db, tender_id=tenderId, username=username)


@router.put("/{tenderId}/status", response_model=TenderResponse)
def put_tender_status(
    tenderId: str,
    status: str = Query(...),
    username: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    tender = TenderService().set_tender_status(
        db, tender_id=tenderId, status=status, username=require_username(username)
    )
    return _to_response(tender)


# ---------------------------------------------------------------------
# edit / rollback
# ---------------------------------------------------------------------


@router.patch("/{tenderId}/edit", response_model=TenderResponse)
def edit_tender(
    tenderId: str,
    payload: TenderEditRequest,
    username: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    tender = TenderService().edit_tender(
        db,
        tender_id=tenderId,
        username=require_username(username),
        name=payload.name,
        description=payload.description,
        service_type=payload.serviceType.value if payload.serviceType else None,
    )
    return _to_response(tender)


@router.put("/{tenderId}/rollback/{version}", response_model=TenderResponse)
def rollback_tender(
    tenderId: str,
    version: int,
    username: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    tender = TenderService().rollback_tender(
        db, tender_id=tenderId, version=version, username=require_username(username)
    )
    return _to_response(tender)

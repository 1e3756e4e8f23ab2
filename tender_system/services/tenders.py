# tender_system/services/tenders.py
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from tender_system.core.errors import BadRequest, Forbidden
from tender_system.db.gateway import EntityKind, PersistenceGateway, as_uuid
from tender_system.db.transaction import unit_of_work
from tender_system.models.enums import ServiceType, TenderStatus
from tender_system.models.tender import Tender
from tender_system.policies.access import resolve_tender
from tender_system.services.status_machine import TenderStatusMachine
from tender_system.services.versioning import VersionManager

logger = logging.getLogger(__name__)


def parse_service_type(token: str) -> ServiceType:
    try:
        return ServiceType(token)
    except ValueError:
        raise BadRequest(f"Unknown service type: {token!r}")


class TenderService:
    # ---------------------------
    # WRITES
    # ---------------------------

    def create_tender(
        self,
        db: Session,
        *,
        name: str,
        description: str,
        service_type: str,
        organization_id: str,
        creator_username: str,
    ) -> Tender:
        kind = parse_service_type(service_type)

        with unit_of_work(db):
            gw = PersistenceGateway(db)
            creator = gw.get_employee(creator_username)

            org_id = as_uuid(organization_id, error=BadRequest, what="organization")
            if gw.get_organization(org_id) is None:
                raise BadRequest("organization not found")
            if not gw.is_representative(creator.id, org_id):
                logger.warning(
                    "[tenders] create denied creator=%s organization=%s",
                    creator.username,
                    org_id,
                )
                raise Forbidden()

            tender = gw.add(
                Tender(
                    name=name,
                    description=description,
                    service_type=kind.value,
                    status=TenderStatus.created.value,
                    version=1,
                    organization_id=org_id,
                    creator_username=creator.username,
                )
            )

        logger.info(
            "[tenders] created tender=%s organization=%s by=%s",
            tender.id,
            org_id,
            creator.username,
        )
        return tender

    def set_tender_status(self, db: Session, *, tender_id: str, status: str, username: str) -> Tender:
        TenderStatusMachine.parse(status)

        with unit_of_work(db):
            gw = PersistenceGateway(db)
            access = resolve_tender(gw, username, tender_id, for_update=True).require()
            machine = TenderStatusMachine(gw, VersionManager(gw))
            tender = machine.transition(access.target, status)

        logger.info(
            "[tenders] status tender=%s -> %s v%d by=%s role=%s",
            tender.id,
            tender.status,
            tender.version,
            username,
            access.role.value,
        )
        return tender

    def edit_tender(
        self,
        db: Session,
        *,
        tender_id: str,
        username: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        service_type: Optional[str] = None,
    ) -> Tender:
        kind = parse_service_type(service_type) if service_type is not None else None

        with unit_of_work(db):
            gw = PersistenceGateway(db)
            access = resolve_tender(gw, username, tender_id, for_update=True).require()
            tender = VersionManager(gw).apply_mutation(
                access.target,
                {"name": name, "description": description, "service_type": kind},
            )

        logger.info("[tenders] edited tender=%s v%d by=%s", tender.id, tender.version, username)
        return tender

    def rollback_tender(self, db: Session, *, tender_id: str, version: int, username: str) -> Tender:
        with unit_of_work(db):
            gw = PersistenceGateway(db)
            access = resolve_tender(gw, username, tender_id, for_update=True).require()
            tender = VersionManager(gw).rollback(access.target, version)

        logger.info(
            "[tenders] rollback tender=%s to v%d now v%d by=%s",
            tender.id,
            version,
            tender.version,
            username,
        )
        return tender

    # ---------------------------
    # READS
    # ---------------------------

    def list_tenders(
        self,
        db: Session,
        *,
        limit: int,
        offset: int,
        service_types: Optional[Sequence[str]] = None,
    ) -> List[Tender]:
        kinds = [parse_service_type(t).value for t in service_types or []]
        with unit_of_work(db):
            return PersistenceGateway(db).list_tenders(
                limit=limit, offset=offset, service_types=kinds or None
            )

    def list_my_tenders(self, db: Session, *, username: str, limit: int, offset: int) -> List[Tender]:
        with unit_of_work(db):
            gw = PersistenceGateway(db)
            caller = gw.get_employee(username)
            return gw.list_tenders(limit=limit, offset=offset, creator_username=caller.username)

    def get_tender_status(self, db: Session, *, tender_id: str, username: Optional[str]) -> str:
        """
        Published tenders are public; anything else needs tender access.
        """
        with unit_of_work(db):
            gw = PersistenceGateway(db)
            tender = gw.get_entity(EntityKind.tender, tender_id)
            if tender.status == TenderStatus.published.value:
                return tender.status

            access = resolve_tender(gw, username or "", tender_id).require()
            return access.target.status

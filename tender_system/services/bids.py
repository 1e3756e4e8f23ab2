# tender_system/services/bids.py
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from tender_system.core.config import get_settings
from tender_system.core.errors import BadRequest, Forbidden, UserNotFound
from tender_system.db.gateway import EntityKind, PersistenceGateway, as_uuid
from tender_system.db.transaction import unit_of_work
from tender_system.models.bid import Bid
from tender_system.models.enums import AuthorType, BidStatus
from tender_system.models.feedback import Feedback
from tender_system.policies.access import (
    require_tender_org_representative,
    resolve_bid,
    resolve_bid_listing,
)
from tender_system.services.decisions import DecisionQuorumEngine
from tender_system.services.status_machine import BidStatusMachine, TenderStatusMachine
from tender_system.services.versioning import VersionManager

logger = logging.getLogger(__name__)


def parse_author_type(token: str) -> AuthorType:
    try:
        return AuthorType(token)
    except ValueError:
        raise BadRequest(f"Unknown author type: {token!r}")


class BidService:
    """
    Bid workflows. Every public method is one transaction.
    """

    def __init__(self, *, quorum_cap: Optional[int] = None, vote_scope: Optional[str] = None):
        settings = get_settings()
        self.quorum_cap = quorum_cap if quorum_cap is not None else settings.decision_quorum_cap
        self.vote_scope = vote_scope if vote_scope is not None else settings.vote_scope

    # ---------------------------
    # WRITES
    # ---------------------------

    def create_bid(
        self,
        db: Session,
        *,
        name: str,
        description: str,
        tender_id: str,
        author_type: str,
        author_id: str,
    ) -> Bid:
        kind = parse_author_type(author_type)

        with unit_of_work(db):
            gw = PersistenceGateway(db)
            author = as_uuid(author_id, error=UserNotFound, what="author")

            if kind is AuthorType.user:
                employee = gw.get_employee_by_id(author)
                if employee is None:
                    raise UserNotFound()
                # a representative bids on behalf of the organization
                if gw.organizations_of(employee.id):
                    logger.warning(
                        "[bids] user bid denied author=%s represents an organization",
                        employee.username,
                    )
                    raise Forbidden("author represents an organization; bid as Organization")
            elif gw.get_organization(author) is None:
                raise UserNotFound("organization doesn't exist or is invalid")

            tender = gw.get_entity(EntityKind.tender, tender_id)
            if not TenderStatusMachine.accepts_bids(tender):
                logger.warning("[bids] tender=%s is closed for bids", tender.id)
                raise Forbidden("tender is closed")

            bid = gw.add(
                Bid(
                    name=name,
                    description=description,
                    status=BidStatus.created.value,
                    tender_id=tender.id,
                    author_type=kind.value,
                    author_id=author,
                    version=1,
                )
            )

        logger.info(
            "[bids] created bid=%s tender=%s author=%s/%s",
            bid.id,
            bid.tender_id,
            bid.author_type,
            bid.author_id,
        )
        return bid

    def set_bid_status(self, db: Session, *, bid_id: str, status: str, username: str) -> Bid:
        BidStatusMachine.parse(status)

        with unit_of_work(db):
            gw = PersistenceGateway(db)
            access = resolve_bid(gw, username, bid_id, for_update=True).require()
            bid = BidStatusMachine(VersionManager(gw)).transition(access.target, status)

        logger.info(
            "[bids] status bid=%s -> %s v%d by=%s role=%s",
            bid.id,
            bid.status,
            bid.version,
            username,
            access.role.value,
        )
        return bid

    def edit_bid(
        self,
        db: Session,
        *,
        bid_id: str,
        username: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Bid:
        with unit_of_work(db):
            gw = PersistenceGateway(db)
            access = resolve_bid(gw, username, bid_id, for_update=True).require()
            bid = VersionManager(gw).apply_mutation(
                access.target, {"name": name, "description": description}
            )

        logger.info("[bids] edited bid=%s v%d by=%s", bid.id, bid.version, username)
        return bid

    def rollback_bid(self, db: Session, *, bid_id: str, version: int, username: str) -> Bid:
        with unit_of_work(db):
            gw = PersistenceGateway(db)
            access = resolve_bid(gw, username, bid_id, for_update=True).require()
            bid = VersionManager(gw).rollback(access.target, version)

        logger.info(
            "[bids] rollback bid=%s to v%d now v%d by=%s",
            bid.id,
            version,
            bid.version,
            username,
        )
        return bid

    def leave_feedback(self, db: Session, *, bid_id: str, feedback: str, username: str) -> Bid:
        if not feedback or not feedback.strip():
            raise BadRequest("feedback is empty")

        with unit_of_work(db):
            gw = PersistenceGateway(db)
            bid = gw.get_entity(EntityKind.bid, bid_id)
            caller = gw.get_employee(username)
            tender = gw.get_entity(EntityKind.tender, bid.tender_id)
            require_tender_org_representative(gw, caller, tender)

            row = gw.add_feedback(bid.id, feedback)

        logger.info("[bids] feedback=%s on bid=%s by=%s", row.id, bid.id, caller.username)
        return bid

    def submit_decision(self, db: Session, *, bid_id: str, decision: str, username: str) -> Bid:
        with unit_of_work(db):
            gw = PersistenceGateway(db)
            engine = DecisionQuorumEngine(
                gw,
                TenderStatusMachine(gw, VersionManager(gw)),
                quorum_cap=self.quorum_cap,
                vote_scope=self.vote_scope,
            )
            return engine.submit(bid_id, username, decision)

    # ---------------------------
    # READS
    # ---------------------------

    def get_bid_status(self, db: Session, *, bid_id: str, username: str) -> str:
        with unit_of_work(db):
            gw = PersistenceGateway(db)
            return resolve_bid(gw, username, bid_id).require().target.status

    def list_my_bids(self, db: Session, *, username: str, limit: int, offset: int) -> List[Bid]:
        """
        Bids the caller submitted personally.
        """
        with unit_of_work(db):
            gw = PersistenceGateway(db)
            caller = gw.get_employee(username)
            return gw.list_bids(
                limit=limit,
                offset=offset,
                author_ids=[caller.id],
                author_type=AuthorType.user,
            )

    def list_tender_bids(
        self,
        db: Session,
        *,
        tender_id: str,
        username: str,
        limit: int,
        offset: int,
    ) -> List[Bid]:
        with unit_of_work(db):
            gw = PersistenceGateway(db)
            visibility = resolve_bid_listing(gw, username, tender_id)
            rows = gw.list_bids(
                limit=limit,
                offset=offset,
                tender_id=visibility.tender.id,
                author_ids=visibility.author_filter(),
            )
            return visibility.require_visible(rows)

    def list_reviews(
        self,
        db: Session,
        *,
        tender_id: str,
        author_username: str,
        requester_username: str,
        limit: int,
        offset: int,
    ) -> List[Feedback]:
        """
        Feedback left on bids the author submitted to this tender.
        Readable only by representatives of the tender's organization.
        """
        with unit_of_work(db):
            gw = PersistenceGateway(db)
            tender = gw.get_entity(EntityKind.tender, tender_id)
            author = gw.get_employee(author_username)
            requester = gw.get_employee(requester_username)
            require_tender_org_representative(gw, requester, tender)

            return gw.list_feedback(
                tender_id=tender.id,
                author_id=author.id,
                limit=limit,
                offset=offset,
            )

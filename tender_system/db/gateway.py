# tender_system/db/gateway.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Type, Union

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, aliased

from tender_system.core.errors import BadRequest, NotFound, UserNotFound, VersionConflict
from tender_system.models.bid import Bid, BidHistory
from tender_system.models.decision import Decision, Vote
from tender_system.models.employee import Employee
from tender_system.models.enums import AuthorType, DecisionStatus, VoteDecision
from tender_system.models.feedback import Feedback
from tender_system.models.organization import Organization, OrganizationResponsible
from tender_system.models.tender import Tender, TenderHistory

logger = logging.getLogger(__name__)

Entity = Union[Tender, Bid]
Snapshot = Union[TenderHistory, BidHistory]


class EntityKind(str, Enum):
    tender = "tender"
    bid = "bid"


@dataclass(frozen=True)
class _EntityMeta:
    model: Type[Any]
    history: Type[Any]
    history_key: str
    fields: Tuple[str, ...]


_ENTITIES: Dict[EntityKind, _EntityMeta] = {
    EntityKind.tender: _EntityMeta(
        model=Tender,
        history=TenderHistory,
        history_key="tender_id",
        fields=("name", "description", "service_type", "status"),
    ),
    EntityKind.bid: _EntityMeta(
        model=Bid,
        history=BidHistory,
        history_key="bid_id",
        fields=("name", "description", "status"),
    ),
}


def kind_of(entity: Entity) -> EntityKind:
    if isinstance(entity, Tender):
        return EntityKind.tender
    if isinstance(entity, Bid):
        return EntityKind.bid
    raise TypeError(f"Not a versioned entity: {type(entity).__name__}")


def mutable_fields(kind: EntityKind) -> Tuple[str, ...]:
    return _ENTITIES[kind].fields


def as_uuid(value: Any, error: type = NotFound, what: str = "resource") -> uuid.UUID:
    """
    Identifiers arrive as plain strings; a malformed one cannot name
    an existing row, so it is reported with the caller-chosen error kind.
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise error(f"{what} not found")


class PersistenceGateway:
    """
    Transactional read/write primitives over one Session.

    Never commits: the calling service owns the unit of work.
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------------------------------------------------------------------
    # versioned entities
    # ---------------------------------------------------------------------

    def get_entity(self, kind: EntityKind, entity_id: Any, *, for_update: bool = False) -> Entity:
        meta = _ENTITIES[kind]
        stmt = select(meta.model).where(meta.model.id == as_uuid(entity_id, what=kind.value))
        if for_update:
            stmt = stmt.with_for_update()
        row = self.db.execute(stmt).scalar_one_or_none()
        if row is None:
            raise NotFound(f"{kind.value} not found")
        return row

    def current_fields(self, entity: Entity) -> Dict[str, Any]:
        return {f: getattr(entity, f) for f in _ENTITIES[kind_of(entity)].fields}

    def snapshot_fields(self, kind: EntityKind, snapshot: Snapshot) -> Dict[str, Any]:
        return {f: getattr(snapshot, f) for f in _ENTITIES[kind].fields}

    def get_history_snapshot(self, kind: EntityKind, entity_id: uuid.UUID, version: int) -> Snapshot:
        meta = _ENTITIES[kind]
        key = getattr(meta.history, meta.history_key)
        row = self.db.execute(
            select(meta.history).where(key == entity_id, meta.history.version == version)
        ).scalar_one_or_none()
        if row is None:
            raise NotFound(f"{kind.value} has no snapshot for version {version}")
        return row

    def list_history(self, kind: EntityKind, entity_id: uuid.UUID) -> List[Snapshot]:
        meta = _ENTITIES[kind]
        key = getattr(meta.history, meta.history_key)
        return list(
            self.db.execute(
                select(meta.history).where(key == entity_id).order_by(meta.history.version)
            )
            .scalars()
            .all()
        )

    def append_history_snapshot(
        self,
        kind: EntityKind,
        entity_id: uuid.UUID,
        version: int,
        fields: Mapping[str, Any],
    ) -> Snapshot:
        meta = _ENTITIES[kind]
        row = meta.history(
            **{meta.history_key: entity_id, "version": version},
            **{f: fields[f] for f in meta.fields},
        )
        self.db.add(row)
        # (entity_id, version) is the primary key: a concurrent writer fails here
        self.db.flush()
        return row

    def update_entity_fields(
        self,
        kind: EntityKind,
        entity_id: uuid.UUID,
        fields: Mapping[str, Any],
        expected_version: int,
    ) -> int:
        """
        Compare-and-increment: applies `fields` and bumps the version only if
        the live row is still at `expected_version`.
        """
        meta = _ENTITIES[kind]
        unknown = set(fields) - set(meta.fields)
        if unknown:
            raise BadRequest(f"Fields not editable on {kind.value}: {sorted(unknown)}")

        result = self.db.execute(
            update(meta.model)
            .where(meta.model.id == entity_id, meta.model.version == expected_version)
            .values(**dict(fields), version=meta.model.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise VersionConflict(
                f"{kind.value} {entity_id} is no longer at version {expected_version}"
            )
        return expected_version + 1

    def refresh(self, entity: Entity) -> Entity:
        self.db.refresh(entity)
        return entity

    def add(self, row: Any) -> Any:
        self.db.add(row)
        self.db.flush()
        self.db.refresh(row)
        return row

    # ---------------------------------------------------------------------
    # employees & organizations
    # ---------------------------------------------------------------------

    def get_employee(self, username: str) -> Employee:
        row = self.db.execute(
            select(Employee).where(Employee.username == username)
        ).scalar_one_or_none()
        if row is None:
            raise UserNotFound()
        return row

    def get_employee_by_id(self, employee_id: uuid.UUID) -> Optional[Employee]:
        return self.db.get(Employee, employee_id)

    def get_organization(self, organization_id: uuid.UUID) -> Optional[Organization]:
        return self.db.get(Organization, organization_id)

    def list_organization_representatives(self, organization_id: uuid.UUID) -> Set[uuid.UUID]:
        rows = self.db.execute(
            select(OrganizationResponsible.user_id).where(
                OrganizationResponsible.organization_id == organization_id
            )
        ).scalars().all()
        return set(rows)

    def is_representative(self, employee_id: uuid.UUID, organization_id: uuid.UUID) -> bool:
        return self.count_representative_rows(employee_id, organization_id) > 0

    def count_representative_rows(self, employee_id: uuid.UUID, organization_id: uuid.UUID) -> int:
        return int(
            self.db.execute(
                select(func.count())
                .select_from(OrganizationResponsible)
                .where(
                    OrganizationResponsible.user_id == employee_id,
                    OrganizationResponsible.organization_id == organization_id,
                )
            ).scalar_one()
        )

    def organizations_of(self, employee_id: uuid.UUID) -> Set[uuid.UUID]:
        rows = self.db.execute(
            select(OrganizationResponsible.organization_id).where(
                OrganizationResponsible.user_id == employee_id
            )
        ).scalars().all()
        return set(rows)

    def shares_organization(self, first_id: uuid.UUID, second_id: uuid.UUID) -> bool:
        """
        True when both employees hold memberships (distinct rows) in one organization.
        """
        e1 = aliased(OrganizationResponsible)
        e2 = aliased(OrganizationResponsible)
        row = self.db.execute(
            select(e1.id)
            .join(e2, (e1.organization_id == e2.organization_id) & (e1.id != e2.id))
            .where(e1.user_id == first_id, e2.user_id == second_id)
            .limit(1)
        ).first()
        return row is not None

    # ---------------------------------------------------------------------
    # listings
    # ---------------------------------------------------------------------

    def list_tenders(
        self,
        *,
        limit: int,
        offset: int,
        service_types: Optional[Sequence[str]] = None,
        creator_username: Optional[str] = None,
    ) -> List[Tender]:
        stmt = select(Tender)
        if service_types:
            stmt = stmt.where(Tender.service_type.in_(list(service_types)))
        if creator_username is not None:
            stmt = stmt.where(Tender.creator_username == creator_username)
        stmt = stmt.order_by(Tender.name, Tender.created_at).limit(limit).offset(offset)
        return list(self.db.execute(stmt).scalars().all())

    def list_bids(
        self,
        *,
        limit: int,
        offset: int,
        tender_id: Optional[uuid.UUID] = None,
        author_ids: Optional[Iterable[uuid.UUID]] = None,
        author_type: Optional[AuthorType] = None,
    ) -> List[Bid]:
        stmt = select(Bid)
        if tender_id is not None:
            stmt = stmt.where(Bid.tender_id == tender_id)
        if author_ids is not None:
            stmt = stmt.where(Bid.author_id.in_(list(author_ids)))
        if author_type is not None:
            stmt = stmt.where(Bid.author_type == author_type.value)
        stmt = stmt.order_by(Bid.name, Bid.created_at).limit(limit).offset(offset)
        return list(self.db.execute(stmt).scalars().all())

    # ---------------------------------------------------------------------
    # feedback
    # ---------------------------------------------------------------------

    def add_feedback(self, bid_id: uuid.UUID, description: str) -> Feedback:
        return self.add(Feedback(bid_id=bid_id, description=description))

    def list_feedback(
        self,
        *,
        tender_id: uuid.UUID,
        author_id: uuid.UUID,
        limit: int,
        offset: int,
    ) -> List[Feedback]:
        return list(
            self.db.execute(
                select(Feedback)
                .join(Bid, Bid.id == Feedback.bid_id)
                .where(
                    Bid.tender_id == tender_id,
                    Bid.author_type == AuthorType.user.value,
                    Bid.author_id == author_id,
                )
                .order_by(Feedback.created_at)
                .limit(limit)
                .offset(offset)
            )
            .scalars()
            .all()
        )

    # ---------------------------------------------------------------------
    # decisions & votes
    # ---------------------------------------------------------------------

    def has_voted(self, employee_id: uuid.UUID, bid_id: Optional[uuid.UUID] = None) -> bool:
        stmt = select(Vote.id).where(Vote.user_id == employee_id)
        if bid_id is not None:
            stmt = stmt.where(Vote.bid_id == bid_id)
        return self.db.execute(stmt.limit(1)).first() is not None

    def record_vote(self, bid_id: uuid.UUID, employee: Employee, decision: VoteDecision) -> Vote:
        return self.add(
            Vote(
                bid_id=bid_id,
                user_id=employee.id,
                username=employee.username,
                decision=decision.value,
            )
        )

    def get_or_create_decision(self, bid_id: uuid.UUID) -> Tuple[Decision, bool]:
        row = self.db.execute(
            select(Decision).where(Decision.bid_id == bid_id).with_for_update()
        ).scalar_one_or_none()
        if row is not None:
            return row, False
        row = self.add(
            Decision(bid_id=bid_id, status=DecisionStatus.pending.value, num_approved=0)
        )
        return row, True

    def update_decision(self, bid_id: uuid.UUID, num_approved: int, status: DecisionStatus) -> Decision:
        row = self.db.execute(
            select(Decision).where(Decision.bid_id == bid_id)
        ).scalar_one_or_none()
        if row is None:
            raise NotFound("decision not found")
        row.num_approved = num_approved
        row.status = status.value
        self.db.flush()
        return row

    def set_tender_status(self, tender_id: uuid.UUID, status: str) -> None:
        """
        Direct status write used by the decision cascade.
        It is a consensus outcome, not an edit: no snapshot, no version bump.
        """
        result = self.db.execute(
            update(Tender)
            .where(Tender.id == tender_id)
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFound("tender not found")

#tender_system/policies/access.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, FrozenSet, List, Optional, Sequence, Tuple, Union

from tender_system.core.errors import Forbidden
from tender_system.db.gateway import EntityKind, PersistenceGateway
from tender_system.models.bid import Bid
from tender_system.models.employee import Employee
from tender_system.models.enums import AuthorType
from tender_system.models.tender import Tender

logger = logging.getLogger(__name__)


class Role(str, Enum):
    owner = "Owner"
    org_representative = "OrgRepresentative"
    self_ = "Self"
    tender_creator_fallback = "TenderCreatorFallback"
    none = "None"


@dataclass(frozen=True)
class Access:
    """
    Outcome of one authorization decision.
    Call sites only inspect this; they never re-run the rule chain.
    """

    allowed: bool
    role: Role
    caller: Employee
    target: Union[Tender, Bid]
    tender: Tender

    def require(self) -> "Access":
        if not self.allowed:
            raise Forbidden()
        return self


# (gw, caller, target, parent tender) -> bool
Predicate = Callable[[PersistenceGateway, Employee, Any, Tender], bool]
Rule = Tuple[Role, Predicate]


def _is_tender_creator(gw: PersistenceGateway, caller: Employee, _target: Any, tender: Tender) -> bool:
    return tender.creator_username == caller.username


def _represents_tender_org(gw: PersistenceGateway, caller: Employee, _target: Any, tender: Tender) -> bool:
    return gw.is_representative(caller.id, tender.organization_id)


def _is_bid_author(gw: PersistenceGateway, caller: Employee, bid: Bid, _tender: Tender) -> bool:
    return bid.author_id == caller.id


def _shares_org_with_author(gw: PersistenceGateway, caller: Employee, bid: Bid, _tender: Tender) -> bool:
    return gw.shares_organization(bid.author_id, caller.id)


def _represents_author_org(gw: PersistenceGateway, caller: Employee, bid: Bid, _tender: Tender) -> bool:
    return gw.is_representative(caller.id, bid.author_id)


TENDER_RULES: Sequence[Rule] = (
    (Role.owner, _is_tender_creator),
    (Role.org_representative, _represents_tender_org),
)

USER_BID_RULES: Sequence[Rule] = (
    (Role.self_, _is_bid_author),
    (Role.org_representative, _shares_org_with_author),
    (Role.tender_creator_fallback, _is_tender_creator),
)

ORGANIZATION_BID_RULES: Sequence[Rule] = (
    (Role.org_representative, _represents_author_org),
    (Role.tender_creator_fallback, _is_tender_creator),
)


def _first_match(
    rules: Sequence[Rule],
    gw: PersistenceGateway,
    caller: Employee,
    target: Any,
    tender: Tender,
) -> Role:
    for role, predicate in rules:
        if predicate(gw, caller, target, tender):
            return role
    return Role.none


def _decide(
    rules: Sequence[Rule],
    gw: PersistenceGateway,
    caller: Employee,
    target: Union[Tender, Bid],
    tender: Tender,
) -> Access:
    role = _first_match(rules, gw, caller, target, tender)
    access = Access(
        allowed=role is not Role.none,
        role=role,
        caller=caller,
        target=target,
        tender=tender,
    )
    if not access.allowed:
        logger.warning(
            "[access] denied caller=%s target=%s id=%s",
            caller.username,
            type(target).__name__.lower(),
            target.id,
        )
    return access


def resolve_tender(
    gw: PersistenceGateway,
    username: str,
    tender_id: Any,
    *,
    for_update: bool = False,
) -> Access:
    """
    Tender rule: recorded creator, or representative of the owning organization.
    Order of failure: NotFound (tender), UserNotFound (caller), then the rules.
    """
    tender = gw.get_entity(EntityKind.tender, tender_id, for_update=for_update)
    caller = gw.get_employee(username)
    return _decide(TENDER_RULES, gw, caller, tender, tender)


def resolve_bid(
    gw: PersistenceGateway,
    username: str,
    bid_id: Any,
    *,
    for_update: bool = False,
) -> Access:
    """
    User-authored bid: the author, a colleague sharing an organization with the
    author, or (fallback) the parent tender's creator.
    Organization-authored bid: a representative of that organization, or
    (fallback) the parent tender's creator.
    """
    bid = gw.get_entity(EntityKind.bid, bid_id, for_update=for_update)
    caller = gw.get_employee(username)
    tender = gw.get_entity(EntityKind.tender, bid.tender_id)

    if bid.author_type == AuthorType.user.value:
        rules = USER_BID_RULES
    else:
        rules = ORGANIZATION_BID_RULES
    return _decide(rules, gw, caller, bid, tender)


def resolve(
    gw: PersistenceGateway,
    username: str,
    kind: EntityKind,
    entity_id: Any,
    *,
    for_update: bool = False,
) -> Access:
    if kind is EntityKind.tender:
        return resolve_tender(gw, username, entity_id, for_update=for_update)
    return resolve_bid(gw, username, entity_id, for_update=for_update)


def require_tender_org_representative(gw: PersistenceGateway, caller: Employee, tender: Tender) -> None:
    """
    Reviewing (feedback, votes, reviews) is reserved for the tender organization.
    """
    if not gw.is_representative(caller.id, tender.organization_id):
        logger.warning(
            "[access] caller=%s does not represent organization=%s",
            caller.username,
            tender.organization_id,
        )
        raise Forbidden()


# ---------------------------------------------------------------------
# listing visibility
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class BidVisibility:
    """
    Which bids of one tender a caller may see.

    sees_all: caller represents the tender's organization.
    Otherwise only bids whose author is the caller or an organization the
    caller represents.
    """

    caller: Employee
    tender: Tender
    sees_all: bool
    author_ids: FrozenSet[uuid.UUID] = field(default_factory=frozenset)

    def author_filter(self) -> Optional[FrozenSet[uuid.UUID]]:
        return None if self.sees_all else self.author_ids

    def require_visible(self, rows: List[Bid]) -> List[Bid]:
        # zero visible rows for an outsider is a denial, not an empty page
        if not rows and not self.sees_all:
            logger.warning(
                "[access] caller=%s sees no bids of tender=%s",
                self.caller.username,
                self.tender.id,
            )
            raise Forbidden()
        return rows


def resolve_bid_listing(gw: PersistenceGateway, username: str, tender_id: Any) -> BidVisibility:
    tender = gw.get_entity(EntityKind.tender, tender_id)
    caller = gw.get_employee(username)

    organizations = gw.organizations_of(caller.id)
    return BidVisibility(
        caller=caller,
        tender=tender,
        sees_all=tender.organization_id in organizations,
        author_ids=frozenset({caller.id, *organizations}),
    )

# tender_system/services/status_machine.py
from __future__ import annotations

import logging
import uuid
from typing import FrozenSet

from tender_system.core.errors import BadRequest
from tender_system.db.gateway import EntityKind, PersistenceGateway
from tender_system.models.bid import Bid
from tender_system.models.enums import BidStatus, TenderStatus
from tender_system.models.tender import Tender
from tender_system.services.versioning import VersionManager

logger = logging.getLogger(__name__)


class TenderStatusMachine:
    """
    States: Created -> Published -> Closed (initial Created).

    Explicit transitions accept any state of the set, in any order; the
    only guard is membership. Closed blocks new bids but not further
    explicit transitions. Closed can also be reached by organizational
    consensus through `close_by_consensus`.
    """

    STATES: FrozenSet[TenderStatus] = frozenset(TenderStatus)
    INITIAL = TenderStatus.created

    def __init__(self, gw: PersistenceGateway, versions: VersionManager):
        self.gw = gw
        self.versions = versions

    @staticmethod
    def parse(token: str) -> TenderStatus:
        try:
            return TenderStatus(token)
        except ValueError:
            raise BadRequest(f"Unknown tender status: {token!r}")

    @staticmethod
    def accepts_bids(tender: Tender) -> bool:
        return tender.status != TenderStatus.closed.value

    def transition(self, tender: Tender, requested: str) -> Tender:
        status = self.parse(requested)
        previous = tender.status
        tender = self.versions.apply_mutation(tender, {"status": status})
        logger.info("[tender-status] tender=%s %s -> %s", tender.id, previous, tender.status)
        return tender

    def close_by_consensus(self, tender_id: uuid.UUID) -> Tender:
        """
        Decision-engine cascade. Not an actor's edit: bypasses authorization.
        """
        self.gw.set_tender_status(tender_id, TenderStatus.closed.value)
        tender = self.gw.refresh(self.gw.get_entity(EntityKind.tender, tender_id))
        logger.info("[tender-status] tender=%s closed by decision quorum", tender_id)
        return tender


class BidStatusMachine:
    """
    States: Created, Published, Canceled (initial Created).
    Review outcomes never touch a bid's own status.
    """

    STATES: FrozenSet[BidStatus] = frozenset(BidStatus)
    INITIAL = BidStatus.created

    def __init__(self, versions: VersionManager):
        self.versions = versions

    @staticmethod
    def parse(token: str) -> BidStatus:
        try:
            return BidStatus(token)
        except ValueError:
            raise BadRequest(f"Unknown bid status: {token!r}")

    def transition(self, bid: Bid, requested: str) -> Bid:
        status = self.parse(requested)
        previous = bid.status
        bid = self.versions.apply_mutation(bid, {"status": status})
        logger.info("[bid-status] bid=%s %s -> %s", bid.id, previous, bid.status)
        return bid

# tender_system/services/decisions.py
from __future__ import annotations

import logging
from typing import Any

from tender_system.core.errors import BadRequest, Forbidden
from tender_system.db.gateway import EntityKind, PersistenceGateway
from tender_system.models.bid import Bid
from tender_system.models.enums import DecisionStatus, VoteDecision
from tender_system.services.status_machine import TenderStatusMachine

logger = logging.getLogger(__name__)


class DecisionQuorumEngine:
    """
    Collects review votes of the tender organization on a bid.

    Decision lifecycle: (none) -> Pending -> Closed.
      - first Approved vote opens it Pending with one approval
      - any Rejected vote closes it, without touching the tender
      - an Approved vote that finds the quorum already met closes it
        and closes the parent tender as well

    The bid's own status is never changed here.
    """

    def __init__(
        self,
        gw: PersistenceGateway,
        tenders: TenderStatusMachine,
        *,
        quorum_cap: int = 3,
        vote_scope: str = "global",
    ):
        self.gw = gw
        self.tenders = tenders
        self.quorum_cap = quorum_cap
        self.vote_scope = vote_scope

    @staticmethod
    def parse(token: str) -> VoteDecision:
        try:
            return VoteDecision(token)
        except ValueError:
            raise BadRequest(f"Unknown decision: {token!r}")

    def threshold(self, voter_id: Any, organization_id: Any) -> int:
        # counted over the voter's own membership rows, ceiling applied on top
        return min(self.gw.count_representative_rows(voter_id, organization_id), self.quorum_cap)

    def submit(self, bid_id: Any, voter_username: str, decision: str) -> Bid:
        verdict = self.parse(decision)

        bid = self.gw.get_entity(EntityKind.bid, bid_id, for_update=True)
        voter = self.gw.get_employee(voter_username)
        tender = self.gw.get_entity(EntityKind.tender, bid.tender_id)

        threshold = self.threshold(voter.id, tender.organization_id)
        if threshold < 1:
            logger.warning(
                "[decision] voter=%s does not represent organization=%s",
                voter.username,
                tender.organization_id,
            )
            raise Forbidden()

        scope_bid = bid.id if self.vote_scope == "bid" else None
        if self.gw.has_voted(voter.id, scope_bid):
            logger.warning("[decision] voter=%s already voted (scope=%s)", voter.username, self.vote_scope)
            raise Forbidden("employee has already voted")

        row, created = self.gw.get_or_create_decision(bid.id)

        if created:
            if verdict is VoteDecision.approved:
                self.gw.update_decision(bid.id, 1, DecisionStatus.pending)
            else:
                self.gw.update_decision(bid.id, 0, DecisionStatus.closed)
        elif row.status == DecisionStatus.closed.value:
            logger.warning("[decision] bid=%s decision already closed", bid.id)
            raise Forbidden("decision is already closed")
        elif verdict is VoteDecision.rejected:
            self.gw.update_decision(bid.id, row.num_approved, DecisionStatus.closed)
        elif row.num_approved >= threshold or row.num_approved >= self.quorum_cap:
            self.gw.update_decision(bid.id, row.num_approved + 1, DecisionStatus.closed)
            self.tenders.close_by_consensus(tender.id)
        else:
            self.gw.update_decision(bid.id, row.num_approved + 1, DecisionStatus.pending)

        self.gw.record_vote(bid.id, voter, verdict)

        logger.info(
            "[decision] bid=%s voter=%s verdict=%s approved=%d status=%s",
            bid.id,
            voter.username,
            verdict.value,
            row.num_approved,
            row.status,
        )
        return self.gw.refresh(bid)

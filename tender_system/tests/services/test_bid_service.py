import uuid

import pytest
from sqlalchemy import select

from tender_system.core.errors import BadRequest, Forbidden, InvalidVersion, NotFound, UserNotFound
from tender_system.models.decision import Decision
from tender_system.models.enums import AuthorType, DecisionStatus, TenderStatus
from tender_system.services.bids import BidService


def _user_bid(db, world, **overrides):
    payload = {
        "name": "Carl's offer",
        "description": "Cheap and fast",
        "tender_id": str(world["tender"].id),
        "author_type": "User",
        "author_id": str(world["carl"].id),
    }
    payload.update(overrides)
    return BidService().create_bid(db, **payload)


def _org_bid(db, world, **overrides):
    payload = {
        "name": "Bolt offer",
        "description": "Steel included",
        "tender_id": str(world["tender"].id),
        "author_type": "Organization",
        "author_id": str(world["bolt"].id),
    }
    payload.update(overrides)
    return BidService().create_bid(db, **payload)


# -----------------------------
# create
# -----------------------------


def test_create_user_bid(db, world):
    bid = _user_bid(db, world)

    assert bid.status == "Created"
    assert bid.version == 1
    assert bid.author_type == AuthorType.user.value
    assert bid.author_id == world["carl"].id


def test_create_organization_bid(db, world):
    bid = _org_bid(db, world)
    assert bid.author_id == world["bolt"].id


def test_representative_cannot_bid_as_user(db, world):
    with pytest.raises(Forbidden):
        _user_bid(db, world, author_id=str(world["bob"].id))


@pytest.mark.parametrize("author", ["not-a-uuid", str(uuid.uuid4())])
def test_unknown_user_author(db, world, author):
    with pytest.raises(UserNotFound):
        _user_bid(db, world, author_id=author)


def test_unknown_organization_author(db, world):
    with pytest.raises(UserNotFound):
        _org_bid(db, world, author_id=str(uuid.uuid4()))


def test_bid_on_missing_tender(db, world):
    with pytest.raises(NotFound):
        _user_bid(db, world, tender_id=str(uuid.uuid4()))


def test_bid_on_closed_tender_is_forbidden(db, seed, world):
    closed = seed.tender(world["acme"], world["alice"], status=TenderStatus.closed)

    with pytest.raises(Forbidden):
        _user_bid(db, world, tender_id=str(closed.id))


def test_unknown_author_type(db, world):
    with pytest.raises(BadRequest):
        _user_bid(db, world, author_type="Robot")


# -----------------------------
# listings
# -----------------------------


def test_list_my_bids_only_personal_bids(db, world):
    _user_bid(db, world)
    _org_bid(db, world)

    svc = BidService()
    assert [b.name for b in svc.list_my_bids(db, username="carl", limit=5, offset=0)] == ["Carl's offer"]
    assert svc.list_my_bids(db, username="bob", limit=5, offset=0) == []


def test_tender_representative_lists_all_bids(db, world):
    _user_bid(db, world)
    _org_bid(db, world)

    rows = BidService().list_tender_bids(
        db, tender_id=str(world["tender"].id), username="anna", limit=5, offset=0
    )
    assert [b.name for b in rows] == ["Bolt offer", "Carl's offer"]


def test_bidders_list_only_their_bids(db, world):
    _user_bid(db, world)
    _org_bid(db, world)
    svc = BidService()
    tid = str(world["tender"].id)

    assert [b.name for b in svc.list_tender_bids(db, tender_id=tid, username="carl", limit=5, offset=0)] == [
        "Carl's offer"
    ]
    assert [b.name for b in svc.list_tender_bids(db, tender_id=tid, username="bob", limit=5, offset=0)] == [
        "Bolt offer"
    ]


def test_listing_with_no_visible_rows_is_forbidden(db, world):
    _user_bid(db, world)

    with pytest.raises(Forbidden):
        BidService().list_tender_bids(
            db, tender_id=str(world["tender"].id), username="dave", limit=5, offset=0
        )


def test_representative_gets_empty_list_for_tender_without_bids(db, world):
    rows = BidService().list_tender_bids(
        db, tender_id=str(world["tender"].id), username="alice", limit=5, offset=0
    )
    assert rows == []


# -----------------------------
# status / edit / rollback
# -----------------------------


def test_bid_status_roundtrip(db, world):
    bid = _user_bid(db, world)
    svc = BidService()

    updated = svc.set_bid_status(db, bid_id=str(bid.id), status="Published", username="carl")

    assert updated.version == 2
    assert svc.get_bid_status(db, bid_id=str(bid.id), username="alice") == "Published"
    with pytest.raises(Forbidden):
        svc.get_bid_status(db, bid_id=str(bid.id), username="dave")


def test_set_bid_status_unknown_token(db, world):
    bid = _user_bid(db, world)
    with pytest.raises(BadRequest):
        BidService().set_bid_status(db, bid_id=str(bid.id), status="Won", username="carl")


def test_edit_bid_by_tender_creator_fallback(db, world):
    bid = _org_bid(db, world)

    edited = BidService().edit_bid(db, bid_id=str(bid.id), username="alice", description="Negotiated")

    assert edited.description == "Negotiated"
    assert edited.name == "Bolt offer"
    assert edited.version == 2


def test_edit_bid_by_stranger_is_forbidden(db, world):
    bid = _org_bid(db, world)
    with pytest.raises(Forbidden):
        BidService().edit_bid(db, bid_id=str(bid.id), username="carl", name="Hijack")


def test_rollback_bid(db, world):
    bid = _org_bid(db, world)
    svc = BidService()
    bid_id = str(bid.id)

    svc.edit_bid(db, bid_id=bid_id, username="bob", name="Bolt offer v2")
    svc.set_bid_status(db, bid_id=bid_id, status="Published", username="bob")
    restored = svc.rollback_bid(db, bid_id=bid_id, version=1, username="bob")

    assert restored.version == 4
    assert restored.name == "Bolt offer"
    assert restored.status == "Created"

    with pytest.raises(InvalidVersion):
        svc.rollback_bid(db, bid_id=bid_id, version=5, username="bob")


# -----------------------------
# feedback & reviews
# -----------------------------


def test_feedback_and_reviews(db, world):
    bid = _user_bid(db, world)
    svc = BidService()

    returned = svc.leave_feedback(db, bid_id=str(bid.id), feedback="Too expensive", username="anna")
    assert returned.id == bid.id
    assert returned.version == 1

    reviews = svc.list_reviews(
        db,
        tender_id=str(world["tender"].id),
        author_username="carl",
        requester_username="alice",
        limit=5,
        offset=0,
    )
    assert [r.description for r in reviews] == ["Too expensive"]


def test_feedback_requires_tender_representative(db, world):
    bid = _user_bid(db, world)
    with pytest.raises(Forbidden):
        BidService().leave_feedback(db, bid_id=str(bid.id), feedback="Nice", username="carl")


def test_empty_feedback_is_bad_request(db, world):
    bid = _user_bid(db, world)
    with pytest.raises(BadRequest):
        BidService().leave_feedback(db, bid_id=str(bid.id), feedback="  ", username="anna")


def test_reviews_require_tender_representative(db, world):
    with pytest.raises(Forbidden):
        BidService().list_reviews(
            db,
            tender_id=str(world["tender"].id),
            author_username="carl",
            requester_username="bob",
            limit=5,
            offset=0,
        )


def test_reviews_unknown_author(db, world):
    with pytest.raises(UserNotFound):
        BidService().list_reviews(
            db,
            tender_id=str(world["tender"].id),
            author_username="nobody",
            requester_username="alice",
            limit=5,
            offset=0,
        )


# -----------------------------
# decisions
# -----------------------------


def test_submit_decision_closes_tender_on_quorum(db, world):
    bid = _org_bid(db, world)
    svc = BidService(quorum_cap=3, vote_scope="global")

    svc.submit_decision(db, bid_id=str(bid.id), decision="Approved", username="alice")
    returned = svc.submit_decision(db, bid_id=str(bid.id), decision="Approved", username="anna")

    assert returned.status == "Created"
    decision = db.execute(select(Decision).where(Decision.bid_id == bid.id)).scalar_one()
    assert decision.status == DecisionStatus.closed.value

    db.refresh(world["tender"])
    assert world["tender"].status == TenderStatus.closed.value


def test_submit_decision_twice_is_forbidden(db, world):
    bid = _org_bid(db, world)
    svc = BidService()

    svc.submit_decision(db, bid_id=str(bid.id), decision="Approved", username="alice")
    with pytest.raises(Forbidden):
        svc.submit_decision(db, bid_id=str(bid.id), decision="Approved", username="alice")

import uuid

from tender_system.models.enums import TenderStatus


def _new_tender(client, world, **overrides):
    body = {
        "name": "Road",
        "description": "Resurface the main road",
        "serviceType": "Construction",
        "organizationId": str(world["acme"].id),
        "creatorUsername": "alice",
    }
    body.update(overrides)
    return client.post("/api/tenders/new", json=body)


def _new_bid(client, tender_id, author_type, author_id, name="Offer"):
    return client.post(
        "/api/bids/new",
        json={
            "name": name,
            "description": "We can do it",
            "tenderId": tender_id,
            "authorType": author_type,
            "authorId": author_id,
        },
    )


# -----------------------------
# system
# -----------------------------


def test_ping(client):
    r = client.get("/api/ping")
    assert r.status_code == 200
    assert r.text == "ok"


def test_request_id_is_echoed(client):
    r = client.get("/api/ping", headers={"X-Request-Id": "rid-123"})
    assert r.headers["X-Request-Id"] == "rid-123"

    generated = client.get("/api/ping").headers["X-Request-Id"]
    assert uuid.UUID(generated)


# -----------------------------
# tenders
# -----------------------------


def test_create_tender_returns_camel_case(client, world):
    r = _new_tender(client, world)

    assert r.status_code == 200, r.text
    body = r.json()
    assert set(body) == {"id", "name", "description", "serviceType", "status", "version", "createdAt"}
    assert body["status"] == "Created"
    assert body["version"] == 1


def test_create_tender_errors_use_reason_body(client, world):
    r = _new_tender(client, world, creatorUsername="bob")
    assert r.status_code == 403
    assert "reason" in r.json()

    r = _new_tender(client, world, creatorUsername="nobody")
    assert r.status_code == 401

    r = _new_tender(client, world, organizationId="nope")
    assert r.status_code == 400


def test_malformed_body_is_bad_request(client, world):
    r = _new_tender(client, world, serviceType="Catering")
    assert r.status_code == 400
    assert "reason" in r.json()

    r = client.post("/api/tenders/new", json={"name": "x"})
    assert r.status_code == 400


def test_list_tenders_default_limit_and_filter(client, seed, world):
    for i in range(6):
        seed.tender(world["acme"], world["alice"], name=f"T{i}")

    r = client.get("/api/tenders")
    assert r.status_code == 200
    assert len(r.json()) == 5

    r = client.get("/api/tenders", params={"limit": 2, "offset": 6})
    assert [t["name"] for t in r.json()] == ["T5"]

    r = client.get("/api/tenders", params={"service_type": "Delivery"})
    assert r.json() == []

    r = client.get("/api/tenders", params={"limit": -1})
    assert r.status_code == 400


def test_my_tenders_requires_username(client, world):
    r = client.get("/api/tenders/my")
    assert r.status_code == 401
    assert r.json() == {"reason": "The Username is empty"}

    r = client.get("/api/tenders/my", params={"username": "alice"})
    assert [t["name"] for t in r.json()] == ["Bridge"]


def test_tender_status_edit_and_rollback_flow(client, world):
    tid = str(world["tender"].id)

    r = client.get(f"/api/tenders/{tid}/status")
    assert r.status_code == 401

    r = client.put(f"/api/tenders/{tid}/status", params={"status": "Published", "username": "anna"})
    assert r.status_code == 200
    assert r.json()["version"] == 2

    r = client.get(f"/api/tenders/{tid}/status")
    assert r.status_code == 200
    assert r.json() == "Published"

    r = client.patch(f"/api/tenders/{tid}/edit", params={"username": "alice"}, json={"name": "Bridge II"})
    assert r.json()["name"] == "Bridge II"
    assert r.json()["version"] == 3

    r = client.put(f"/api/tenders/{tid}/rollback/1", params={"username": "alice"})
    assert r.status_code == 200
    assert r.json()["name"] == "Bridge"
    assert r.json()["status"] == "Created"
    assert r.json()["version"] == 4


def test_tender_status_errors(client, world):
    tid = str(world["tender"].id)

    assert client.put(f"/api/tenders/{tid}/status", params={"status": "Open", "username": "alice"}).status_code == 400
    assert client.put(f"/api/tenders/{tid}/status", params={"status": "Closed"}).status_code == 401
    assert client.put(f"/api/tenders/{tid}/status", params={"status": "Closed", "username": "dave"}).status_code == 403
    assert client.put("/api/tenders/nope/status", params={"status": "Closed", "username": "alice"}).status_code == 404


def test_tender_rollback_errors(client, world):
    tid = str(world["tender"].id)

    assert client.put(f"/api/tenders/{tid}/rollback/0", params={"username": "alice"}).status_code == 400
    assert client.put(f"/api/tenders/{tid}/rollback/two", params={"username": "alice"}).status_code == 400
    assert client.patch(f"/api/tenders/{tid}/edit", params={"username": "alice"}, json={}).status_code == 400


# -----------------------------
# bids
# -----------------------------


def test_bid_lifecycle(client, world):
    tid = str(world["tender"].id)

    r = _new_bid(client, tid, "User", str(world["carl"].id), name="Carl")
    assert r.status_code == 200, r.text
    bid = r.json()
    assert set(bid) == {"id", "name", "status", "authorType", "authorId", "version", "createdAt"}
    bid_id = bid["id"]

    r = client.get("/api/bids/my", params={"username": "carl"})
    assert [b["id"] for b in r.json()] == [bid_id]

    r = client.put(f"/api/bids/{bid_id}/status", params={"status": "Published", "username": "carl"})
    assert r.json()["status"] == "Published"

    r = client.get(f"/api/bids/{bid_id}/status", params={"username": "alice"})
    assert r.json() == "Published"

    r = client.patch(f"/api/bids/{bid_id}/edit", params={"username": "carl"}, json={"name": "Carl v3"})
    assert r.json()["version"] == 3

    r = client.put(f"/api/bids/{bid_id}/rollback/1", params={"username": "carl"})
    assert r.json()["name"] == "Carl"
    assert r.json()["status"] == "Created"
    assert r.json()["version"] == 4


def test_bid_create_rules(client, seed, world):
    tid = str(world["tender"].id)

    assert _new_bid(client, tid, "User", str(world["bob"].id)).status_code == 403
    assert _new_bid(client, tid, "User", str(uuid.uuid4())).status_code == 401
    assert _new_bid(client, str(uuid.uuid4()), "Organization", str(world["bolt"].id)).status_code == 404
    assert _new_bid(client, tid, "Robot", str(world["bolt"].id)).status_code == 400

    closed = seed.tender(world["acme"], world["alice"], status=TenderStatus.closed)
    assert _new_bid(client, str(closed.id), "Organization", str(world["bolt"].id)).status_code == 403


def test_my_bids_without_username_is_empty(client, world):
    r = client.get("/api/bids/my")
    assert r.status_code == 200
    assert r.json() == []


def test_tender_bid_listing_visibility(client, world):
    tid = str(world["tender"].id)
    _new_bid(client, tid, "User", str(world["carl"].id), name="Carl")
    _new_bid(client, tid, "Organization", str(world["bolt"].id), name="Bolt")

    r = client.get(f"/api/bids/{tid}/list", params={"username": "anna"})
    assert [b["name"] for b in r.json()] == ["Bolt", "Carl"]

    r = client.get(f"/api/bids/{tid}/list", params={"username": "bob"})
    assert [b["name"] for b in r.json()] == ["Bolt"]

    r = client.get(f"/api/bids/{tid}/list", params={"username": "dave"})
    assert r.status_code == 403

    r = client.get(f"/api/bids/{tid}/list")
    assert r.status_code == 401


def test_feedback_and_reviews(client, world):
    tid = str(world["tender"].id)
    bid_id = _new_bid(client, tid, "User", str(world["carl"].id)).json()["id"]

    r = client.put(f"/api/bids/{bid_id}/feedback", params={"bidFeedback": "Needs detail", "username": "anna"})
    assert r.status_code == 200
    assert r.json()["id"] == bid_id

    r = client.put(f"/api/bids/{bid_id}/feedback", params={"bidFeedback": "Mine", "username": "carl"})
    assert r.status_code == 403

    r = client.get(
        f"/api/bids/{tid}/reviews",
        params={"authorUsername": "carl", "requesterUsername": "alice"},
    )
    assert r.status_code == 200
    reviews = r.json()
    assert [x["description"] for x in reviews] == ["Needs detail"]
    assert set(reviews[0]) == {"id", "description", "createdAt"}


def test_submit_decision_quorum_closes_tender(client, world):
    tid = str(world["tender"].id)
    bid_id = _new_bid(client, tid, "Organization", str(world["bolt"].id)).json()["id"]

    r = client.put(f"/api/bids/{bid_id}/submit_decision", params={"decision": "Approved", "username": "alice"})
    assert r.status_code == 200
    assert r.json()["status"] == "Created"

    r = client.put(f"/api/bids/{bid_id}/submit_decision", params={"decision": "Approved", "username": "anna"})
    assert r.status_code == 200

    r = client.get(f"/api/tenders/{tid}/status", params={"username": "alice"})
    assert r.json() == "Closed"

    r = client.put(f"/api/bids/{bid_id}/submit_decision", params={"decision": "Approved", "username": "alice"})
    assert r.status_code == 403


def test_submit_decision_errors(client, world):
    tid = str(world["tender"].id)
    bid_id = _new_bid(client, tid, "Organization", str(world["bolt"].id)).json()["id"]

    assert client.put(f"/api/bids/{bid_id}/submit_decision", params={"decision": "Meh", "username": "alice"}).status_code == 400
    assert client.put(f"/api/bids/{bid_id}/submit_decision", params={"decision": "Approved", "username": "bob"}).status_code == 403
    assert client.put(f"/api/bids/{uuid.uuid4()}/submit_decision", params={"decision": "Approved", "username": "alice"}).status_code == 404

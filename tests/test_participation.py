from sqlalchemy import func, select

from app.models.participant import Participant
from conftest import notifications_for, trust_score


def _join(client, listing, user):
    return client.post(f"/listings/{listing['id']}/participate", json={"userId": user["id"]})


def _participant_rows(db, listing_id):
    return db.scalar(select(func.count(Participant.id)).where(Participant.listing_id == listing_id))


def test_join_updates_quantity_and_notifies_author(client, make_user, make_listing):
    author = make_user("host")
    buyer = make_user("buyer")
    listing = make_listing(author)
    assert listing["currentQuantity"] == 0
    assert listing["status"] == "open"

    resp = _join(client, listing, buyer)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["participant"]["userId"] == buyer["id"]
    assert body["participant"]["user"]["nickname"] == "buyer"
    assert body["post"]["currentQuantity"] == 1

    author_notes = notifications_for(client, author)
    assert [n["type"] for n in author_notes] == ["new_participant"]
    assert author_notes[0]["postId"] == listing["id"]
    assert author_notes[0]["isRead"] is False


def test_author_cannot_join_own_listing(client, make_user, make_listing):
    author = make_user()
    listing = make_listing(author)

    resp = _join(client, listing, author)
    assert resp.status_code == 400
    assert resp.json()["error"] == "AUTHOR_CANNOT_JOIN"
    assert client.get(f"/listings/{listing['id']}").json()["currentQuantity"] == 0


def test_join_checks_run_in_order(client, make_user, make_listing):
    author = make_user()
    listing = make_listing(author)

    missing_listing = client.post("/listings/nope/participate", json={"userId": "ghost"})
    assert missing_listing.status_code == 404
    assert missing_listing.json()["error"] == "POST_NOT_FOUND"

    missing_user = client.post(f"/listings/{listing['id']}/participate", json={"userId": "ghost"})
    assert missing_user.status_code == 404
    assert missing_user.json()["error"] == "USER_NOT_FOUND"


def test_join_rejected_once_listing_is_closed(client, make_user, make_listing):
    author = make_user()
    late = make_user()
    listing = make_listing(author)
    closed = client.patch(f"/listings/{listing['id']}/status", json={"status": "closed", "authorId": author["id"]})
    assert closed.status_code == 200

    resp = _join(client, listing, late)
    assert resp.status_code == 400
    assert resp.json()["error"] == "POST_NOT_OPEN"


def test_duplicate_join_is_rejected_by_unique_index(client, db, make_user, make_listing):
    author = make_user()
    buyer = make_user()
    listing = make_listing(author)

    first = _join(client, listing, buyer)
    second = _join(client, listing, buyer)

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["error"] == "ALREADY_PARTICIPATED"
    assert _participant_rows(db, listing["id"]) == 1
    assert client.get(f"/listings/{listing['id']}").json()["currentQuantity"] == 1


def test_join_then_leave_restores_quantity_and_costs_trust(client, make_user, make_listing):
    author = make_user()
    buyer = make_user()
    listing = make_listing(author)

    assert _join(client, listing, buyer).status_code == 201
    before = trust_score(client, buyer)

    resp = client.delete(f"/listings/{listing['id']}/participate/{buyer['id']}")
    assert resp.status_code == 200, resp.text
    assert resp.json()["post"]["currentQuantity"] == 0
    assert trust_score(client, buyer) == before - 3

    types = [n["type"] for n in notifications_for(client, author)]
    assert sorted(types) == ["new_participant", "participant_cancel"]


def test_leave_without_participation_is_not_found(client, make_user, make_listing):
    author = make_user()
    stranger = make_user()
    listing = make_listing(author)

    resp = client.delete(f"/listings/{listing['id']}/participate/{stranger['id']}")
    assert resp.status_code == 404
    assert resp.json()["error"] == "PARTICIPANT_NOT_FOUND"
    assert trust_score(client, stranger) == 50


def test_quantity_tracks_participant_rows(client, db, make_user, make_listing):
    author = make_user()
    buyers = [make_user() for _ in range(3)]
    listing = make_listing(author)

    for buyer in buyers:
        assert _join(client, listing, buyer).status_code == 201
    client.delete(f"/listings/{listing['id']}/participate/{buyers[1]['id']}")

    current = client.get(f"/listings/{listing['id']}").json()["currentQuantity"]
    assert current == _participant_rows(db, listing["id"]) == 2

    participants = client.get(f"/listings/{listing['id']}/participants").json()
    assert {p["userId"] for p in participants} == {buyers[0]["id"], buyers[2]["id"]}
    assert author["id"] not in {p["userId"] for p in participants}


def test_failed_notification_does_not_fail_join(client, monkeypatch, make_user, make_listing):
    author = make_user()
    buyer = make_user()
    listing = make_listing(author)

    def _broken_notify(*args, **kwargs):
        raise RuntimeError("notification store unavailable")

    monkeypatch.setattr("app.services.notifications.notify", _broken_notify)

    resp = _join(client, listing, buyer)
    assert resp.status_code == 201
    assert resp.json()["post"]["currentQuantity"] == 1
    assert notifications_for(client, author) == []


def test_failed_trust_update_does_not_fail_leave(client, monkeypatch, make_user, make_listing):
    author = make_user()
    buyer = make_user()
    listing = make_listing(author)
    _join(client, listing, buyer)

    def _broken_adjust(*args, **kwargs):
        raise RuntimeError("trust ledger unavailable")

    monkeypatch.setattr("app.services.trust.adjust_trust_score", _broken_adjust)

    resp = client.delete(f"/listings/{listing['id']}/participate/{buyer['id']}")
    assert resp.status_code == 200
    assert resp.json()["post"]["currentQuantity"] == 0
    assert trust_score(client, buyer) == 50
    assert "participant_cancel" in [n["type"] for n in notifications_for(client, author)]


def test_participation_lookups(client, make_user, make_listing):
    author = make_user()
    buyer = make_user()
    listing = make_listing(author)
    _join(client, listing, buyer)

    check = client.get(f"/listings/{listing['id']}/participate/{buyer['id']}")
    assert check.json() == {"isParticipant": True}
    check_author = client.get(f"/listings/{listing['id']}/participate/{author['id']}")
    assert check_author.json() == {"isParticipant": False}

    joined = client.get(f"/listings/user/{buyer['id']}/participated").json()
    assert [row["listingId"] for row in joined] == [listing["id"]]
    assert joined[0]["listing"]["title"] == listing["title"]

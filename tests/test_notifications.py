from conftest import notifications_for


def _seed(client, make_user, make_listing):
    author = make_user("host")
    listing = make_listing(author, title="Shared printer paper")
    for nickname in ("a", "b", "c"):
        user = make_user(nickname)
        client.post(f"/listings/{listing['id']}/participate", json={"userId": user["id"]})
    return author, listing


def test_listing_is_newest_first_with_counts(client, make_user, make_listing):
    author, listing = _seed(client, make_user, make_listing)

    body = client.get("/notifications", headers={"X-User-Id": author["id"]}).json()

    assert body["total"] == 3
    assert body["unreadCount"] == 3
    created = [n["createdAt"] for n in body["notifications"]]
    assert created == sorted(created, reverse=True)
    first = body["notifications"][0]
    assert first["type"] == "new_participant"
    assert first["postId"] == listing["id"]
    assert "Shared printer paper" in first["message"]


def test_user_id_is_required(client):
    resp = client.get("/notifications")
    assert resp.status_code == 400
    assert resp.json()["error"] == "USER_ID_REQUIRED"


def test_user_id_query_parameter_is_accepted(client, make_user, make_listing):
    author, _ = _seed(client, make_user, make_listing)

    resp = client.get("/notifications/unread-count", params={"userId": author["id"]})
    assert resp.json() == {"unreadCount": 3}


def test_mark_read_is_scoped_to_owner(client, make_user, make_listing):
    author, _ = _seed(client, make_user, make_listing)
    stranger = make_user("stranger")
    note = notifications_for(client, author)[0]

    foreign = client.patch(f"/notifications/{note['id']}/read", headers={"X-User-Id": stranger["id"]})
    assert foreign.status_code == 404
    assert foreign.json()["error"] == "NOTIFICATION_NOT_FOUND"

    own = client.patch(f"/notifications/{note['id']}/read", headers={"X-User-Id": author["id"]})
    assert own.status_code == 200
    assert own.json()["isRead"] is True
    assert client.get("/notifications/unread-count", headers={"X-User-Id": author["id"]}).json() == {"unreadCount": 2}


def test_unread_only_filter_and_mark_all(client, make_user, make_listing):
    author, _ = _seed(client, make_user, make_listing)
    headers = {"X-User-Id": author["id"]}
    first = notifications_for(client, author)[0]
    client.patch(f"/notifications/{first['id']}/read", headers=headers)

    assert len(notifications_for(client, author, unreadOnly="true")) == 2

    resp = client.patch("/notifications/read-all", headers=headers)
    assert resp.json() == {"updatedCount": 2}
    assert notifications_for(client, author, unreadOnly="true") == []
    assert client.patch("/notifications/read-all", headers=headers).json() == {"updatedCount": 0}


def test_delete_is_scoped_to_owner(client, make_user, make_listing):
    author, _ = _seed(client, make_user, make_listing)
    stranger = make_user("stranger")
    note = notifications_for(client, author)[0]

    assert client.delete(f"/notifications/{note['id']}", headers={"X-User-Id": stranger["id"]}).status_code == 404
    assert client.delete(f"/notifications/{note['id']}", headers={"X-User-Id": author["id"]}).status_code == 204
    assert len(notifications_for(client, author)) == 2


def test_pagination(client, make_user, make_listing):
    author, _ = _seed(client, make_user, make_listing)

    page = client.get("/notifications", headers={"X-User-Id": author["id"]}, params={"limit": 2, "offset": 2}).json()

    assert len(page["notifications"]) == 1
    assert page["total"] == 3

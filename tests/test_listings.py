def test_create_and_read_listing(client, make_user, make_listing):
    author = make_user("host")
    listing = make_listing(author, images=["https://img/1.png", "https://img/2.png"])

    assert listing["status"] == "open"
    assert listing["currentQuantity"] == 0
    assert listing["images"] == ["https://img/1.png", "https://img/2.png"]

    detail = client.get(f"/listings/{listing['id']}").json()
    assert detail["favoriteCount"] == 0
    assert detail["isFavorite"] is False


def test_create_requires_known_author(client):
    resp = client.post(
        "/listings",
        json={
            "authorId": "ghost",
            "title": "x",
            "content": "y",
            "price": 1000,
            "deadline": "2030-01-01T00:00:00Z",
        },
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "AUTHOR_NOT_FOUND"


def test_invalid_payload_is_a_validation_error(client, make_user):
    author = make_user()
    resp = client.post("/listings", json={"authorId": author["id"], "title": "", "price": -1})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["details"]


def test_blank_category_is_stored_as_none(client, make_user, make_listing):
    listing = make_listing(make_user(), category="  ")
    assert listing["category"] is None

    bad = client.post("/listings", json={"authorId": listing["authorId"], "category": "cars"})
    assert bad.status_code == 400


def test_filter_by_category_and_author(client, make_user, make_listing):
    author, other = make_user(), make_user()
    make_listing(author, category="food")
    make_listing(author, category="school")
    make_listing(other, category="food")

    foods = client.get("/listings", params={"category": "food"}).json()
    assert len(foods) == 2
    assert {item["category"] for item in foods} == {"food"}
    assert len(client.get(f"/listings/author/{author['id']}").json()) == 2


def test_update_by_author_only(client, make_user, make_listing):
    author, other = make_user(), make_user()
    listing = make_listing(author)

    denied = client.patch(f"/listings/{listing['id']}", json={"title": "Mine now"}, headers={"X-User-Id": other["id"]})
    assert denied.status_code == 403

    resp = client.patch(
        f"/listings/{listing['id']}",
        json={"title": "Bigger ramen order", "pickupLocation": None, "images": ["https://img/3.png"]},
        headers={"X-User-Id": author["id"]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Bigger ramen order"
    assert body["pickupLocation"] is None
    assert body["images"] == ["https://img/3.png"]
    assert body["status"] == "open"


def test_favorites_round_trip(client, make_user, make_listing):
    author, fan = make_user(), make_user()
    listing = make_listing(author)
    headers = {"X-User-Id": fan["id"]}

    added = client.post(f"/listings/{listing['id']}/favorite", headers=headers)
    assert added.status_code == 201
    assert added.json() == {"isFavorite": True, "favoriteCount": 1}

    again = client.post(f"/listings/{listing['id']}/favorite", headers=headers)
    assert again.status_code == 409
    assert again.json()["error"] == "ALREADY_FAVORITED"

    detail = client.get(f"/listings/{listing['id']}", headers=headers).json()
    assert detail["isFavorite"] is True
    assert detail["favoriteCount"] == 1

    mine = client.get("/favorites", headers=headers).json()
    assert mine["total"] == 1
    assert mine["favorites"][0]["listing"]["id"] == listing["id"]

    removed = client.delete(f"/listings/{listing['id']}/favorite", headers=headers)
    assert removed.json() == {"isFavorite": False, "favoriteCount": 0}
    assert client.delete(f"/listings/{listing['id']}/favorite", headers=headers).status_code == 404


def test_favorite_needs_user_id(client, make_user, make_listing):
    listing = make_listing(make_user())
    resp = client.post(f"/listings/{listing['id']}/favorite")
    assert resp.status_code == 400
    assert resp.json()["error"] == "USER_ID_REQUIRED"


def test_duplicate_registration_conflicts(client, make_user):
    user = make_user()
    resp = client.post(
        "/users",
        json={"email": user["email"], "password": "secret123", "nickname": "dup", "studentId": "99999999"},
    )
    assert resp.status_code == 409
    assert resp.json()["error"] == "USER_ALREADY_EXISTS"
    assert user["trustScore"] == 50
    assert "passwordHash" not in user


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}

from datetime import datetime, timedelta, timezone

from conftest import notifications_for
from app.services.reminders import send_deadline_reminders
from app.workers.tasks import deadline_reminder_job


def _in_hours(hours: float) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


def test_reminds_involved_users_and_watchers_once(client, db, make_user, make_listing):
    author = make_user("host")
    buyer = make_user("buyer")
    watcher = make_user("watcher")
    listing = make_listing(author, deadline=_in_hours(2))
    client.post(f"/listings/{listing['id']}/participate", json={"userId": buyer["id"]})
    for user in (watcher, buyer):
        client.post(f"/listings/{listing['id']}/favorite", headers={"X-User-Id": user["id"]})

    assert send_deadline_reminders(db) == 3

    def reminder_types(user):
        return [n["type"] for n in notifications_for(client, user) if n["type"] in {"deadline_soon", "favorite_deadline"}]

    assert reminder_types(author) == ["deadline_soon"]
    assert reminder_types(buyer) == ["deadline_soon"]
    assert reminder_types(watcher) == ["favorite_deadline"]

    assert send_deadline_reminders(db) == 0


def test_skips_distant_and_closed_listings(client, db, make_user, make_listing):
    author = make_user()
    make_listing(author, deadline=_in_hours(72))
    closing = make_listing(author, deadline=_in_hours(3))
    client.patch(f"/listings/{closing['id']}/status", json={"status": "closed", "authorId": author["id"]})

    assert send_deadline_reminders(db) == 0


def test_worker_task_runs_the_sweep(client, make_user, make_listing):
    author = make_user()
    make_listing(author, deadline=_in_hours(1))

    assert deadline_reminder_job() == 1

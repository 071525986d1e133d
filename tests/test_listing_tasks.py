"""
Scheduled publishing and expiry of listings
"""

from datetime import timedelta

from sqlalchemy import update

import config
from src.models import Post, utcnow
from src.tasks.listing_tasks import ListingTaskManager, get_listing_task_manager

from conftest import API, create_post, publish_post, run_db


def run_listing_tasks(client):
    return client.portal.call(get_listing_task_manager().run_once)


def test_manager_initialised_but_not_started(client):
    manager = get_listing_task_manager()

    assert isinstance(manager, ListingTaskManager)
    assert manager.get_status()["scheduler_running"] is False


def test_due_scheduled_post_is_published(client, seller):
    post = create_post(client, seller["headers"])
    future = (utcnow() + timedelta(hours=1)).isoformat()
    client.post(
        f"{API}/posts/{post['id']}/schedule",
        json={"scheduledTime": future},
        headers=seller["headers"],
    )

    assert run_listing_tasks(client) == {"published": 0, "expired": 0}

    run_db(
        client,
        update(Post)
        .where(Post.id == post["id"])
        .values(scheduled_publish_time=utcnow() - timedelta(minutes=1)),
    )
    assert run_listing_tasks(client) == {"published": 1, "expired": 0}

    detail = client.get(f"{API}/posts/{post['id']}").json()["data"]
    assert detail["status"] == "Active"
    feed = client.get(f"{API}/posts/feed").json()["data"]
    assert [item["id"] for item in feed] == [post["id"]]


def test_expired_post_leaves_feed(client, seller):
    post = create_post(client, seller["headers"])
    publish_post(client, seller["headers"], post["id"])
    run_db(
        client,
        update(Post).where(Post.id == post["id"]).values(expires_at=utcnow() - timedelta(seconds=1)),
    )

    assert run_listing_tasks(client) == {"published": 0, "expired": 1}

    detail = client.get(f"{API}/posts/{post['id']}").json()["data"]
    assert detail["status"] == "Expired"
    assert client.get(f"{API}/posts/feed").json()["data"] == []


def test_manager_status_before_start():
    manager = ListingTaskManager(post_service=None, config=config.settings)

    assert manager.interval_minutes == config.settings.listing_task_interval_minutes
    assert manager.get_status()["next_run_time"] is None

"""
Listing API tests
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy import update

from src.models import Post

from conftest import API, create_post, publish_post, run_db


def test_create_post_is_draft(client, seller):
    post = create_post(client, seller["headers"])

    assert post["status"] == "Draft"
    assert post["user"]["id"] == seller["user"]["id"]
    assert post["category"]["name"] == "Electronics"
    assert post["price"] == 250000
    # local storage serves blob paths under the uploads prefix
    assert post["images"][0]["imageUrl"] == "/uploads/1-1700000000000-abc.jpg"


def test_create_post_unknown_category(client, seller):
    response = client.post(
        f"{API}/posts",
        json={
            "title": "Nowhere to go",
            "categoryId": 999,
            "description": "This category does not exist",
            "price": 1000,
            "location": "Kampala",
            "contactNumber": "+256700123456",
        },
        headers=seller["headers"],
    )

    assert response.status_code == 404


def test_create_post_validation(client, seller):
    response = client.post(
        f"{API}/posts",
        json={"title": "Bad", "categoryId": 1, "description": "short", "price": -5},
        headers=seller["headers"],
    )

    assert response.status_code == 400
    fields = {detail["field"] for detail in response.json()["error"]["details"]}
    assert {"title", "description", "price", "location", "contactNumber"} <= fields


def test_create_post_requires_auth(client):
    response = client.post(f"{API}/posts", json={})

    assert response.status_code == 401


def test_get_post_counts_views(client, seller, buyer):
    post = create_post(client, seller["headers"])

    anonymous = client.get(f"{API}/posts/{post['id']}")
    viewed = client.get(f"{API}/posts/{post['id']}", headers=buyer["headers"])

    assert anonymous.json()["data"]["viewCount"] == 1
    assert "isLiked" not in anonymous.json()["data"]
    assert viewed.json()["data"]["viewCount"] == 2
    assert viewed.json()["data"]["isLiked"] is False


def test_get_post_not_found(client):
    response = client.get(f"{API}/posts/12345")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


def test_update_post_owner_only(client, seller, buyer):
    post = create_post(client, seller["headers"])

    forbidden = client.put(
        f"{API}/posts/{post['id']}", json={"price": 1}, headers=buyer["headers"]
    )
    updated = client.put(
        f"{API}/posts/{post['id']}",
        json={"price": 199000, "title": "Mountain bike, price drop"},
        headers=seller["headers"],
    )

    assert forbidden.status_code == 403
    assert updated.status_code == 200
    assert updated.json()["data"]["price"] == 199000
    assert updated.json()["data"]["title"] == "Mountain bike, price drop"


def test_delete_post(client, seller, buyer):
    post = create_post(client, seller["headers"])

    assert client.delete(f"{API}/posts/{post['id']}", headers=buyer["headers"]).status_code == 403
    assert client.delete(f"{API}/posts/{post['id']}", headers=seller["headers"]).status_code == 200
    assert client.get(f"{API}/posts/{post['id']}").status_code == 404


def test_toggle_like(client, seller, buyer):
    """Liking twice returns to the original state and the count follows"""
    post = create_post(client, seller["headers"])
    url = f"{API}/posts/{post['id']}/like"

    liked = client.post(url, headers=buyer["headers"]).json()["data"]
    also_liked = client.post(url, headers=seller["headers"]).json()["data"]
    unliked = client.post(url, headers=buyer["headers"]).json()["data"]

    assert liked == {"liked": True, "likeCount": 1}
    assert also_liked == {"liked": True, "likeCount": 2}
    assert unliked == {"liked": False, "likeCount": 1}

    detail = client.get(f"{API}/posts/{post['id']}", headers=seller["headers"]).json()["data"]
    assert detail["likeCount"] == 1
    assert detail["isLiked"] is True


def test_like_missing_post(client, buyer):
    assert client.post(f"{API}/posts/999/like", headers=buyer["headers"]).status_code == 404


def test_publish_post(client, seller):
    post = create_post(client, seller["headers"])

    published = publish_post(client, seller["headers"], post["id"])

    assert published["status"] == "Active"
    published_at = datetime.fromisoformat(published["publishedAt"])
    expires_at = datetime.fromisoformat(published["expiresAt"])
    assert expires_at - published_at == timedelta(days=30)

    again = client.post(f"{API}/posts/{post['id']}/publish", headers=seller["headers"])
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "BAD_REQUEST"


def test_schedule_post_in_past(client, seller):
    post = create_post(client, seller["headers"])
    past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()

    response = client.post(
        f"{API}/posts/{post['id']}/schedule",
        json={"scheduledTime": past},
        headers=seller["headers"],
    )

    assert response.status_code == 400


def test_schedule_post(client, seller):
    post = create_post(client, seller["headers"])
    future = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()

    response = client.post(
        f"{API}/posts/{post['id']}/schedule",
        json={"scheduledTime": future},
        headers=seller["headers"],
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "Scheduled"
    assert response.json()["data"]["scheduledPublishTime"]


def test_feed_lists_active_posts_newest_first(client, seller):
    draft = create_post(client, seller["headers"], title="Still a draft")
    older = create_post(client, seller["headers"], title="Older listing")
    newer = create_post(client, seller["headers"], title="Newer listing")
    publish_post(client, seller["headers"], older["id"])
    publish_post(client, seller["headers"], newer["id"])
    run_db(
        client,
        update(Post)
        .where(Post.id == older["id"])
        .values(published_at=datetime(2020, 1, 1)),
    )

    response = client.get(f"{API}/posts/feed", params={"limit": 10})

    body = response.json()
    ids = [item["id"] for item in body["data"]]
    assert ids == [newer["id"], older["id"]]
    assert draft["id"] not in ids
    assert body["pagination"] == {"total": 2, "page": 1, "limit": 10, "pages": 1}


def test_feed_pagination(client, seller):
    for i in range(3):
        post = create_post(client, seller["headers"], title=f"Listing number {i}")
        publish_post(client, seller["headers"], post["id"])

    response = client.get(f"{API}/posts/feed", params={"page": 2, "limit": 2})

    body = response.json()
    assert len(body["data"]) == 1
    assert body["pagination"]["pages"] == 2


def test_feed_limit_capped(client):
    response = client.get(f"{API}/posts/feed", params={"limit": 500})

    assert response.status_code == 400


def test_search_posts(client, seller):
    bike = create_post(client, seller["headers"], title="Trek mountain bike", brand="Trek")
    phone = create_post(
        client,
        seller["headers"],
        title="Phone for sale",
        description="Barely used smartphone with charger",
        brand="Samsung",
    )
    publish_post(client, seller["headers"], bike["id"])
    publish_post(client, seller["headers"], phone["id"])

    by_brand = client.get(f"{API}/posts/search", params={"q": "samsung"}).json()
    by_title = client.get(f"{API}/posts/search", params={"q": "TREK"}).json()
    priced = client.get(
        f"{API}/posts/search", params={"q": "e", "maxPrice": 100}
    ).json()

    assert [p["id"] for p in by_brand["data"]] == [phone["id"]]
    assert [p["id"] for p in by_title["data"]] == [bike["id"]]
    assert priced["data"] == []


def test_search_wildcards_match_literally(client, seller):
    sale = create_post(client, seller["headers"], title="Sofa 50% off")
    plain = create_post(client, seller["headers"], title="Old sofa")
    publish_post(client, seller["headers"], sale["id"])
    publish_post(client, seller["headers"], plain["id"])

    percent = client.get(f"{API}/posts/search", params={"q": "50%"}).json()
    underscore = client.get(f"{API}/posts/search", params={"q": "s_fa"}).json()

    assert [p["id"] for p in percent["data"]] == [sale["id"]]
    assert underscore["data"] == []


def test_user_posts_with_status_filter(client, seller):
    first = create_post(client, seller["headers"])
    create_post(client, seller["headers"], title="Another draft")
    publish_post(client, seller["headers"], first["id"])

    everything = client.get(f"{API}/posts/user/{seller['user']['id']}").json()["data"]
    active = client.get(
        f"{API}/posts/user/{seller['user']['id']}", params={"status": "Active"}
    ).json()["data"]

    assert len(everything) == 2
    assert [p["id"] for p in active] == [first["id"]]


def test_user_posts_unknown_user(client):
    assert client.get(f"{API}/posts/user/4242").status_code == 404

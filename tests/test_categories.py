"""
Category API tests
"""

from conftest import API, create_post, make_admin, register_user


def admin_user(client):
    admin = register_user(client, "admin@example.com", "Admin")
    make_admin(client, admin["user"]["id"])
    return admin


def test_list_seeded_categories(client, seller):
    create_post(client, seller["headers"])

    categories = client.get(f"{API}/categories").json()["data"]

    assert len(categories) == 14
    names = [category["name"] for category in categories]
    assert names == sorted(names)
    counts = {category["name"]: category["postCount"] for category in categories}
    assert counts["Electronics"] == 1
    assert counts["Pets"] == 0


def test_get_category(client):
    response = client.get(f"{API}/categories/1")

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Electronics"
    assert client.get(f"{API}/categories/999").status_code == 404


def test_create_category_requires_admin(client, seller):
    response = client.post(
        f"{API}/categories", json={"name": "Garden"}, headers=seller["headers"]
    )

    assert response.status_code == 403


def test_create_category(client):
    admin = admin_user(client)

    created = client.post(
        f"{API}/categories",
        json={"name": "Garden", "description": "Plants and tools"},
        headers=admin["headers"],
    )
    duplicate = client.post(
        f"{API}/categories", json={"name": "electronics"}, headers=admin["headers"]
    )

    assert created.status_code == 201
    assert created.json()["data"]["postCount"] == 0
    assert duplicate.status_code == 409


def test_update_category(client):
    admin = admin_user(client)

    response = client.put(
        f"{API}/categories/14",
        json={"description": "Anything else"},
        headers=admin["headers"],
    )

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Miscellaneous"
    assert response.json()["data"]["description"] == "Anything else"


def test_delete_category(client, seller):
    admin = admin_user(client)
    create_post(client, seller["headers"])
    created = client.post(
        f"{API}/categories", json={"name": "Garden"}, headers=admin["headers"]
    ).json()["data"]

    in_use = client.delete(f"{API}/categories/1", headers=admin["headers"])
    deleted = client.delete(f"{API}/categories/{created['id']}", headers=admin["headers"])

    assert in_use.status_code == 409
    assert deleted.status_code == 200
    assert client.get(f"{API}/categories/{created['id']}").status_code == 404

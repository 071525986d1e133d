"""
Payment API tests
"""

from datetime import datetime, timedelta

from conftest import API, create_post, make_admin, register_user


def pay(client, payer, post_id, tier_id=1, method="MobileMoney"):
    return client.post(
        f"{API}/payments",
        json={"postId": post_id, "pricingTierId": tier_id, "paymentMethod": method},
        headers=payer["headers"],
    )


def test_pricing_tiers(client):
    tiers = client.get(f"{API}/payments/pricing-tiers").json()["data"]

    assert [tier["name"] for tier in tiers] == ["Basic", "Standard", "Premium"]
    assert [tier["durationDays"] for tier in tiers] == [7, 30, 60]


def test_cannot_pay_for_own_post(client, seller):
    post = create_post(client, seller["headers"])

    response = pay(client, seller, post["id"])

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "You cannot make payment for your own post"


def test_create_payment_uses_tier_price(client, seller, buyer):
    post = create_post(client, seller["headers"])

    response = pay(client, buyer, post["id"], tier_id=2)

    assert response.status_code == 201
    payment = response.json()["data"]
    assert payment["amount"] == 15000
    assert payment["currency"] == "UGX"
    assert payment["paymentStatus"] == "Pending"
    assert payment["pricingTier"]["name"] == "Standard"
    detail = client.get(f"{API}/posts/{post['id']}").json()["data"]
    assert detail["status"] == "PendingPayment"


def test_create_payment_unknown_tier(client, seller, buyer):
    post = create_post(client, seller["headers"])

    assert pay(client, buyer, post["id"], tier_id=99).status_code == 404


def test_create_payment_invalid_method(client, seller, buyer):
    post = create_post(client, seller["headers"])

    assert pay(client, buyer, post["id"], method="Cash").status_code == 400


def test_confirm_payment_activates_post(client, seller, buyer):
    post = create_post(client, seller["headers"])
    payment = pay(client, buyer, post["id"], tier_id=1).json()["data"]

    response = client.post(
        f"{API}/payments/{payment['id']}/confirm",
        json={"transactionReference": "MP240101.1234.A56789"},
        headers=buyer["headers"],
    )

    assert response.status_code == 200
    confirmed = response.json()["data"]
    assert confirmed["paymentStatus"] == "Confirmed"
    assert confirmed["paymentDate"]

    detail = client.get(f"{API}/posts/{post['id']}").json()["data"]
    assert detail["status"] == "Active"
    assert detail["tierId"] == 1
    visible_for = datetime.fromisoformat(detail["expiresAt"]) - datetime.fromisoformat(
        detail["publishedAt"]
    )
    assert visible_for == timedelta(days=7)


def test_confirm_twice(client, seller, buyer):
    post = create_post(client, seller["headers"])
    payment = pay(client, buyer, post["id"]).json()["data"]
    url = f"{API}/payments/{payment['id']}/confirm"

    client.post(url, json={"transactionReference": "REF-1"}, headers=buyer["headers"])
    again = client.post(url, json={"transactionReference": "REF-2"}, headers=buyer["headers"])

    assert again.status_code == 400


def test_pay_for_active_post(client, seller, buyer):
    post = create_post(client, seller["headers"])
    payment = pay(client, buyer, post["id"]).json()["data"]
    client.post(
        f"{API}/payments/{payment['id']}/confirm",
        json={"transactionReference": "REF-1"},
        headers=buyer["headers"],
    )

    assert pay(client, buyer, post["id"]).status_code == 400


def test_cancel_payment(client, seller, buyer):
    post = create_post(client, seller["headers"])
    payment = pay(client, buyer, post["id"]).json()["data"]
    url = f"{API}/payments/{payment['id']}/cancel"

    not_owner = client.post(url, headers=seller["headers"])
    cancelled = client.post(url, headers=buyer["headers"])
    again = client.post(url, headers=buyer["headers"])
    confirm = client.post(
        f"{API}/payments/{payment['id']}/confirm",
        json={"transactionReference": "REF-1"},
        headers=buyer["headers"],
    )

    assert not_owner.status_code == 403
    assert cancelled.json()["data"]["paymentStatus"] == "Failed"
    assert again.status_code == 400
    assert confirm.status_code == 400


def test_cannot_cancel_confirmed(client, seller, buyer):
    post = create_post(client, seller["headers"])
    payment = pay(client, buyer, post["id"]).json()["data"]
    client.post(
        f"{API}/payments/{payment['id']}/confirm",
        json={"transactionReference": "REF-1"},
        headers=buyer["headers"],
    )

    response = client.post(f"{API}/payments/{payment['id']}/cancel", headers=buyer["headers"])

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Cannot cancel confirmed payment"


def test_payment_history(client, seller, buyer):
    first = create_post(client, seller["headers"])
    second = create_post(client, seller["headers"], title="Second listing")
    confirmed = pay(client, buyer, first["id"], tier_id=3).json()["data"]
    pay(client, buyer, second["id"], tier_id=1)
    client.post(
        f"{API}/payments/{confirmed['id']}/confirm",
        json={"transactionReference": "REF-1"},
        headers=buyer["headers"],
    )

    history = client.get(f"{API}/payments/user/history", headers=buyer["headers"]).json()["data"]

    assert history["totalPayments"] == 2
    assert history["totalSpent"] == 30000


def test_get_payment_access(client, seller, buyer):
    post = create_post(client, seller["headers"])
    payment = pay(client, buyer, post["id"]).json()["data"]
    admin = register_user(client, "admin@example.com", "Admin")
    make_admin(client, admin["user"]["id"])

    own = client.get(f"{API}/payments/{payment['id']}", headers=buyer["headers"])
    other = client.get(f"{API}/payments/{payment['id']}", headers=seller["headers"])
    as_admin = client.get(f"{API}/payments/{payment['id']}", headers=admin["headers"])

    assert own.status_code == 200
    assert other.status_code == 403
    assert as_admin.status_code == 200


def test_post_payments_owner_only(client, seller, buyer):
    post = create_post(client, seller["headers"])
    pay(client, buyer, post["id"])

    owner_view = client.get(f"{API}/payments/post/{post['id']}", headers=seller["headers"])
    buyer_view = client.get(f"{API}/payments/post/{post['id']}", headers=buyer["headers"])

    assert len(owner_view.json()["data"]) == 1
    assert buyer_view.status_code == 403


def test_cancel_returns_post_to_draft(client, seller, buyer):
    post = create_post(client, seller["headers"])
    payment = pay(client, buyer, post["id"]).json()["data"]

    client.post(f"{API}/payments/{payment['id']}/cancel", headers=buyer["headers"])

    detail = client.get(f"{API}/posts/{post['id']}").json()["data"]
    assert detail["status"] == "Draft"
    published = client.post(f"{API}/posts/{post['id']}/publish", headers=seller["headers"])
    assert published.status_code == 200
    assert published.json()["data"]["status"] == "Active"


def test_cancel_keeps_post_held_for_other_payment(client, seller, buyer):
    other = register_user(client, "other@example.com", "Other Buyer")
    post = create_post(client, seller["headers"])
    first = pay(client, buyer, post["id"]).json()["data"]
    pay(client, other, post["id"])

    client.post(f"{API}/payments/{first['id']}/cancel", headers=buyer["headers"])

    detail = client.get(f"{API}/posts/{post['id']}").json()["data"]
    assert detail["status"] == "PendingPayment"


def test_transaction_reference_reused(client, seller, buyer):
    first_post = create_post(client, seller["headers"])
    second_post = create_post(client, seller["headers"], title="Second listing")
    first = pay(client, buyer, first_post["id"]).json()["data"]
    second = pay(client, buyer, second_post["id"]).json()["data"]
    body = {"transactionReference": "MP240101.1234.A56789"}

    client.post(f"{API}/payments/{first['id']}/confirm", json=body, headers=buyer["headers"])
    reused = client.post(
        f"{API}/payments/{second['id']}/confirm", json=body, headers=buyer["headers"]
    )

    assert reused.status_code == 409
    assert reused.json()["error"]["code"] == "CONFLICT"
    detail = client.get(f"{API}/posts/{second_post['id']}").json()["data"]
    assert detail["status"] == "PendingPayment"

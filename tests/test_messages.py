"""
Messaging API tests
"""

from datetime import timedelta

from sqlalchemy import update

from src.models import Message, utcnow

from conftest import API, create_post, register_user, run_db


def send(client, sender, recipient, content="Is this still available?", **extra):
    body = {"recipientId": recipient["user"]["id"], "messageContent": content, **extra}
    return client.post(f"{API}/messages", json=body, headers=sender["headers"])


def test_send_message(client, seller, buyer):
    post = create_post(client, seller["headers"])

    response = send(client, buyer, seller, postId=post["id"])

    assert response.status_code == 201
    message = response.json()["data"]
    assert message["senderId"] == buyer["user"]["id"]
    assert message["recipientId"] == seller["user"]["id"]
    assert message["postId"] == post["id"]
    assert message["isReadByRecipient"] is False
    assert message["isReadBySender"] is True


def test_cannot_message_yourself(client, seller):
    response = send(client, seller, seller)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Cannot send message to yourself"


def test_message_unknown_recipient(client, seller):
    response = client.post(
        f"{API}/messages",
        json={"recipientId": 999, "messageContent": "Hello?"},
        headers=seller["headers"],
    )

    assert response.status_code == 404


def test_message_unknown_post(client, seller, buyer):
    assert send(client, buyer, seller, postId=999).status_code == 404


def test_reply_requires_participation(client, seller, buyer):
    outsider = register_user(client, "outsider@example.com", "Outsider")
    original = send(client, buyer, seller).json()["data"]

    reply = send(client, seller, buyer, "Yes it is", parentMessageId=original["id"])
    intruder = send(client, outsider, seller, "Me too", parentMessageId=original["id"])

    assert reply.status_code == 201
    assert reply.json()["data"]["parentMessageId"] == original["id"]
    assert intruder.status_code == 403


def test_conversations_and_unread_count(client, seller, buyer):
    post = create_post(client, seller["headers"])
    send(client, buyer, seller, "First question", postId=post["id"])
    send(client, buyer, seller, "Second question", postId=post["id"])

    conversations = client.get(
        f"{API}/messages/conversations", headers=seller["headers"]
    ).json()["data"]
    unread = client.get(f"{API}/messages/unread-count", headers=seller["headers"]).json()["data"]

    assert len(conversations) == 1
    conversation = conversations[0]
    assert conversation["otherUser"]["id"] == buyer["user"]["id"]
    assert conversation["lastMessage"] == "Second question"
    assert conversation["unreadCount"] == 2
    assert conversation["postTitle"] == post["title"]
    assert unread == {"count": 2}


def test_get_messages_oldest_first(client, seller, buyer):
    send(client, buyer, seller, "One")
    send(client, seller, buyer, "Two")
    send(client, buyer, seller, "Three")

    messages = client.get(
        f"{API}/messages/user/{buyer['user']['id']}", headers=seller["headers"]
    ).json()["data"]

    assert [m["messageContent"] for m in messages] == ["One", "Two", "Three"]


def test_mark_as_read_by_recipient(client, seller, buyer):
    message = send(client, buyer, seller).json()["data"]

    response = client.put(f"{API}/messages/{message['id']}/read", headers=seller["headers"])

    assert response.status_code == 200
    assert response.json()["data"]["isReadByRecipient"] is True
    assert response.json()["data"]["recipientReadAt"]
    unread = client.get(f"{API}/messages/unread-count", headers=seller["headers"]).json()["data"]
    assert unread == {"count": 0}


def test_mark_as_read_by_outsider(client, seller, buyer):
    outsider = register_user(client, "outsider@example.com", "Outsider")
    message = send(client, buyer, seller).json()["data"]

    response = client.put(f"{API}/messages/{message['id']}/read", headers=outsider["headers"])

    assert response.status_code == 403


def test_mark_conversation_as_read(client, seller, buyer):
    send(client, buyer, seller, "One")
    send(client, buyer, seller, "Two")
    send(client, seller, buyer, "Reply")

    response = client.put(
        f"{API}/messages/conversations/{buyer['user']['id']}/read", headers=seller["headers"]
    )

    # the seller's own reply is already read on the sender side
    assert response.json()["data"] == {"recipientCount": 2, "senderCount": 0, "count": 2}


def test_edit_message(client, seller, buyer):
    message = send(client, buyer, seller).json()["data"]

    other = client.put(
        f"{API}/messages/{message['id']}",
        json={"messageContent": "Hijacked"},
        headers=seller["headers"],
    )
    edited = client.put(
        f"{API}/messages/{message['id']}",
        json={"messageContent": "Is the price negotiable?"},
        headers=buyer["headers"],
    )

    assert other.status_code == 403
    assert edited.status_code == 200
    assert edited.json()["data"]["isEdited"] is True
    assert edited.json()["data"]["messageContent"] == "Is the price negotiable?"


def test_edit_window_expired(client, seller, buyer):
    message = send(client, buyer, seller).json()["data"]
    run_db(
        client,
        update(Message)
        .where(Message.id == message["id"])
        .values(created_at=utcnow() - timedelta(minutes=16)),
    )

    response = client.put(
        f"{API}/messages/{message['id']}",
        json={"messageContent": "Too late"},
        headers=buyer["headers"],
    )

    assert response.status_code == 400


def test_delete_message(client, seller, buyer):
    message = send(client, buyer, seller).json()["data"]

    first = client.delete(f"{API}/messages/{message['id']}", headers=seller["headers"])
    second = client.delete(f"{API}/messages/{message['id']}", headers=seller["headers"])
    edit = client.put(
        f"{API}/messages/{message['id']}",
        json={"messageContent": "Edit after delete"},
        headers=buyer["headers"],
    )

    assert first.status_code == 200
    assert second.status_code == 400
    assert edit.status_code == 400
    messages = client.get(
        f"{API}/messages/user/{buyer['user']['id']}", headers=seller["headers"]
    ).json()["data"]
    assert messages == []

from helpdesk.notifications import Notifier, notifier, CHAT_MESSAGE


def test_chat_flow(client, joao_headers, admin_headers):
    resp = client.post("/chat/messages", json={"text": "Meu PC não liga"}, headers=joao_headers)
    assert resp.status_code == 200
    assert resp.json()["sender_id"] == "u2"
    assert resp.json()["read"] is True

    assert client.get("/chat/unread", headers=joao_headers).json() == {"unread": 0}
    assert client.get("/chat/unread", headers=admin_headers).json() == {"unread": 1}

    msgs = client.get("/chat/messages", headers=admin_headers).json()
    assert [m["text"] for m in msgs] == ["Meu PC não liga"]
    assert msgs[0]["read"] is False

    assert client.post("/chat/read", headers=admin_headers).json() == {"unread": 0}
    assert client.get("/chat/unread", headers=admin_headers).json() == {"unread": 0}


def test_chat_rejects_blank(client, joao_headers):
    assert client.post("/chat/messages", json={"text": ""}, headers=joao_headers).status_code == 422
    assert client.post("/chat/messages", json={"text": "   "}, headers=joao_headers).status_code == 400


def test_chat_message_notifies(client, joao_headers):
    events = []
    listener = lambda event, payload: events.append((event, payload["text"]))
    notifier.subscribe(listener)
    try:
        client.post("/chat/messages", json={"text": "oi"}, headers=joao_headers)
    finally:
        notifier.unsubscribe(listener)
    assert events == [(CHAT_MESSAGE, "oi")]


def test_notification_delay_by_role():
    n = Notifier(delay_ms=500)
    assert n.delay_for("ADMIN") == 0.0
    assert n.delay_for("USER") == 0.5


def test_failing_listener_does_not_block_others():
    n = Notifier(delay_ms=0)
    seen = []

    def broken(event, payload):
        raise RuntimeError("boom")

    n.subscribe(broken)
    n.subscribe(lambda event, payload: seen.append(event))
    n.emit_later("x", {}, 0)
    assert seen == ["x"]

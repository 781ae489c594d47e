"""Per-document chat history."""

import pytest

from conftest import auth_headers
from errors import CompletionRateLimitError

pytestmark = pytest.mark.asyncio


async def _ask(client, headers, doc_id, message):
    return await client.post(f"/api/chat/{doc_id}", headers=headers, json={"message": message})


async def test_empty_history_before_first_message(client, headers, document):
    res = await client.get(f"/api/chat/{document['id']}", headers=headers)
    assert res.status_code == 200
    assert res.json() == {"chat": {"messages": []}}


async def test_message_appends_user_and_assistant_turns(client, headers, document, fake_gateway):
    fake_gateway.queue("Light becomes sugar.")
    res = await _ask(client, headers, document["id"], "What is photosynthesis?")
    assert res.status_code == 200
    body = res.json()
    assert body["reply"] == "Light becomes sugar."
    messages = body["chat"]["messages"]
    assert [(m["role"], m["content"]) for m in messages] == [
        ("user", "What is photosynthesis?"),
        ("assistant", "Light becomes sugar."),
    ]
    assert all(m["timestamp"] for m in messages)

    prompt = fake_gateway.prompts[0]
    assert "Photosynthesis converts light" in prompt
    assert "What is photosynthesis?" in prompt


async def test_history_keeps_order_across_messages(client, headers, document, fake_gateway):
    fake_gateway.queue("first answer", "second answer")
    await _ask(client, headers, document["id"], "first?")
    await _ask(client, headers, document["id"], "second?")

    res = await client.get(f"/api/chat/{document['id']}", headers=headers)
    contents = [m["content"] for m in res.json()["chat"]["messages"]]
    assert contents == ["first?", "first answer", "second?", "second answer"]


async def test_failed_completion_persists_nothing(client, headers, document, fake_gateway):
    fake_gateway.error = CompletionRateLimitError()
    res = await _ask(client, headers, document["id"], "Hello?")
    assert res.status_code == 429
    assert res.json()["code"] == "UPSTREAM_RATE_LIMIT"

    res = await client.get(f"/api/chat/{document['id']}", headers=headers)
    assert res.json()["chat"]["messages"] == []


async def test_blank_message_rejected(client, headers, document, fake_gateway):
    res = await _ask(client, headers, document["id"], "   ")
    assert res.status_code == 400
    assert fake_gateway.prompts == []


async def test_clear_then_recreate(client, headers, document, fake_gateway):
    fake_gateway.queue("one", "two")
    await _ask(client, headers, document["id"], "q1")

    res = await client.delete(f"/api/chat/{document['id']}", headers=headers)
    assert res.status_code == 200
    res = await client.get(f"/api/chat/{document['id']}", headers=headers)
    assert res.json()["chat"]["messages"] == []

    res = await _ask(client, headers, document["id"], "q2")
    assert [m["content"] for m in res.json()["chat"]["messages"]] == ["q2", "two"]


async def test_chats_are_per_user(client, headers, document, fake_gateway):
    fake_gateway.queue("answer")
    await _ask(client, headers, document["id"], "mine")

    other = await auth_headers(client, email="other@example.com", username="other")
    res = await client.get(f"/api/chat/{document['id']}", headers=other)
    assert res.json()["chat"]["messages"] == []

    res = await _ask(client, other, document["id"], "not yours")
    assert res.status_code == 404

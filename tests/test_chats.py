"""Chat sessions: history recording and curation."""

from __future__ import annotations

import pytest

from castor import Client
from castor.errors import ServerError
from castor.types import Content, GenerateContentConfig
from tests.helpers import RecordingTransport, sse_body

pytestmark = pytest.mark.unit


def _reply(*texts: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": t} for t in texts]}}]}


@pytest.mark.asyncio
async def test_send_message_records_both_turns(
    gemini_client: Client, transport: RecordingTransport
) -> None:
    transport.add_json(_reply("Hi!", ""))
    transport.add_json(_reply("Fine."))
    chat = gemini_client.chats.create(
        model="m", config=GenerateContentConfig(temperature=0.0)
    )

    first = await chat.send_message("Hello")
    await chat.send_message("How are you?")

    assert first.text == "Hi!"
    history = chat.get_history()
    assert [(c.role, [p.text for p in c.parts]) for c in history] == [
        ("user", ["Hello"]),
        ("model", ["Hi!"]),
        ("user", ["How are you?"]),
        ("model", ["Fine."]),
    ]
    # The second request carries the first exchange.
    sent = transport.last_json()
    assert [c["role"] for c in sent["contents"]] == ["user", "model", "user"]
    assert sent["generationConfig"] == {"temperature": 0.0}


@pytest.mark.asyncio
async def test_model_turn_keeps_only_parts_with_a_payload(
    gemini_client: Client, transport: RecordingTransport
) -> None:
    parts = [{}, {"text": ""}, {"functionCall": {"name": "lookup", "args": {}}}, {"thought": True}]
    transport.add_json({"candidates": [{"content": {"role": "model", "parts": parts}}]})
    chat = gemini_client.chats.create(model="m")

    await chat.send_message("Find it")

    model_turn = chat.get_history()[-1]
    assert len(model_turn.parts) == 1
    assert model_turn.parts[0].function_call.name == "lookup"
    assert model_turn.parts[0].function_call.args == {}


@pytest.mark.asyncio
async def test_failed_send_records_nothing(gemini_client: Client, transport: RecordingTransport) -> None:
    transport.add_json({"error": {"code": 500, "message": "boom"}}, 500)
    chat = gemini_client.chats.create(model="m")

    with pytest.raises(ServerError):
        await chat.send_message("Hello")
    assert chat.get_history() == []


@pytest.mark.asyncio
async def test_initial_history_is_sent(gemini_client: Client, transport: RecordingTransport) -> None:
    transport.add_json(_reply("ok"))
    history = [Content.from_text("earlier"), Content.from_text("noted", role="model")]
    chat = gemini_client.chats.create(model="m", history=history)

    await chat.send_message("now")

    assert [c["parts"][0]["text"] for c in transport.last_json()["contents"]] == [
        "earlier",
        "noted",
        "now",
    ]


@pytest.mark.asyncio
async def test_curated_history_drops_empty_exchanges(
    gemini_client: Client, transport: RecordingTransport
) -> None:
    transport.add_json({"candidates": []})
    transport.add_json(_reply("answer"))
    chat = gemini_client.chats.create(model="m")

    await chat.send_message("blocked?")
    await chat.send_message("again")

    assert len(chat.get_history()) == 4
    curated = chat.get_history(curated=True)
    assert [c.parts[0].text for c in curated] == ["again", "answer"]
    # The empty exchange is not replayed to the model.
    assert [c["parts"][0]["text"] for c in transport.last_json()["contents"]] == ["again"]


@pytest.mark.asyncio
async def test_stream_records_after_completion(
    gemini_client: Client, transport: RecordingTransport
) -> None:
    transport.add_stream([sse_body(_reply("Hel")), sse_body(_reply("lo"))])
    chat = gemini_client.chats.create(model="m")

    chunks = []
    async for chunk in chat.send_message_stream("Hi"):
        chunks.append(chunk.text)
        assert chat.get_history() == []

    assert chunks == ["Hel", "lo"]
    model_turn = chat.get_history()[-1]
    assert model_turn.role == "model"
    assert [p.text for p in model_turn.parts] == ["Hel", "lo"]

from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from conftest import sse, status_error
from controllers.chat_controller import send_session_message
from services.chat.session_store import ChatSessionStore
from utils.settings import Settings


def make_request(fake_openai, store):
    state = SimpleNamespace(openai_client=fake_openai, chat_store=store, settings=Settings(gateway_api_key="k"))
    return SimpleNamespace(app=SimpleNamespace(state=state))


async def read_body(response) -> bytes:
    return b"".join([chunk async for chunk in response.body_iterator])


async def test_second_message_rejected_before_first_delta(fake_openai):
    fake_openai.completions.stream_chunks = [sse("Use neem oil")]
    store = ChatSessionStore()
    session = store.create()
    request = make_request(fake_openai, store)

    first = await send_session_message(request, session.session_id, "Aphids on okra?")
    with pytest.raises(HTTPException) as excinfo:
        await send_session_message(request, session.session_id, "Hello?")

    assert excinfo.value.status_code == 409
    assert len(fake_openai.completions.stream_calls) == 1
    assert store.transcript(session.session_id)["awaiting_reply"] is True

    await read_body(first)

    assert [m["role"] for m in session.history()] == ["user", "assistant"]
    assert session.history()[1]["content"] == "Use neem oil"
    assert not session.reply_in_flight

    await read_body(await send_session_message(request, session.session_id, "And whiteflies?"))
    assert [m["role"] for m in session.history()] == ["user", "assistant", "user", "assistant"]


async def test_gateway_failure_rolls_back_the_user_turn(fake_openai):
    fake_openai.completions.stream_error = status_error(429)
    store = ChatSessionStore()
    session = store.create()
    request = make_request(fake_openai, store)

    with pytest.raises(HTTPException) as excinfo:
        await send_session_message(request, session.session_id, "Aphids?")

    assert excinfo.value.status_code == 429
    assert session.history() == []
    assert not session.reply_in_flight

    fake_openai.completions.stream_error = None
    fake_openai.completions.stream_chunks = [sse("Spray soap water")]
    await read_body(await send_session_message(request, session.session_id, "Aphids?"))

    assert session.history() == [
        {"role": "user", "content": "Aphids?"},
        {"role": "assistant", "content": "Spray soap water"},
    ]

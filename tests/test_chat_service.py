import pytest

from conftest import sse, status_error
from services.chat.chat_service import CropChatService, normalize_messages
from services.gateway_errors import CREDITS_MESSAGE, RATE_LIMIT_MESSAGE, GatewayError


async def test_relay_yields_raw_bytes_and_assembles_text(fake_openai):
    body = sse("Apply ", "copper ", "fungicide")
    fake_openai.completions.stream_chunks = [body[:10], body[10:41], body[41:]]
    service = CropChatService(fake_openai, model="test-chat")
    updates, finished = [], []

    stream = await service.open_stream([{"role": "user", "content": "Spots on leaves?"}], language="hi")
    relayed = b"".join([chunk async for chunk in stream.relay(on_update=updates.append, on_finish=finished.append)])

    assert relayed == body
    assert updates == ["Apply ", "Apply copper ", "Apply copper fungicide"]
    assert finished == ["Apply copper fungicide"]
    assert fake_openai.completions.closed_streams == 1

    call = fake_openai.completions.stream_calls[0]
    assert call["model"] == "test-chat"
    assert call["stream"] is True
    assert call["messages"][0]["role"] == "system"
    assert "HINDI" in call["messages"][0]["content"]
    assert call["messages"][1:] == [{"role": "user", "content": "Spots on leaves?"}]


async def test_context_is_added_to_system_prompt(fake_openai):
    fake_openai.completions.stream_chunks = [sse("ok")]
    service = CropChatService(fake_openai)

    stream = await service.open_stream([], language="English", context="Crop: Tomato\nDiagnosis: Early Blight")
    assert await stream.collect() == "ok"

    system = fake_openai.completions.stream_calls[0]["messages"][0]["content"]
    assert "CROP ANALYSIS CONTEXT:\nCrop: Tomato" in system


async def test_broken_stream_still_finalizes_partial_text(fake_openai):
    fake_openai.completions.stream_chunks = [sse("Remove ", done=False), sse("leaves", done=False), sse("never")]
    fake_openai.completions.fail_after = 2
    finished = []

    stream = await CropChatService(fake_openai).open_stream([{"role": "user", "content": "hi"}])
    chunks = [chunk async for chunk in stream.relay(on_finish=finished.append)]

    assert len(chunks) == 2
    assert finished == ["Remove leaves"]
    assert fake_openai.completions.closed_streams == 1


@pytest.mark.parametrize(
    "status, body, message",
    [
        (429, None, RATE_LIMIT_MESSAGE),
        (402, None, CREDITS_MESSAGE),
        (500, {"error": {"message": "upstream exploded"}}, "upstream exploded"),
        (503, None, "AI Gateway error: 503"),
    ],
)
async def test_gateway_status_errors_surface_before_streaming(fake_openai, status, body, message):
    fake_openai.completions.stream_error = status_error(status, body)

    with pytest.raises(GatewayError) as excinfo:
        await CropChatService(fake_openai).open_stream([{"role": "user", "content": "hi"}])

    assert excinfo.value.status_code == status
    assert excinfo.value.message == message


@pytest.mark.parametrize(
    "messages",
    [None, "hello", [{"role": "system", "content": "x"}], [{"role": "user", "content": 3}], ["hi"]],
)
def test_malformed_messages_rejected(messages):
    with pytest.raises(ValueError):
        normalize_messages(messages)

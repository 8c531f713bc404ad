import asyncio
import json

import httpx
import pytest

from story_reader.adapters.tts.http_synth import HttpSynthesizer
from story_reader.adapters.vision.http_extract import HttpExtractor
from story_reader.orchestrator import errors
from story_reader.orchestrator.contracts import EncodedImage
from story_reader.orchestrator.errors import ExtractionFailed, SynthesisFailed

IMAGE = EncodedImage(data=b"\xff\xd8\xff\xe0fake", width=4, height=3)


def transport(status_code=200, **kw):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(status_code, **kw)
    t = httpx.MockTransport(handler)
    t.seen = seen
    return t


def offline():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)
    return httpx.MockTransport(handler)


def extract(status, t):
    return asyncio.run(HttpExtractor(status, "http://relay/", transport=t).extract(IMAGE))


def synthesize(status, t, text="Hello"):
    return asyncio.run(HttpSynthesizer(status, "http://relay", transport=t).synthesize(text))


def test_extract_posts_bare_base64(status):
    t = transport(json={"text": "Once upon a time"})
    assert extract(status, t) == "Once upon a time"

    request = t.seen[0]
    assert request.url == "http://relay/api/extract-text"
    body = json.loads(request.content)
    assert body == {"image": IMAGE.b64()}
    assert not body["image"].startswith("data:")


def test_extract_error_status(status):
    with pytest.raises(ExtractionFailed) as exc:
        extract(status, transport(500, json={"error": "Failed to extract text from image"}))
    assert exc.value.status == 500
    assert exc.value.code == errors.ERR_EXTRACTION


@pytest.mark.parametrize("body", [{"text": ""}, {"text": "   "}, {}, {"text": None}])
def test_extract_without_text(status, body):
    with pytest.raises(ExtractionFailed) as exc:
        extract(status, transport(json=body))
    assert exc.value.code == errors.ERR_NO_TEXT


def test_extract_invalid_json(status):
    with pytest.raises(ExtractionFailed):
        extract(status, transport(content=b"<html>oops</html>"))


def test_extract_network_error(status):
    with pytest.raises(ExtractionFailed) as exc:
        extract(status, offline())
    assert exc.value.status is None
    assert "ConnectError" in str(exc.value)


def test_synthesize_returns_audio_resource(status):
    t = transport(content=b"ID3audio", headers={"content-type": "audio/mpeg"})
    audio = synthesize(status, t, "The end.")
    assert audio.data == b"ID3audio" and audio.mime_type == "audio/mpeg"
    assert not audio.released

    request = t.seen[0]
    assert json.loads(request.content) == {"text": "The end."}
    assert request.headers["accept"] == "audio/mpeg"


def test_synthesize_error_status(status):
    with pytest.raises(SynthesisFailed) as exc:
        synthesize(status, transport(500, json={"error": "ElevenLabs API failed"}))
    assert exc.value.status == 500


def test_synthesize_empty_body(status):
    with pytest.raises(SynthesisFailed):
        synthesize(status, transport(content=b"", headers={"content-type": "audio/mpeg"}))


def test_synthesize_network_error(status):
    with pytest.raises(SynthesisFailed):
        synthesize(status, offline())


def test_malformed_base_url_is_an_extraction_failure(status):
    client = HttpExtractor(status, "http://relay\x00bad", transport=transport(json={"text": "x"}))
    with pytest.raises(ExtractionFailed) as exc:
        asyncio.run(client.extract(IMAGE))
    assert exc.value.code == errors.ERR_EXTRACTION


def test_malformed_base_url_is_a_synthesis_failure(status):
    client = HttpSynthesizer(status, "http://relay\x00bad", transport=transport(content=b"ID3"))
    with pytest.raises(SynthesisFailed):
        asyncio.run(client.synthesize("Hello"))

"""
Client for the relay's speech-synthesis endpoint.

  Request:  POST /api/generate-audio  {"text": "..."}
  Response: 200 audio bytes (audio/mpeg)  (or error status with {"error": ...})
"""
import time

import httpx

from story_reader.orchestrator.contracts import AudioResource
from story_reader.orchestrator.errors import SynthesisFailed

SYNTH_PATH = "/api/generate-audio"


class HttpSynthesizer:
    def __init__(self, status_store, base_url: str = "http://127.0.0.1:3000", timeout: float = 60.0,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.status = status_store
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def synthesize(self, text: str) -> AudioResource:
        url = f"{self.base_url}{SYNTH_PATH}"
        self.status.log(f"http_synth: POST {SYNTH_PATH} ({len(text)} chars)")
        t0 = time.time()
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                resp = await client.post(url, json={"text": text}, headers={"Accept": "audio/mpeg"})
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise SynthesisFailed(f"generate-audio request failed: {type(e).__name__}: {e}") from e

        dt = int((time.time() - t0) * 1000)
        self.status.log(f"http_synth: status={resp.status_code} dt={dt}ms")
        if not resp.is_success:
            raise SynthesisFailed(f"generate-audio returned {resp.status_code}: {resp.text[:200]}",
                                  status=resp.status_code)
        if not resp.content:
            raise SynthesisFailed("generate-audio returned an empty body", status=resp.status_code)

        mime = resp.headers.get("content-type", "audio/mpeg").split(";")[0].strip() or "audio/mpeg"
        return AudioResource(resp.content, mime_type=mime)

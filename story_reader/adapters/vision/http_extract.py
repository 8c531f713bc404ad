"""
Client for the relay's text-extraction endpoint.

  Request:  POST /api/extract-text  {"image": "<base64, no data-URL prefix>"}
  Response: 200 {"text": "..."}     (or error status with {"error": ...})
"""
import time

import httpx

from story_reader.orchestrator.contracts import EncodedImage
from story_reader.orchestrator.errors import ExtractionFailed, ERR_NO_TEXT

EXTRACT_PATH = "/api/extract-text"


class HttpExtractor:
    def __init__(self, status_store, base_url: str = "http://127.0.0.1:3000", timeout: float = 60.0,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.status = status_store
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def extract(self, img: EncodedImage) -> str:
        url = f"{self.base_url}{EXTRACT_PATH}"
        payload = {"image": img.b64()}
        self.status.log(f"http_extract: POST {EXTRACT_PATH} ({len(payload['image']) / 1024 / 1024:.2f}MB base64)")
        t0 = time.time()
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                resp = await client.post(url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ExtractionFailed(f"extract-text request failed: {type(e).__name__}: {e}") from e

        dt = int((time.time() - t0) * 1000)
        self.status.log(f"http_extract: status={resp.status_code} dt={dt}ms")
        if not resp.is_success:
            raise ExtractionFailed(f"extract-text returned {resp.status_code}: {resp.text[:200]}",
                                   status=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise ExtractionFailed("extract-text returned invalid JSON", status=resp.status_code) from e

        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise ExtractionFailed("no text found in image", status=resp.status_code, code=ERR_NO_TEXT)
        return text

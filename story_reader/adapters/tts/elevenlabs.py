"""
ElevenLabs speech synthesis (relay upstream for /api/generate-audio).

Requires ELEVENLABS_API_KEY. ELEVENLABS_VOICE_ID picks the voice
(default: Adam).
"""
import os

import httpx

from story_reader.adapters.tts.base import VoiceAdapter
from story_reader.orchestrator.errors import SynthesisFailed

ELEVENLABS_API_URL = "https://api.elevenlabs.io/v1/text-to-speech"
DEFAULT_VOICE_ID = "pNInz6obpgDQGcFmaJgB"
MODEL_ID = "eleven_monolingual_v1"
VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0.1,
    "use_speaker_boost": True,
}


class ElevenLabsVoice(VoiceAdapter):
    name = "elevenlabs"
    label = "ElevenLabs"

    def __init__(self, status_store, api_key: str | None = None, voice_id: str | None = None,
                 timeout: float = 60.0, transport: httpx.AsyncBaseTransport | None = None):
        self.status = status_store
        self._api_key = api_key or os.getenv("ELEVENLABS_API_KEY")
        self.voice_id = voice_id or os.getenv("ELEVENLABS_VOICE_ID", DEFAULT_VOICE_ID)
        self.timeout = timeout
        self._transport = transport
        if self._api_key:
            self.status.log(f"elevenlabs: ready (voice={self.voice_id})")
        else:
            self.status.log("elevenlabs: ELEVENLABS_API_KEY not set", level="WARN")

    @property
    def ready(self) -> bool:
        return bool(self._api_key)

    async def synthesize(self, text: str) -> bytes:
        if not self._api_key:
            raise SynthesisFailed("ElevenLabs API key not configured")

        url = f"{ELEVENLABS_API_URL}/{self.voice_id}"
        self.status.log(f"elevenlabs: request voice={self.voice_id} chars={len(text)} preview={text[:100]!r}")
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                resp = await client.post(
                    url,
                    headers={"Accept": "audio/mpeg", "xi-api-key": self._api_key},
                    json={"text": text, "model_id": MODEL_ID, "voice_settings": VOICE_SETTINGS},
                )
        except httpx.HTTPError as e:
            self.status.log(f"elevenlabs: request failed: {e}", level="ERROR")
            raise SynthesisFailed(f"ElevenLabs request failed: {e}",
                                  details={"message": str(e), "type": type(e).__name__}) from e

        if not resp.is_success:
            self.status.log(f"elevenlabs: API error {resp.status_code}: {resp.text[:300]}", level="ERROR")
            raise SynthesisFailed(
                "ElevenLabs API failed",
                status=resp.status_code,
                details={
                    "status": resp.status_code,
                    "statusText": resp.reason_phrase,
                    "elevenLabsError": resp.text,
                },
            )

        self.status.log(f"elevenlabs: {len(resp.content)} bytes audio")
        return resp.content

"""
Microsoft Edge neural voices via edge-tts (no API key needed).

Selected with TTS_PROVIDER=edge; EDGE_TTS_VOICE picks the voice.
Alternative: en-US-GuyNeural (male)
"""
import os

import edge_tts

from story_reader.adapters.tts.base import VoiceAdapter
from story_reader.orchestrator.errors import SynthesisFailed

DEFAULT_EDGE_VOICE = "en-US-AnaNeural"   # child voice


class EdgeVoice(VoiceAdapter):
    name = "edge"
    label = "Edge TTS"

    def __init__(self, status_store, voice: str | None = None):
        self.status = status_store
        self.voice = voice or os.getenv("EDGE_TTS_VOICE", DEFAULT_EDGE_VOICE)
        self.status.log(f"edge_voice: ready (voice={self.voice})")

    async def synthesize(self, text: str) -> bytes:
        communicate = edge_tts.Communicate(text, self.voice)
        chunks = []
        try:
            async for chunk in communicate.stream():
                if chunk["type"] == "audio":
                    chunks.append(chunk["data"])
        except Exception as e:
            self.status.log(f"edge_voice: {type(e).__name__}: {e}", level="ERROR")
            raise SynthesisFailed(f"edge-tts failed: {e}", details={"message": str(e), "type": type(e).__name__}) from e

        if not chunks:
            raise SynthesisFailed("edge-tts returned no audio")
        audio = b"".join(chunks)
        self.status.log(f"edge_voice: {len(audio)} bytes audio")
        return audio

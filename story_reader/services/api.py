"""
Relay service: forwards page images to the vision model and page text to the
speech provider. Provider secrets stay here; the capture pipeline never sees them.

Usage:
    python -m story_reader.services.api          # PORT env var, default 3000
"""
import os
from datetime import datetime, timezone

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response

from story_reader.adapters.tts.edge_voice import EdgeVoice
from story_reader.adapters.tts.elevenlabs import ElevenLabsVoice
from story_reader.adapters.vision.claude_vision import ClaudeVision
from story_reader.orchestrator.errors import ExtractionFailed, SynthesisFailed
from story_reader.services.models import (
    ExtractTextRequest, ExtractTextResponse, GenerateAudioRequest, ErrorResponse,
    HealthResponse, StatusResponse,
)
from story_reader.services.status_store import StatusStore

load_dotenv(dotenv_path=".env", override=False)

app = FastAPI(title="story-reader relay")

status = StatusStore()

vision = ClaudeVision(status)

# Speech provider: TTS_PROVIDER env var, elevenlabs | edge (default: elevenlabs)
_tts_provider = os.getenv("TTS_PROVIDER", "elevenlabs").lower()
if _tts_provider == "edge":
    voice = EdgeVoice(status)
else:
    voice = ElevenLabsVoice(status)
status.log(f"tts provider: {voice.name}")

_ERRORS = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def _error(status_code: int, error: str, details: dict | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


@app.post("/api/extract-text", response_model=ExtractTextResponse, responses=_ERRORS)
async def extract_text(req: ExtractTextRequest):
    if not req.image:
        return _error(400, "No image provided")
    if not vision.ready:
        return _error(500, "Claude API key not configured")

    status.log(f"EXTRACT_TEXT received ({len(req.image) / 1024 / 1024:.2f}MB base64)")
    try:
        text = await vision.extract_text(req.image)
    except ExtractionFailed as e:
        status.log(f"EXTRACT_TEXT error: {e}", level="ERROR")
        return _error(500, "Failed to extract text from image")
    status.log(f"EXTRACT_TEXT ok chars={len(text)}")
    return ExtractTextResponse(text=text)


@app.post("/api/generate-audio", responses={200: {"content": {"audio/mpeg": {}}}, **_ERRORS})
async def generate_audio(req: GenerateAudioRequest):
    if not req.text:
        return _error(400, "No text provided")
    if not voice.ready:
        return _error(500, f"{voice.label} API key not configured")

    status.log(f"GENERATE_AUDIO received chars={len(req.text)}")
    try:
        audio = await voice.synthesize(req.text)
    except SynthesisFailed as e:
        status.log(f"GENERATE_AUDIO error: {e}", level="ERROR")
        if e.status is not None:
            # upstream answered with an error status
            return _error(500, f"{voice.label} API failed", e.details)
        return _error(500, "Failed to generate audio", e.details or {"message": str(e)})
    status.log(f"GENERATE_AUDIO ok bytes={len(audio)}")
    return Response(content=audio, media_type=voice.media_type)


@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc).isoformat(),
        vision_ready=vision.ready,
        tts_provider=voice.name,
        tts_ready=voice.ready,
    )


@app.get("/status", response_model=StatusResponse)
def get_status():
    return StatusResponse(last_error=status.last_error, logs=status.logs)


def main():
    port = int(os.getenv("PORT", "3000"))
    print(f"Story Reader relay listening on http://localhost:{port}")
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()

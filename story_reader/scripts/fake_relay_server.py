"""
Fake relay for running the reader without provider keys.

Serves the same two endpoints as the real relay on port 3000:
  /api/extract-text   -> canned page text
  /api/generate-audio -> a short generated tone (WAV)

Usage:
    python -m story_reader.scripts.fake_relay_server
    FAKE_FAIL=extract python -m story_reader.scripts.fake_relay_server   # 500 on extract
    FAKE_FAIL=audio   python -m story_reader.scripts.fake_relay_server   # 500 on audio
"""

import asyncio
import io
import os
import wave

import numpy as np
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

app = FastAPI(title="fake-relay-server")

PAGE_TEXT = os.getenv("FAKE_TEXT", "The cat sat on the mat.")
_FAIL = os.getenv("FAKE_FAIL", "")


def _tone(seconds: float = 1.0, freq: float = 440.0, rate: int = 22050) -> bytes:
    t = np.arange(int(seconds * rate)) / rate
    samples = (0.3 * np.sin(2 * np.pi * freq * t) * 32767).astype(np.int16)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(samples.tobytes())
    return buf.getvalue()


@app.post("/api/extract-text")
async def extract_text(request: Request):
    body = await request.json()
    image = body.get("image") or ""
    print(f"[relay] extract-text ({len(image)} base64 chars)")
    if not image:
        return JSONResponse(status_code=400, content={"error": "No image provided"})
    if _FAIL == "extract":
        return JSONResponse(status_code=500, content={"error": "Failed to extract text from image"})
    await asyncio.sleep(0.5)
    return {"text": PAGE_TEXT}


@app.post("/api/generate-audio")
async def generate_audio(request: Request):
    body = await request.json()
    text = body.get("text") or ""
    print(f"[relay] generate-audio ({len(text)} chars)")
    if not text:
        return JSONResponse(status_code=400, content={"error": "No text provided"})
    if _FAIL == "audio":
        return JSONResponse(status_code=500, content={"error": "Failed to generate audio"})
    return Response(content=_tone(), media_type="audio/wav")


@app.get("/health")
async def health():
    return {"status": "OK", "fake": True}


if __name__ == "__main__":
    print("Fake relay starting on http://localhost:3000")
    uvicorn.run(app, host="0.0.0.0", port=3000)

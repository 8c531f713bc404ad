from pydantic import BaseModel
from typing import Optional

# Fields are optional so a missing value gets the relay's own 400, not a 422.

class ExtractTextRequest(BaseModel):
    image: Optional[str] = None   # base64 image, no data-URL prefix

class ExtractTextResponse(BaseModel):
    text: str

class GenerateAudioRequest(BaseModel):
    text: Optional[str] = None

class ErrorResponse(BaseModel):
    error: str
    details: Optional[dict] = None

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    vision_ready: bool
    tts_provider: str
    tts_ready: bool

class StatusResponse(BaseModel):
    last_error: Optional[str] = None
    logs: list[str]

"""
Claude page-text extractor (relay upstream for /api/extract-text).

Sends the page image to Claude via the Anthropic API with a fixed
instruction to return only the page's text.

Requires CLAUDE_API_KEY in environment (.env or system env).
CLAUDE_MODEL overrides the model.
"""
import os

import anthropic

from story_reader.adapters.vision.base import VisionAdapter, sniff_media_type
from story_reader.orchestrator.errors import ExtractionFailed

DEFAULT_MODEL = "claude-3-haiku-20240307"
MAX_TOKENS = 1000

_PROMPT = (
    "Please extract all the text from this children's book page. "
    "Return only the text content, nothing else. "
    "If there are multiple text blocks, separate them with spaces to form complete sentences."
)


class ClaudeVision(VisionAdapter):
    def __init__(self, status_store, api_key: str | None = None, model: str | None = None):
        self.status = status_store
        self.model = model or os.getenv("CLAUDE_MODEL", DEFAULT_MODEL)
        self._client = None
        self._init_client(api_key or os.getenv("CLAUDE_API_KEY"))

    def _init_client(self, api_key: str | None):
        if not api_key:
            self.status.log("claude_vision: CLAUDE_API_KEY not set", level="WARN")
            return
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self.status.log(f"claude_vision: ready ({self.model})")

    @property
    def ready(self) -> bool:
        return self._client is not None

    async def extract_text(self, image_b64: str) -> str:
        if self._client is None:
            raise ExtractionFailed("Claude API key not configured")

        media_type = sniff_media_type(image_b64)
        try:
            message = await self._client.messages.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": _PROMPT},
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": media_type,
                                    "data": image_b64,
                                },
                            },
                        ],
                    }
                ],
            )
        except anthropic.APIStatusError as e:
            self.status.log(f"claude_vision: API error {e.status_code}: {e.message}", level="ERROR")
            raise ExtractionFailed(f"Claude API error: {e.status_code}", status=e.status_code) from e
        except anthropic.APIError as e:
            self.status.log(f"claude_vision: API error: {e}", level="ERROR")
            raise ExtractionFailed(f"Claude API error: {e}") from e

        text = " ".join(block.text.strip() for block in message.content if block.type == "text").strip()
        self.status.log(f"claude_vision: {len(text)} chars ({media_type})")
        return text

class VoiceAdapter:
    """Relay-side upstream: text -> audio bytes."""
    name = "base"
    label = "TTS"
    media_type = "audio/mpeg"

    @property
    def ready(self) -> bool:
        return True

    async def synthesize(self, text: str) -> bytes:
        raise NotImplementedError

class VisionAdapter:
    """Relay-side upstream: page image (base64) -> page text."""

    @property
    def ready(self) -> bool:
        return True

    async def extract_text(self, image_b64: str) -> str:
        raise NotImplementedError


_MAGIC = {
    "/9j/": "image/jpeg",
    "iVBORw0KGgo": "image/png",
    "R0lGOD": "image/gif",
    "UklGR": "image/webp",
}


def sniff_media_type(image_b64: str, default: str = "image/jpeg") -> str:
    """Media type from the leading base64 characters of the payload."""
    for prefix, media_type in _MAGIC.items():
        if image_b64.startswith(prefix):
            return media_type
    return default

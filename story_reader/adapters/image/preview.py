import asyncio

from story_reader.adapters.image.normalize import decode
from story_reader.orchestrator.contracts import EncodedImage
from story_reader.orchestrator.errors import ValidationError


class ImagePreview:
    """
    Decodes the captured image for display.

    show() returns an asyncio.Event that is set once decoding finishes
    (successfully or not); `complete` / `failed` tell which. Images that
    already carry a decoded frame are shown without decoding again.
    """

    def __init__(self, status_store):
        self.status = status_store
        self.complete = False
        self.failed = False
        self.shape = None
        self._task = None

    def show(self, img: EncodedImage) -> asyncio.Event:
        self.clear()
        ready = asyncio.Event()
        self._task = asyncio.ensure_future(self._decode(img, ready))
        return ready

    async def _decode(self, img: EncodedImage, ready: asyncio.Event):
        try:
            bgr = img.frame if img.frame is not None else await asyncio.to_thread(decode, img.data)
            self.shape = bgr.shape[:2]
            self.complete = True
            self.status.log(f"preview: decoded {self.shape[1]}x{self.shape[0]}", level="DEBUG")
        except ValidationError as e:
            self.failed = True
            self.status.log(f"preview: decode failed: {e}", level="ERROR")
        finally:
            ready.set()

    def is_ready(self) -> bool:
        return self.complete

    def clear(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.complete = False
        self.failed = False
        self.shape = None

"""Fake collaborators for the capture session tests."""
import asyncio

from story_reader.adapters.camera.file_picker import FilePicker
from story_reader.orchestrator.contracts import AudioResource, EncodedImage
from story_reader.orchestrator.errors import AcquisitionError, PlaybackBlocked

PAGE_TEXT = "The cat sat on the mat."


class FakeExtractor:
    def __init__(self, text=PAGE_TEXT, error=None, gate: asyncio.Event | None = None):
        self.text = text
        self.error = error
        self.gate = gate
        self.calls = []

    async def extract(self, img):
        self.calls.append(img)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.text


class FakeSynthesizer:
    def __init__(self, error=None):
        self.error = error
        self.calls = []
        self.made = []

    async def synthesize(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        audio = AudioResource(b"ID3fake-mp3-bytes")
        self.made.append(audio)
        return audio


class FakeBackend:
    """Player backend that records calls; `block` simulates no audio output."""

    def __init__(self, block=False):
        self.block = block
        self.started = []
        self.active = False
        self.paused = False

    def start(self, path):
        if self.block:
            raise PlaybackBlocked("no audio output available")
        self.started.append(path)
        self.active = True
        self.paused = False

    def pause(self):
        if self.active:
            self.paused = True

    def resume(self):
        self.paused = False

    def stop(self):
        self.active = False
        self.paused = False

    def is_active(self):
        return self.active


class FakeCamera:
    def __init__(self, image: EncodedImage | None = None, fail_open=False):
        self.image = image
        self.fail_open = fail_open
        self.opened = 0
        self.released = 0
        self._open = False

    @property
    def is_open(self):
        return self._open

    async def open(self):
        self.opened += 1
        if self.fail_open:
            raise AcquisitionError("permission denied")
        self._open = True

    async def capture_image(self):
        if self.image is None:
            raise AcquisitionError("frame capture failed")
        return self.image

    def release(self):
        self.released += 1
        self._open = False


class GatedPicker(FilePicker):
    """FilePicker whose read() blocks until `gate` is set."""

    def __init__(self, status_store, chooser=None):
        super().__init__(status_store, chooser=chooser)
        self.gate = asyncio.Event()
        self.reads = 0

    async def read(self, path):
        self.reads += 1
        await self.gate.wait()
        return await super().read(path)


class Clock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now



import cv2
import numpy as np
import pytest

from fakes import PAGE_TEXT, Clock, FakeBackend, FakeExtractor, FakeSynthesizer
from story_reader.adapters.camera.file_picker import FilePicker
from story_reader.adapters.tts.player_local import PlaybackController
from story_reader.orchestrator.contracts import SessionConfig
from story_reader.orchestrator.state_machine import Orchestrator
from story_reader.services.status_store import StatusStore


@pytest.fixture
def status():
    return StatusStore()


def _page(width, height):
    img = np.full((height, width, 3), 255, dtype=np.uint8)
    cv2.putText(img, PAGE_TEXT, (10, height // 2), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 0), 2)
    return img


@pytest.fixture
def jpeg_bytes():
    def make(width=320, height=240, quality=90) -> bytes:
        ok, buf = cv2.imencode(".jpg", _page(width, height), [cv2.IMWRITE_JPEG_QUALITY, quality])
        assert ok
        return buf.tobytes()
    return make


@pytest.fixture
def noise_png():
    """Incompressible PNG: roughly width * height * 3 bytes."""
    def make(width, height, seed=0) -> bytes:
        rng = np.random.default_rng(seed)
        ok, buf = cv2.imencode(".png", rng.integers(0, 256, (height, width, 3), dtype=np.uint8))
        assert ok
        return buf.tobytes()
    return make


@pytest.fixture
def page_file(tmp_path, jpeg_bytes):
    path = tmp_path / "page.jpg"
    path.write_bytes(jpeg_bytes())
    return str(path)


@pytest.fixture
def make_session(status):
    """Orchestrator wired with fakes; keyword overrides replace any collaborator."""
    def make(**kw):
        parts = dict(
            extractor=FakeExtractor(),
            synthesizer=FakeSynthesizer(),
            player=PlaybackController(status, backend=FakeBackend()),
            picker=FilePicker(status),
            status_store=status,
            config=SessionConfig(ready_interval_s=0.01),
            clock=Clock(),
        )
        parts.update(kw)
        return Orchestrator(**parts)
    return make

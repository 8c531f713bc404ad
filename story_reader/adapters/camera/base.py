from abc import ABC, abstractmethod

from story_reader.orchestrator.contracts import EncodedImage


class CameraAdapter(ABC):
    """Live-stream acquisition: open a stream, freeze a frame, release."""

    @abstractmethod
    async def open(self):
        """Open the stream. Raises AcquisitionError (no device / permission)."""
        ...

    @abstractmethod
    async def capture_image(self) -> EncodedImage:
        """Freeze the current frame. Raises AcquisitionError on read failure."""
        ...

    @abstractmethod
    def release(self):
        ...

    @property
    def is_open(self) -> bool:
        return False

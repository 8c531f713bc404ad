"""
OpenCV live-stream camera.
CAMERA_INDEX env var (default 0) selects the webcam device.

Frames are rasterized to at most 1600x1200 (aspect preserved) at JPEG
quality 80: upload speed over fidelity.
"""
import asyncio
import os

import cv2

from story_reader.adapters.camera.base import CameraAdapter
from story_reader.adapters.image.normalize import rasterize
from story_reader.orchestrator.contracts import EncodedImage
from story_reader.orchestrator.errors import AcquisitionError

FRAME_MAX_W, FRAME_MAX_H = 1600, 1200
FRAME_QUALITY = 80
# requested stream resolution; lower is faster to process
STREAM_W, STREAM_H = 1280, 720


class CV2Camera(CameraAdapter):
    def __init__(self, status_store, index: int | None = None):
        self.status = status_store
        self._index = index if index is not None else int(os.getenv("CAMERA_INDEX", "0"))
        self._cap = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    async def open(self):
        await asyncio.to_thread(self._open)

    def _open(self):
        self.release()  # one live stream per session
        cap = cv2.VideoCapture(self._index)
        if not cap.isOpened():
            cap.release()
            self.status.log(f"cv2_camera: failed to open device {self._index}", level="WARN")
            raise AcquisitionError(f"cannot open camera device {self._index}")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, STREAM_W)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, STREAM_H)
        self._cap = cap
        self.status.log(f"cv2_camera: stream open on device {self._index}")

    async def capture_image(self) -> EncodedImage:
        frame = await asyncio.to_thread(self._read_frame)
        img = rasterize(frame, FRAME_MAX_W, FRAME_MAX_H, FRAME_QUALITY)
        self.status.log(
            f"cv2_camera: captured {frame.shape[1]}x{frame.shape[0]} -> {img.width}x{img.height}"
            f" q={FRAME_QUALITY} {img.size / 1024 / 1024:.2f}MB"
        )
        return img

    def _read_frame(self):
        if not self.is_open:
            raise AcquisitionError("camera stream is not open")
        ret, frame = self._cap.read()
        if not ret or frame is None:
            self.status.log("cv2_camera: frame capture failed", level="ERROR")
            raise AcquisitionError("frame capture failed")
        return frame

    def release(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            self.status.log("cv2_camera: stream released")


def camera_available(index: int | None = None) -> bool:
    """Capability probe: can a capture device be opened at all."""
    idx = index if index is not None else int(os.getenv("CAMERA_INDEX", "0"))
    cap = cv2.VideoCapture(idx)
    try:
        return cap.isOpened()
    finally:
        cap.release()

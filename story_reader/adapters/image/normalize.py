"""
Image decode / resize / JPEG encode helpers (OpenCV).

normalize() bounds upload size before extraction: payloads over 2 MB are
scaled to fit 1400x1400 and re-encoded at quality 60. Smaller payloads are
returned as-is. A frame already decoded at acquisition is reused.
"""
import cv2
import numpy as np

from story_reader.orchestrator.contracts import EncodedImage
from story_reader.orchestrator.errors import ValidationError

MAX_BYTES = 2 * 1024 * 1024
MAX_W, MAX_H = 1400, 1400
QUALITY = 60
QUALITY_FLOOR = 30
QUALITY_STEP = 10


def fit_within(width: int, height: int, max_w: int, max_h: int) -> tuple[int, int]:
    if width <= max_w and height <= max_h:
        return width, height
    ratio = min(max_w / width, max_h / height)
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def decode(data: bytes):
    if not data:
        raise ValidationError("empty image payload")
    arr = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    if img is None:
        raise ValidationError("payload is not a decodable image")
    return img


def encode_jpeg(bgr, quality: int) -> bytes:
    ok, buf = cv2.imencode(".jpg", bgr, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise ValidationError("jpeg encode failed")
    return buf.tobytes()


def rasterize(bgr, max_w: int, max_h: int, quality: int) -> EncodedImage:
    """Scale a BGR frame to fit max_w x max_h (aspect preserved) and encode as JPEG."""
    h, w = bgr.shape[:2]
    nw, nh = fit_within(w, h, max_w, max_h)
    if (nw, nh) != (w, h):
        bgr = cv2.resize(bgr, (nw, nh), interpolation=cv2.INTER_AREA)
    return EncodedImage(data=encode_jpeg(bgr, quality), mime_type="image/jpeg", width=nw, height=nh, frame=bgr)


def load_image(data: bytes, mime_type: str) -> EncodedImage:
    """Wrap raw file bytes, reading pixel dimensions from the decoded image."""
    bgr = decode(data)
    h, w = bgr.shape[:2]
    return EncodedImage(data=data, mime_type=mime_type, width=w, height=h, frame=bgr)


def normalize(img: EncodedImage, status_store=None) -> EncodedImage:
    if img.size <= MAX_BYTES:
        return img

    bgr = img.frame if img.frame is not None else decode(img.data)
    h, w = bgr.shape[:2]
    nw, nh = fit_within(w, h, MAX_W, MAX_H)
    if (nw, nh) != (w, h):
        bgr = cv2.resize(bgr, (nw, nh), interpolation=cv2.INTER_AREA)

    quality = QUALITY
    data = encode_jpeg(bgr, quality)
    # best effort: step quality down until under the threshold
    while len(data) > MAX_BYTES and quality > QUALITY_FLOOR:
        quality -= QUALITY_STEP
        data = encode_jpeg(bgr, quality)

    out = EncodedImage(data=data, mime_type="image/jpeg", width=nw, height=nh, frame=bgr)
    if status_store is not None:
        status_store.log(
            f"normalize: {w}x{h} {img.size / 1024 / 1024:.2f}MB"
            f" -> {nw}x{nh} {out.size / 1024 / 1024:.2f}MB (q={quality})"
        )
    return out

"""
File-picker acquisition.

A chooser callable stands in for the native file dialog: it returns a path,
or None when the user cancels. Like a browser <input type=file>, a selection
only "fires" when the chosen value differs from the current one, so clear()
must be called after every reset for the same filename to be picked again.
"""
import asyncio
import mimetypes
from pathlib import Path
from typing import Callable, Optional

from story_reader.adapters.image.normalize import load_image
from story_reader.orchestrator.contracts import EncodedImage
from story_reader.orchestrator.errors import AcquisitionError, ERR_NOT_IMAGE

ACCEPT = "image/"


class FilePicker:
    def __init__(self, status_store, chooser: Optional[Callable[[], Optional[str]]] = None):
        self.status = status_store
        self._chooser = chooser
        self.selection: Optional[str] = None

    def clear(self):
        self.selection = None

    def select(self, path: Optional[str]) -> bool:
        """Set the selection. Returns True when a change event would fire."""
        if not path or path == self.selection:
            return False
        self.selection = path
        return True

    async def choose(self) -> Optional[str]:
        if self._chooser is None:
            self.status.log("file_picker: no chooser configured", level="WARN")
            return None
        path = await asyncio.to_thread(self._chooser)
        if not path:
            self.status.log("file_picker: selection cancelled")
            return None
        if not self.select(path):
            self.status.log(f"file_picker: {path} already selected, no change event", level="WARN")
            return None
        return path

    async def read(self, path: str) -> EncodedImage:
        mime, _ = mimetypes.guess_type(path)
        if not mime or not mime.startswith(ACCEPT):
            self.status.log(f"file_picker: rejected {path} (type={mime})", level="WARN")
            raise AcquisitionError(f"not an image file: {path}", code=ERR_NOT_IMAGE)
        try:
            data = await asyncio.to_thread(Path(path).read_bytes)
        except OSError as e:
            raise AcquisitionError(f"cannot read {path}: {e}") from e
        self.status.log(f"file_picker: read {Path(path).name} ({len(data)} bytes, {mime})")
        return await asyncio.to_thread(load_image, data, mime)

"""
Narration playback, cross-platform.

LocalPlayer runs an external player process for the audio file:
  afplay (macOS) → ffplay → mpv → aplay → paplay
Pause/resume suspend and continue the process (POSIX signals); where those
are unavailable, pause stops playback and play starts over.

PlaybackController owns the single live AudioResource and the play/pause
button visibility.
"""

import shutil
import signal
import subprocess
import sys
from typing import Optional

from story_reader.orchestrator.contracts import AudioResource
from story_reader.orchestrator.errors import PlaybackBlocked

_CAN_SUSPEND = hasattr(signal, "SIGSTOP") and hasattr(signal, "SIGCONT")


class LocalPlayer:
    def __init__(self, status_store):
        self.status = status_store
        self._proc: Optional[subprocess.Popen] = None
        self.paused = False

    def _command(self, path: str) -> list[str] | None:
        if sys.platform == "darwin":
            return ["afplay", path]
        if shutil.which("ffplay"):
            return ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet", path]
        if shutil.which("mpv"):
            return ["mpv", "--no-video", "--really-quiet", path]
        if shutil.which("aplay"):
            return ["aplay", "-q", path]
        if shutil.which("paplay"):
            return ["paplay", path]
        return None

    def start(self, path: str):
        self.stop()
        cmd = self._command(path)
        if cmd is None:
            self.status.log("player: no audio player found", level="WARN")
            raise PlaybackBlocked("no audio output available")
        self._proc = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        self.paused = False
        self.status.log(f"player: started {cmd[0]} pid={self._proc.pid}")

    def pause(self):
        if not self.is_active():
            return
        if _CAN_SUSPEND:
            self._proc.send_signal(signal.SIGSTOP)
            self.paused = True
        else:
            self.stop()

    def resume(self):
        if self._proc is not None and self.paused and self._proc.poll() is None:
            self._proc.send_signal(signal.SIGCONT)
            self.paused = False

    def stop(self):
        if self._proc is None:
            return
        if self._proc.poll() is None:
            if self.paused and _CAN_SUSPEND:
                self._proc.send_signal(signal.SIGCONT)
            self._proc.terminate()
            try:
                self._proc.wait(timeout=2)
            except subprocess.TimeoutExpired:
                self._proc.kill()
        self._proc = None
        self.paused = False

    def is_active(self) -> bool:
        """Playing or paused (process alive)."""
        return self._proc is not None and self._proc.poll() is None


class PlaybackController:
    def __init__(self, status_store, backend=None, autoplay: bool = True):
        self.status = status_store
        self.backend = backend if backend is not None else LocalPlayer(status_store)
        self.autoplay = autoplay
        self.audio: Optional[AudioResource] = None
        # pre-play layout: play visible, pause hidden
        self.play_visible = True
        self.pause_visible = False

    def attach_and_play(self, audio: AudioResource) -> bool:
        """Take ownership of `audio` and try to autoplay. Returns False when autoplay was blocked."""
        if self.audio is not None and self.audio is not audio:
            self.backend.stop()
            self.audio.release()
            self.status.log("playback: released previous audio resource")
        self.audio = audio

        try:
            if not self.autoplay:
                raise PlaybackBlocked("autoplay disabled")
            self.backend.start(audio.path)
        except PlaybackBlocked as e:
            # policy fallback, not a failure
            self.status.log(f"playback: auto-play blocked ({e}), showing play button")
            self._show_play()
            return False

        self._show_pause()
        self.status.log("playback: auto-play started")
        return True

    def play(self) -> bool:
        if self.audio is None:
            self.status.log("playback: no audio available", level="WARN")
            return False
        if getattr(self.backend, "paused", False):
            self.backend.resume()
        else:
            try:
                self.backend.start(self.audio.path)
            except PlaybackBlocked as e:
                self.status.log(f"playback: play failed ({e})", level="ERROR")
                self._show_play()
                return False
        self._show_pause()
        return True

    def pause(self):
        self.backend.pause()
        self._show_play()

    def stop(self):
        """Release the resource, rewind, restore pre-play controls."""
        self.backend.stop()
        if self.audio is not None:
            self.audio.release()
            self.audio = None
        self._show_play()

    def refresh(self):
        # playback ended on its own
        if self.pause_visible and not self.backend.is_active():
            self.status.log("playback: ended")
            self._show_play()

    def _show_play(self):
        self.play_visible = True
        self.pause_visible = False

    def _show_pause(self):
        self.play_visible = False
        self.pause_visible = True

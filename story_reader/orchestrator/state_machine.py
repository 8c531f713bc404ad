import asyncio
import time
from typing import Optional

from story_reader.adapters.camera.select import LIVE_STREAM, is_mobile, select_strategy
from story_reader.adapters.image.normalize import normalize
from story_reader.adapters.image.preview import ImagePreview
from story_reader.orchestrator import errors
from story_reader.orchestrator.contracts import EncodedImage, RunResult, SessionConfig, Stage
from story_reader.orchestrator.errors import (
    AcquisitionError, ExtractionFailed, PipelineError, PipelineTimeout, SynthesisFailed, ValidationError,
    user_message,
)
from story_reader.orchestrator.view import ViewState, render


class Orchestrator:
    """
    One capture-to-playback session.

      idle -> capturing -> captured -> extracting -> synthesizing -> playing

    Any failure resets to idle with a single banner, except a synthesis
    failure, which ends in text_only (text shown, no audio).

    `processing` is held from "input received" until the image is validated
    or rejected. In-flight remote calls are never cancelled: each run carries
    a run id, and results arriving after a reset are discarded.
    """

    def __init__(self, extractor, synthesizer, player, picker, status_store, camera=None, preview=None,
                 config: Optional[SessionConfig] = None, user_agent: str = "", clock=time.monotonic):
        self.extractor = extractor
        self.synthesizer = synthesizer
        self.player = player
        self.picker = picker
        self.status = status_store
        self.camera = camera
        self.preview = preview if preview is not None else ImagePreview(status_store)
        self.config = config or SessionConfig()
        self.user_agent = user_agent
        self._clock = clock

        self.stage = Stage.IDLE
        self.image: Optional[EncodedImage] = None
        self.text: Optional[str] = None
        self.processing = False
        self.last_action_ts: Optional[float] = None
        self.streaming = False
        self.banner: Optional[str] = None
        self.last_result: Optional[RunResult] = None
        self._ready: Optional[asyncio.Event] = None
        self._run_id = 0
        # file dialog open / pipeline run in flight
        self._choosing = False
        self._reading = False

    # ── user actions ────────────────────────────────────────────────────────

    async def trigger_capture(self) -> bool:
        """The camera button. Debounced; while a live stream is open it freezes the frame."""
        now = self._clock()
        if self.last_action_ts is not None and now - self.last_action_ts < self.config.debounce_s:
            self.status.flow("click_debounced", since_ms=int((now - self.last_action_ts) * 1000))
            return False
        if self.processing or self._choosing:
            self.status.flow("trigger_rejected_processing", choosing=self._choosing)
            return False
        self.last_action_ts = now

        if self.stage == Stage.CAPTURING and self.streaming:
            return await self.capture_frame()
        if self.stage not in (Stage.IDLE, Stage.CAPTURING):
            self.status.flow("trigger_ignored", stage=self.stage.value)
            return False

        self.status.flow("take_photo_clicked", mobile=is_mobile(self.user_agent), camera=self.camera is not None)
        self.banner = None
        self.picker.clear()
        self._set_stage(Stage.CAPTURING)

        if select_strategy(self.user_agent, self.camera is not None) == LIVE_STREAM:
            try:
                await self.camera.open()
                self.streaming = True
                self.status.flow("camera_stream_started")
                return True
            except Exception as e:
                self.status.log(f"camera access failed ({type(e).__name__}: {e}), falling back to file picker",
                                level="WARN")

        self.status.flow("using_file_input_approach")
        run_id = self._run_id
        self._choosing = True
        try:
            path = await self.picker.choose()
        except PipelineError as e:
            return self._abort(run_id, e)
        except Exception as e:
            return self._abort(run_id, AcquisitionError(f"file chooser failed: {type(e).__name__}: {e}"))
        finally:
            if not self._stale(run_id):
                self._choosing = False

        if self._stale(run_id):
            self._discard("file selection")
            return False
        if path is None:
            if self.stage == Stage.CAPTURING and not self.processing:
                self._set_stage(Stage.IDLE)
            return False
        return await self.on_file_selected(path)

    async def capture_frame(self) -> bool:
        """Freeze-frame on the live stream."""
        if not (self.stage == Stage.CAPTURING and self.streaming):
            return False
        if self.processing:
            self.status.flow("duplicate_capture_prevented")
            return False

        run_id = self._run_id
        self.processing = True
        try:
            img = await self.camera.capture_image()
            if self._stale(run_id):
                self._discard("captured frame")
                return False
            self._validate(img)
        except PipelineError as e:
            return self._abort(run_id, e)
        except Exception as e:
            return self._abort(run_id, PipelineError(f"{type(e).__name__}: {e}"))
        finally:
            if not self._stale(run_id):
                self.processing = False

        self._stop_camera()
        await self._captured(img)
        return True

    async def on_file_selected(self, path: Optional[str]) -> bool:
        """File-chooser change event. Re-entrant events while one is processing are no-ops."""
        self.status.flow("handle_file_select_called", path=path, processing=self.processing)
        if self.processing:
            self.status.flow("duplicate_processing_prevented")
            return False
        if not path:
            self.status.flow("no_file_selected")
            return False
        if self.stage not in (Stage.IDLE, Stage.CAPTURING):
            self.status.flow("file_select_ignored", stage=self.stage.value)
            return False

        run_id = self._run_id
        self.processing = True
        self._set_stage(Stage.CAPTURING)
        try:
            img = await asyncio.wait_for(self.picker.read(path), timeout=self.config.file_timeout_s)
            if self._stale(run_id):
                self._discard("file read")
                return False
            self._validate(img)
        except asyncio.TimeoutError:
            self.status.flow("file_processing_timeout_detected")
            return self._abort(run_id, PipelineTimeout(f"file read exceeded {self.config.file_timeout_s:g}s"))
        except PipelineError as e:
            return self._abort(run_id, e)
        except Exception as e:
            return self._abort(run_id, PipelineError(f"{type(e).__name__}: {e}"))
        finally:
            if not self._stale(run_id):
                self.processing = False

        await self._captured(img)
        return True

    async def read(self) -> Optional[RunResult]:
        """The read button (or auto-advance): extract, synthesize, play."""
        if self.stage != Stage.CAPTURED or self.image is None:
            self.status.flow("read_ignored", stage=self.stage.value)
            return None
        if self._reading:
            self.status.flow("duplicate_read_prevented")
            return None

        run_id = self._run_id
        self._reading = True
        t0 = time.time()
        compressed = False
        extract_ms = None
        try:
            await self._wait_until_ready()
            if self._stale(run_id):
                return self._discard("readiness wait")

            self._set_stage(Stage.EXTRACTING)
            image = await asyncio.to_thread(normalize, self.image, self.status)
            compressed = image is not self.image
            t_extract = time.time()
            text = await self.extractor.extract(image)
            extract_ms = _ms_since(t_extract)
            if self._stale(run_id):
                return self._discard("extracted text")
            if not text or not text.strip():
                raise ExtractionFailed("no text found in image", code=errors.ERR_NO_TEXT)
            self.text = text
            self.status.flow("text_extraction_completed", chars=len(text))

            self._set_stage(Stage.SYNTHESIZING)
            try:
                audio = await self.synthesizer.synthesize(text)
            except SynthesisFailed as e:
                if self._stale(run_id):
                    return self._discard("synthesis failure")
                return self._text_only(e, t0)
            if self._stale(run_id):
                audio.release()
                return self._discard("audio")

            self._set_stage(Stage.PLAYING)
            self.player.attach_and_play(audio)
            return self._finish(RunResult(ok=True, stage=Stage.PLAYING, duration_ms=_ms_since(t0),
                                          text=text, has_audio=True))

        except PipelineError as e:
            if self._stale(run_id):
                return self._discard(f"error {e.code}")
            return self._fail(e, t0)
        except Exception as e:
            if self._stale(run_id):
                return self._discard(f"error {type(e).__name__}")
            return self._fail(PipelineError(f"{type(e).__name__}: {e}"), t0)
        finally:
            if not self._stale(run_id):
                self._reading = False
            self.status.log(f"run summary: total={_ms_since(t0)}ms extract={extract_ms}ms compressed={compressed}")

    def play(self) -> bool:
        if self.stage != Stage.PLAYING:
            return False
        return self.player.play()

    def pause(self):
        if self.stage == Stage.PLAYING:
            self.player.pause()

    def new_photo(self):
        """Back to capture-ready after a run; also restarts the debounce clock."""
        self.status.flow("new_photo_clicked")
        self.last_action_ts = None
        self._reset()

    def retake(self):
        self.status.flow("retake_clicked")
        self._reset()

    def close(self):
        self._reset()

    def view(self) -> ViewState:
        self.player.refresh()
        return render(
            self.stage,
            streaming=self.streaming,
            auto_advance=self.config.auto_advance,
            text=self.text,
            play_visible=self.player.play_visible,
            pause_visible=self.player.pause_visible,
            banner=self.banner,
        )

    # ── internals ──────────────────────────────────────────────────────────

    async def _captured(self, img: EncodedImage):
        self.image = img
        self._set_stage(Stage.CAPTURED)
        self._ready = self.preview.show(img)
        self.status.flow("image_captured", dims=f"{img.width}x{img.height}", bytes=img.size, mime=img.mime_type)
        if self.config.auto_advance:
            await self.read()

    async def _wait_until_ready(self):
        attempts, interval = self.config.ready_attempts, self.config.ready_interval_s
        if self._ready is not None:
            try:
                await asyncio.wait_for(self._ready.wait(), timeout=attempts * interval)
            except asyncio.TimeoutError:
                raise ValidationError("image not decoded in time", code=errors.ERR_NOT_READY) from None
        else:
            # no completion signal from the preview: poll
            for attempt in range(1, attempts + 1):
                if self.preview.is_ready():
                    break
                self.status.flow("image_not_ready_will_retry", attempt=attempt)
                await asyncio.sleep(interval)
            else:
                raise ValidationError(f"image not ready after {attempts} attempts", code=errors.ERR_NOT_READY)
        if getattr(self.preview, "failed", False):
            raise ValidationError("captured image failed to decode")

    def _validate(self, img: Optional[EncodedImage]):
        if img is None or not img.data:
            raise ValidationError("empty image payload")
        if not img.mime_type.startswith("image/"):
            raise ValidationError(f"unexpected MIME type {img.mime_type!r}")
        if img.width <= 0 or img.height <= 0:
            raise ValidationError("image has no pixel dimensions")

    def _text_only(self, err: SynthesisFailed, t0: float) -> RunResult:
        self.status.log(f"synthesis failed ({err}); showing text only", level="WARN")
        self.player.stop()
        self.banner = user_message(err)
        self._set_stage(Stage.TEXT_ONLY)
        return self._finish(RunResult(ok=False, stage=Stage.TEXT_ONLY, duration_ms=_ms_since(t0),
                                      error_code=err.code, text=self.text))

    def _fail(self, err: PipelineError, t0: Optional[float] = None) -> RunResult:
        self.status.log(f"error {err.code}: {err}" + (f" (status={err.status})" if err.status else ""), level="ERROR")
        self.stage = Stage.ERROR
        self._reset()
        self.banner = user_message(err)
        return self._finish(RunResult(ok=False, stage=Stage.ERROR,
                                      duration_ms=_ms_since(t0) if t0 is not None else 0,
                                      error_code=err.code))

    def _abort(self, run_id: int, err: PipelineError) -> bool:
        if self._stale(run_id):
            self._discard(f"error {err.code}")
        else:
            self._fail(err)
        return False

    def _discard(self, what: str):
        self.status.log(f"discarding {what} from a run that was reset", level="DEBUG")
        return None

    def _reset(self):
        self._run_id += 1
        self._stop_camera()
        self.player.stop()
        self.picker.clear()
        self.preview.clear()
        self._ready = None
        self.image = None
        self.text = None
        self.processing = False
        self._choosing = False
        self._reading = False
        self.banner = None
        self._set_stage(Stage.IDLE)

    def _stop_camera(self):
        if self.camera is not None and self.streaming:
            self.camera.release()
        self.streaming = False

    def _stale(self, run_id: int) -> bool:
        return run_id != self._run_id

    def _set_stage(self, stage: Stage):
        if stage != self.stage:
            self.status.log(f"stage {self.stage.value} -> {stage.value}")
        self.stage = stage

    def _finish(self, result: RunResult) -> RunResult:
        self.last_result = result
        self.status.log(f"run done ok={result.ok} stage={result.stage.value} code={result.error_code} "
                        f"dt={result.duration_ms}ms")
        return result


def _ms_since(t0: float) -> int:
    return int((time.time() - t0) * 1000)

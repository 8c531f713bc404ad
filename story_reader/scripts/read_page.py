"""
Read a children's book page aloud from the terminal.

Usage:
    # relay running (python -m story_reader.services.api), then:
    python -m story_reader.scripts.read_page --file page.jpg
    python -m story_reader.scripts.read_page              # live camera, Enter to capture
    python -m story_reader.scripts.read_page --manual-read --no-autoplay --file page.jpg

READER_BASE_URL (default http://127.0.0.1:3000) points at the relay.
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

from story_reader.adapters.camera.cv2_camera import CV2Camera, camera_available
from story_reader.adapters.camera.file_picker import FilePicker
from story_reader.adapters.tts.http_synth import HttpSynthesizer
from story_reader.adapters.tts.player_local import PlaybackController
from story_reader.adapters.vision.http_extract import HttpExtractor
from story_reader.orchestrator.contracts import SessionConfig, Stage
from story_reader.orchestrator.state_machine import Orchestrator
from story_reader.services.status_store import StatusStore


def build(args) -> Orchestrator:
    config = SessionConfig.from_env()
    if args.base_url:
        config.base_url = args.base_url
    if args.manual_read:
        config.auto_advance = False
    if args.no_autoplay:
        config.autoplay = False

    status = StatusStore(echo=args.verbose)
    pending = [args.file] if args.file else []

    def chooser():
        if pending:
            return pending.pop()
        path = input("Image path (empty to cancel): ").strip()
        return path or None

    camera = None
    if not args.file and not args.no_camera and camera_available():
        camera = CV2Camera(status)

    return Orchestrator(
        extractor=HttpExtractor(status, config.base_url, timeout=config.http_timeout_s),
        synthesizer=HttpSynthesizer(status, config.base_url, timeout=config.http_timeout_s),
        player=PlaybackController(status, autoplay=config.autoplay),
        picker=FilePicker(status, chooser=chooser),
        status_store=status,
        camera=camera,
        config=config,
        user_agent=args.user_agent,
    )


def show(orch: Orchestrator):
    view = orch.view()
    if view.banner:
        print(f"\n!! {view.banner}\n")
    if view.text_section and view.show_text and view.text:
        print(f"\n{view.text}\n")


async def prompt(msg: str) -> str:
    return (await asyncio.to_thread(input, msg)).strip().lower()


async def run(args) -> int:
    orch = build(args)
    try:
        await orch.trigger_capture()
        if orch.stage == Stage.CAPTURING and orch.streaming:
            await prompt("Camera is live. Press Enter to capture... ")
            await orch.capture_frame()

        if orch.stage == Stage.CAPTURED:
            if await prompt("Image captured. Read it? [Y/n] ") in ("", "y", "yes"):
                await orch.read()
            else:
                orch.retake()

        show(orch)
        while orch.stage == Stage.PLAYING:
            view = orch.view()
            options = "[p]lay" if view.play_button else "[s] pause"
            cmd = await prompt(f"{options}  [q]uit > ")
            if cmd in ("p", "play"):
                orch.play()
            elif cmd in ("s", "pause"):
                orch.pause()
            elif cmd in ("q", "quit", "n"):
                break
        result = orch.last_result
        return 0 if result is not None and result.stage in (Stage.PLAYING, Stage.TEXT_ONLY) else 1
    finally:
        orch.close()
        if args.log_file:
            with open(args.log_file, "w", encoding="utf-8") as f:
                f.write(orch.status.export())


def main():
    load_dotenv(dotenv_path=".env", override=False)
    parser = argparse.ArgumentParser(description="Photograph a book page and hear it read aloud")
    parser.add_argument("--file", help="image file to read instead of using the camera")
    parser.add_argument("--base-url", help="relay base URL (overrides READER_BASE_URL)")
    parser.add_argument("--no-camera", action="store_true", help="always use the file picker")
    parser.add_argument("--no-autoplay", action="store_true", help="wait for [p]lay instead of auto-playing")
    parser.add_argument("--manual-read", action="store_true", help="do not auto-advance into extraction")
    parser.add_argument("--user-agent", default="", help="client user agent (mobile agents use the file picker)")
    parser.add_argument("--log-file", help="write the session log here on exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="echo the session log to stderr")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()

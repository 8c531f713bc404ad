from dataclasses import dataclass
from typing import Optional

from story_reader.orchestrator.contracts import Stage

TAKE_PHOTO = "Take Photo"
CAPTURE = "Capture"


@dataclass(frozen=True)
class ViewState:
    """What the UI should show. Derived from the session, never mutated by handlers."""
    capture_button: bool = True
    capture_label: str = TAKE_PHOTO
    video: bool = False
    preview: bool = False
    retake_button: bool = False
    read_button: bool = False
    loading: bool = False
    text_section: bool = False
    text: Optional[str] = None
    show_text: bool = False
    play_button: bool = False
    pause_button: bool = False
    new_photo_button: bool = False
    banner: Optional[str] = None


def render(stage: Stage, *, streaming: bool = False, auto_advance: bool = True, text: Optional[str] = None,
           play_visible: bool = False, pause_visible: bool = False, banner: Optional[str] = None) -> ViewState:
    if stage == Stage.CAPTURING:
        return ViewState(capture_label=CAPTURE if streaming else TAKE_PHOTO, video=streaming, banner=banner)

    if stage == Stage.CAPTURED:
        return ViewState(capture_button=False, preview=True, retake_button=True,
                         read_button=not auto_advance, banner=banner)

    if stage in (Stage.EXTRACTING, Stage.SYNTHESIZING):
        return ViewState(capture_button=False, preview=True, loading=True, banner=banner)

    if stage == Stage.PLAYING:
        # audio only: the text stays hidden while narrating
        return ViewState(capture_button=False, text_section=True, text=text, show_text=False,
                         play_button=play_visible, pause_button=pause_visible,
                         new_photo_button=True, banner=banner)

    if stage == Stage.TEXT_ONLY:
        return ViewState(capture_button=False, text_section=True, text=text, show_text=True,
                         new_photo_button=True, banner=banner)

    # IDLE and ERROR share the initial capture-ready layout
    return ViewState(banner=banner)

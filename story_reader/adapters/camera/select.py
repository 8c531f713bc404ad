import re

LIVE_STREAM = "live_stream"
FILE_PICKER = "file_picker"

_MOBILE_UA = re.compile(r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE)


def is_mobile(user_agent: str | None) -> bool:
    return bool(user_agent) and _MOBILE_UA.search(user_agent) is not None


def select_strategy(user_agent: str | None, has_camera: bool) -> str:
    # live stream only on non-mobile agents with a camera; file picker otherwise
    if has_camera and not is_mobile(user_agent):
        return LIVE_STREAM
    return FILE_PICKER

import re
import time
from typing import Optional

# =========================
# VIDEO ID EXTRACTION
# =========================

VIDEO_ID_PATTERN = re.compile(r"/video/(BV\w+)", re.IGNORECASE)


def extract_video_id(url: Optional[str]) -> Optional[str]:
    """
    Returns the video identifier embedded in a watch-page URL.

    Examples:
        https://www.bilibili.com/video/BV1xx411c7mD?p=2 -> "BV1xx411c7mD"
        https://www.bilibili.com/                       -> None
    """
    if not url:
        return None

    match = VIDEO_ID_PATTERN.search(url)
    return match.group(1) if match else None


def now_ms() -> int:
    return int(time.time() * 1000)


# =========================
# READABLE TIME FORMATTER
# =========================

def get_readable_time(seconds: int) -> str:
    """
    Converts seconds into a human-readable format.

    Examples:
        65     -> "1m: 5s"
        3725   -> "1h: 2m: 5s"
        90000  -> "1 days, 1h: 0m: 0s"
    """
    count = 0
    readable_time = ""
    time_list = []
    time_suffix_list = ["s", "m", "h", " days"]

    seconds = int(seconds)

    while count < 4:
        count += 1

        if count < 3:
            remainder, result = divmod(seconds, 60)
        else:
            remainder, result = divmod(seconds, 24)

        if seconds == 0 and remainder == 0:
            break

        time_list.append(int(result))
        seconds = int(remainder)

    for i in range(len(time_list)):
        time_list[i] = f"{time_list[i]}{time_suffix_list[i]}"

    if len(time_list) == 4:
        readable_time += time_list.pop() + ", "

    time_list.reverse()
    readable_time += ": ".join(time_list)

    return readable_time

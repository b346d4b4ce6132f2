"""SubRip (.srt) to WebVTT conversion for browser <track> elements."""

from __future__ import annotations

import re

_SRT_TIMESTAMP_RE = re.compile(r"(\d{2}:\d{2}:\d{2}),(\d{3})")

VTT_MEDIA_TYPE = "text/vtt"


def srt_to_vtt(srt: str) -> str:
    """Convert SubRip text to WebVTT.

    Drops carriage returns and swaps the millisecond comma for a dot.
    Cue numbers are left in place; WebVTT treats them as cue identifiers.
    """
    body = _SRT_TIMESTAMP_RE.sub(r"\1.\2", srt.replace("\r", ""))
    return f"WEBVTT\n\n{body}"

"""Validation and merging of detected speech segments."""

import logging
from typing import Iterable, List, Optional

from .exceptions import NoSpeechDetectedError
from .models import SpeechSegment

logger = logging.getLogger(__name__)


def normalize_segments(
    segments: Iterable[SpeechSegment],
    total_duration: Optional[float] = None,
) -> List[SpeechSegment]:
    """
    Returns segments sorted by start time with no two overlapping.

    Each segment is first clamped to ``[0, total_duration]`` (the upper bound
    only when known) and dropped if nothing is left of it. The remainder is
    sorted by start, and any segment starting before the previous one ends is
    merged into it. Segments that merely touch are kept apart.

    Args:
        segments: Raw segments, in any order.
        total_duration: Length of the decoded audio in seconds, if known.

    Returns:
        The normalized list.

    Raises:
        NoSpeechDetectedError: If the input is empty, or if every segment lies
            outside the audio; the two cases have different messages.
    """
    clamped = []
    received = 0
    for segment in segments:
        received += 1
        start = max(0.0, float(segment.start_sec))
        end = float(segment.end_sec)
        if total_duration is not None:
            end = min(end, float(total_duration))
        if end <= start:
            logger.debug(f"Dropping empty segment after clamping: {segment}")
            continue
        clamped.append(SpeechSegment(start, end))

    if not received:
        raise NoSpeechDetectedError("No speech segments to keep.")
    if not clamped:
        bounds = f" (0.00-{total_duration:.2f}s)" if total_duration is not None else ""
        raise NoSpeechDetectedError(
            f"All {received} detected speech segments are empty or fall outside the audio{bounds}."
        )

    clamped.sort(key=lambda s: (s.start_sec, s.end_sec))

    merged = [clamped[0]]
    for segment in clamped[1:]:
        previous = merged[-1]
        if segment.start_sec < previous.end_sec:
            merged[-1] = SpeechSegment(previous.start_sec, max(previous.end_sec, segment.end_sec))
        else:
            merged.append(segment)

    if len(merged) != len(clamped):
        logger.warning(f"Merged {len(clamped) - len(merged)} overlapping speech segments.")
    return merged


def covered_duration(segments: Iterable[SpeechSegment]) -> float:
    """Total time covered by the union of the given intervals."""
    total = 0.0
    current_start = current_end = None
    for segment in sorted(segments, key=lambda s: s.start_sec):
        if current_end is None or segment.start_sec > current_end:
            if current_end is not None:
                total += current_end - current_start
            current_start, current_end = segment.start_sec, segment.end_sec
        else:
            current_end = max(current_end, segment.end_sec)
    if current_end is not None:
        total += current_end - current_start
    return total

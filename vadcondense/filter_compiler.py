"""Compiles speech segments into an ffmpeg audio select filter."""

from typing import Sequence

from .exceptions import CompileError
from .models import FilterExpression, SpeechSegment

# Boundaries are written with two decimals, so cuts land on a 10 ms grid.
TIME_PRECISION = 2


def format_interval(segment: SpeechSegment) -> str:
    return f"between(t,{segment.start_sec:.{TIME_PRECISION}f},{segment.end_sec:.{TIME_PRECISION}f})"


def compile_filter(segments: Sequence[SpeechSegment]) -> FilterExpression:
    """
    Builds ``aselect='between(t,a,b)+...',asetpts=N/SR/TB``.

    ``aselect`` keeps a sample when its time falls inside any interval and
    ``asetpts`` renumbers the kept samples so the output has no gaps.

    Raises:
        CompileError: If there are no segments.
    """
    if not segments:
        raise CompileError("Cannot build a filter expression from an empty segment list.")
    cuts = "+".join(format_interval(segment) for segment in segments)
    return FilterExpression(text=f"aselect='{cuts}',asetpts=N/SR/TB", segment_count=len(segments))

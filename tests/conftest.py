"""Pytest configuration helpers and fake collaborators."""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


def _ensure_repo_on_path() -> None:
    """Allow tests to import from repo modules without setting PYTHONPATH."""
    repo_root = Path(__file__).resolve().parents[1]
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()

from vadcondense.detector import ModelSession, SpeechDetector  # noqa: E402
from vadcondense.events import StatusChannel  # noqa: E402
from vadcondense.exceptions import DecodeError, EncodeError  # noqa: E402
from vadcondense.models import SampleBuffer, SpeechSegment  # noqa: E402
from vadcondense.pipeline import CondensePipeline  # noqa: E402


class FakeDecoder:
    """Returns ten seconds of silence for any path not listed in ``failing``."""

    def __init__(self, failing=(), seconds: float = 10.0) -> None:
        self.failing = set(failing)
        self.seconds = seconds
        self.calls: list[str] = []

    def decode(self, path: str, sample_rate: int = 16000) -> SampleBuffer:
        self.calls.append(path)
        if path in self.failing:
            raise DecodeError(f"ffmpeg decode error: cannot open {path}")
        return SampleBuffer(np.zeros(int(self.seconds * sample_rate), dtype=np.float32), sample_rate)


class FakeDetector(SpeechDetector):
    """Hands out queued results in call order; exceptions in the queue are raised."""

    def __init__(self, results) -> None:
        self.results = list(results)
        self.calls = 0

    def detect(self, buffer, config, progress_callback=None):
        self.calls += 1
        if progress_callback is not None:
            for fraction in (0.0, 0.5, 1.0):
                progress_callback(fraction)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return [SpeechSegment(start, end) for start, end in result]


class FakeExporter:
    def __init__(self, failing=()) -> None:
        self.failing = set(failing)
        self.exports: list[tuple[str, str, str]] = []

    def export(self, original_path, expression, destination_path) -> None:
        if original_path in self.failing:
            raise EncodeError(f"ffmpeg error: cannot write {destination_path}")
        self.exports.append((original_path, str(expression), destination_path))


class EventRecorder:
    """Listener that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events = []

    def __call__(self, event) -> None:
        self.events.append(event)

    def states_for(self, job_id: int) -> list[str]:
        return [e.status.state.value for e in self.events if e.job_id == job_id]


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def progress_recorder() -> list:
    return []


@pytest.fixture
def channel(recorder, progress_recorder) -> StatusChannel:
    channel = StatusChannel()
    channel.subscribe(recorder)
    channel.subscribe_progress(progress_recorder.append)
    return channel


@pytest.fixture
def make_pipeline(channel):
    def _make(detector_results, decode_failing=(), export_failing=()):
        decoder = FakeDecoder(failing=decode_failing)
        detector = FakeDetector(detector_results)
        exporter = FakeExporter(failing=export_failing)
        pipeline = CondensePipeline(decoder, ModelSession(detector), exporter, channel)
        return pipeline, decoder, detector, exporter

    return _make

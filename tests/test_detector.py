import logging
import sys
import types

import numpy as np
import pytest

from vadcondense.detector import (
    ModelSession,
    SileroSpeechDetector,
    detect_speech,
    segments_from_timestamps,
)
from vadcondense.exceptions import DetectionError, NoSpeechDetectedError
from vadcondense.models import DetectionConfig, SampleBuffer, SpeechSegment

from conftest import FakeDetector


def _buffer(seconds: float = 2.0, rate: int = 16_000) -> SampleBuffer:
    return SampleBuffer(np.zeros(int(seconds * rate), dtype=np.float32), rate)


def test_timestamps_are_converted_to_seconds():
    segments = segments_from_timestamps([{"start": 8000, "end": 24000}, {"start": 32000, "end": 40000}], 16_000)
    assert segments == [SpeechSegment(0.5, 1.5), SpeechSegment(2.0, 2.5)]


def test_incomplete_and_empty_timestamps_are_skipped():
    segments = segments_from_timestamps([{"start": 100}, {"start": 500, "end": 500}, {"start": 0, "end": 1600}], 16_000)
    assert segments == [SpeechSegment(0.0, 0.1)]


def test_silero_detector_passes_config_to_model():
    calls = {}

    def fake_get_speech_timestamps(wav, model, **kwargs):
        calls["wav_len"] = len(wav)
        calls["model"] = model
        calls.update(kwargs)
        return [{"start": 1600, "end": 16000}]

    detector = SileroSpeechDetector()
    sentinel = object()
    detector._model = sentinel
    detector._get_speech_timestamps = fake_get_speech_timestamps

    config = DetectionConfig(threshold=0.45, min_silence_duration_ms=300, speech_pad_ms=120)
    segments = detector.detect(_buffer(), config)

    assert segments == [SpeechSegment(0.1, 1.0)]
    assert calls["model"] is sentinel
    assert calls["wav_len"] == 32_000
    assert calls["threshold"] == pytest.approx(0.45)
    assert calls["min_silence_duration_ms"] == 300
    assert calls["speech_pad_ms"] == 120
    assert calls["sampling_rate"] == 16_000
    assert calls["return_seconds"] is False


def test_silero_detector_wraps_model_failures():
    def broken(*args, **kwargs):
        raise RuntimeError("session crashed")

    detector = SileroSpeechDetector()
    detector._model = object()
    detector._get_speech_timestamps = broken

    with pytest.raises(DetectionError, match="session crashed"):
        detector.detect(_buffer(), DetectionConfig())


def test_silero_detector_rejects_mismatched_sample_rate():
    detector = SileroSpeechDetector()
    detector._model = object()
    detector._get_speech_timestamps = lambda *a, **k: []
    with pytest.raises(DetectionError):
        detector.detect(_buffer(rate=8_000), DetectionConfig(sample_rate=16_000))


def test_model_load_failure_becomes_detection_error(monkeypatch):
    fake_module = types.ModuleType("silero_vad")

    def load_silero_vad(onnx=False):
        raise OSError("model file missing")

    fake_module.load_silero_vad = load_silero_vad
    fake_module.get_speech_timestamps = lambda *a, **k: []
    monkeypatch.setitem(sys.modules, "silero_vad", fake_module)

    with pytest.raises(DetectionError, match="model file missing"):
        SileroSpeechDetector().load()


def test_model_is_loaded_once(monkeypatch):
    loads = []
    fake_module = types.ModuleType("silero_vad")

    def load_silero_vad(onnx=False):
        loads.append(onnx)
        return object()

    fake_module.load_silero_vad = load_silero_vad
    fake_module.get_speech_timestamps = lambda *a, **k: []
    monkeypatch.setitem(sys.modules, "silero_vad", fake_module)

    detector = SileroSpeechDetector(use_onnx=True)
    detector.load()
    detector.load()
    assert loads == [True]


def test_session_is_released_after_detection():
    session = ModelSession(FakeDetector([[(0.0, 1.0)]]))
    assert detect_speech(session, _buffer(), DetectionConfig(), "a.wav") == [SpeechSegment(0.0, 1.0)]
    assert not session.in_use


def test_session_is_held_while_detecting():
    session = ModelSession(FakeDetector([]))
    with session.acquire() as detector:
        assert session.in_use
        assert detector is session.detector
    assert not session.in_use


def test_session_is_released_when_detection_fails():
    session = ModelSession(FakeDetector([DetectionError("speech detection failed: bad input")]))
    with pytest.raises(DetectionError):
        detect_speech(session, _buffer(), DetectionConfig(), "a.wav")
    assert not session.in_use


def test_empty_detection_is_no_speech():
    session = ModelSession(FakeDetector([[]]))
    with pytest.raises(NoSpeechDetectedError, match="no speech detected in file: quiet.wav"):
        detect_speech(session, _buffer(), DetectionConfig(), "quiet.wav")



def test_silero_progress_is_reported_as_fraction():
    def fake_get_speech_timestamps(wav, model, progress_tracking_callback=None, **kwargs):
        for percent in (25.0, 50.0, 100.0, 100.4):
            progress_tracking_callback(percent)
        return [{"start": 0, "end": 1600}]

    detector = SileroSpeechDetector()
    detector._model = object()
    detector._get_speech_timestamps = fake_get_speech_timestamps
    received = []

    detector.detect(_buffer(), DetectionConfig(), progress_callback=received.append)

    assert received == [0.25, 0.5, 1.0, 1.0]


def test_silero_without_progress_callback_passes_none():
    seen = {}

    def fake_get_speech_timestamps(wav, model, **kwargs):
        seen.update(kwargs)
        return []

    detector = SileroSpeechDetector()
    detector._model = object()
    detector._get_speech_timestamps = fake_get_speech_timestamps
    detector.detect(_buffer(), DetectionConfig())

    assert seen["progress_tracking_callback"] is None


def test_model_chatter_is_silenced_during_detection(caplog):
    caplog.set_level(logging.INFO)

    def chatty(wav, model, **kwargs):
        logging.getLogger("torch.jit").warning("model internals")
        return [{"start": 0, "end": 1600}]

    detector = SileroSpeechDetector()
    detector._model = object()
    detector._get_speech_timestamps = chatty
    detector.detect(_buffer(), DetectionConfig())
    logging.getLogger("torch.jit").warning("after detection")

    messages = [r.getMessage() for r in caplog.records]
    assert "model internals" not in messages
    assert "after detection" in messages

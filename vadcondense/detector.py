"""Speech detection with Silero VAD, adapted to SpeechSegment lists."""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, List, Mapping, Optional

import torch

from .exceptions import DetectionError, NoSpeechDetectedError
from .log_setup import suppress_library_logs
from .models import DetectionConfig, SampleBuffer, SpeechSegment

logger = logging.getLogger(__name__)

# Receives detection progress as a fraction from 0.0 to 1.0.
ProgressCallback = Callable[[float], None]


def segments_from_timestamps(timestamps: Iterable[Mapping[str, Any]], sample_rate: int) -> List[SpeechSegment]:
    """Converts Silero ``{'start': n, 'end': m}`` sample offsets to segments in seconds."""
    segments = []
    for ts in timestamps:
        if 'start' not in ts or 'end' not in ts:
            logger.warning(f"Skipping incomplete timestamp data: {ts}")
            continue
        start = float(ts['start']) / sample_rate
        end = float(ts['end']) / sample_rate
        if end <= start:
            logger.warning(f"Skipping zero-length speech timestamp: {ts}")
            continue
        segments.append(SpeechSegment(start_sec=start, end_sec=end))
    return segments


class SpeechDetector(ABC):
    """Abstract base class for speech detectors."""

    @abstractmethod
    def detect(
        self,
        buffer: SampleBuffer,
        config: DetectionConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[SpeechSegment]:
        """
        Finds speech in the buffer, reporting progress to ``progress_callback`` if given.

        Segments are already padded by ``config.speech_pad_ms`` and gaps shorter
        than ``config.min_silence_duration_ms`` are already merged.

        Raises:
            DetectionError: If the model fails to load or run.
        """
        pass


class SileroSpeechDetector(SpeechDetector):
    """Implements detection using the silero-vad package."""

    def __init__(self, use_onnx: bool = False):
        """
        Args:
            use_onnx: Load the ONNX build of the model instead of the JIT one.
        """
        self.use_onnx = use_onnx
        self._model: Optional[Any] = None
        self._get_speech_timestamps: Optional[Callable[..., Any]] = None

    def load(self) -> None:
        """Loads the model once. Later calls are no-ops."""
        if self._model is not None:
            return
        logger.info(f"Loading Silero VAD model (onnx={self.use_onnx})...")
        try:
            from silero_vad import load_silero_vad, get_speech_timestamps
            self._model = load_silero_vad(onnx=self.use_onnx)
            self._get_speech_timestamps = get_speech_timestamps
        except Exception as e:
            logger.error(f"Failed to load Silero VAD model: {e}", exc_info=True)
            raise DetectionError(f"failed to create speech detector: {e}") from e
        logger.info("Silero VAD model loaded successfully.")

    def detect(
        self,
        buffer: SampleBuffer,
        config: DetectionConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[SpeechSegment]:
        self.load()
        if buffer.sample_rate != config.sample_rate:
            raise DetectionError(
                f"Buffer sample rate {buffer.sample_rate} does not match detector rate {config.sample_rate}"
            )

        wav = torch.from_numpy(buffer.samples.copy())
        tracker = None
        if progress_callback is not None:
            def tracker(percent: float) -> None:
                # silero-vad reports percent
                progress_callback(min(max(percent / 100.0, 0.0), 1.0))
        try:
            with suppress_library_logs():
                timestamps = self._get_speech_timestamps(
                    wav,
                    self._model,
                    threshold=config.threshold,
                    sampling_rate=config.sample_rate,
                    min_silence_duration_ms=config.min_silence_duration_ms,
                    speech_pad_ms=config.speech_pad_ms,
                    return_seconds=False,
                    progress_tracking_callback=tracker,
                )
        except Exception as e:
            logger.error(f"Silero VAD failed: {e}", exc_info=True)
            raise DetectionError(f"speech detection failed: {e}") from e

        return segments_from_timestamps(timestamps, config.sample_rate)


class ModelSession:
    """
    Exclusive handle on a shared detector.

    The detector is stateful and not safe for concurrent use, so a job holds
    the session for exactly one detecting step and releases it afterwards.
    The model stays loaded between jobs.
    """

    def __init__(self, detector: SpeechDetector):
        self.detector = detector
        self._lock = threading.Lock()

    @property
    def in_use(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def acquire(self) -> Iterator[SpeechDetector]:
        self._lock.acquire()
        try:
            yield self.detector
        finally:
            self._lock.release()


def detect_speech(
    session: ModelSession,
    buffer: SampleBuffer,
    config: DetectionConfig,
    input_path: str = "",
    progress_callback: Optional[ProgressCallback] = None,
) -> List[SpeechSegment]:
    """
    Runs the session's detector over one buffer.

    Raises:
        NoSpeechDetectedError: If the detector finds nothing.
        DetectionError: If the detector fails.
    """
    logger.info(f"Detecting speech segments in {input_path or 'buffer'}")
    with session.acquire() as detector:
        segments = list(detector.detect(buffer, config, progress_callback))

    if not segments:
        logger.warning(f"No speech detected in {input_path or 'buffer'}")
        raise NoSpeechDetectedError(f"no speech detected in file: {input_path}")
    total_speech = sum(s.duration for s in segments)
    logger.debug(f"Speech segments detected: {len(segments)}, {total_speech:.2f}s total speech")
    return segments

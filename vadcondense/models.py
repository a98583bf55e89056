"""Data models for VadCondense."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

import numpy as np

# Silero VAD operates on 16 kHz mono audio.
SAMPLE_RATE = 16000


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Decoded mono float32 samples at a fixed sample rate."""
    samples: np.ndarray
    sample_rate: int = SAMPLE_RATE

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        """Length of the buffer in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / float(self.sample_rate)


@dataclass(frozen=True)
class DetectionConfig:
    """Parameters handed to the speech detector for one run."""
    threshold: float = 0.3
    min_silence_duration_ms: int = 200
    speech_pad_ms: int = 200
    sample_rate: int = SAMPLE_RATE


@dataclass(frozen=True)
class SpeechSegment:
    """One contiguous speech interval, in seconds on the original timeline."""
    start_sec: float
    end_sec: float

    @property
    def duration(self) -> float:
        return self.end_sec - self.start_sec


@dataclass(frozen=True)
class FilterExpression:
    """An ffmpeg audio filter that keeps only the speech intervals."""
    text: str
    segment_count: int

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class CondenseOptions:
    """User-facing settings shared by every job in a batch."""
    output_suffix: str = "_condensed"
    output_dir: str = ""
    output_format: str = "wav"
    vad_threshold: float = 0.3
    min_silence_duration_ms: int = 200
    speech_padding_ms: int = 200

    def detection_config(self) -> DetectionConfig:
        return DetectionConfig(
            threshold=float(self.vad_threshold),
            min_silence_duration_ms=int(self.min_silence_duration_ms),
            speech_pad_ms=int(self.speech_padding_ms),
            sample_rate=SAMPLE_RATE,
        )


@dataclass(frozen=True)
class CondenseJob:
    """One file's run through the condense pipeline."""
    job_id: int
    input_path: str
    output_dir: str
    output_suffix: str
    output_format: str
    detection: DetectionConfig


class JobState(Enum):
    PENDING = "pending"
    LOADING = "loading"
    DETECTING = "detecting"
    EXPORTING = "exporting"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_STATES = (JobState.COMPLETED, JobState.ERROR)


@dataclass(frozen=True)
class JobStatus:
    """A job's state, plus the failure message and classification for errors."""
    state: JobState
    message: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @classmethod
    def error(cls, message: str, error_kind: str = "unexpected") -> "JobStatus":
        return cls(JobState.ERROR, message=message, error_kind=error_kind)


@dataclass(frozen=True)
class StatusEvent:
    """A single state transition published on the status channel."""
    job_id: int
    input_path: str
    status: JobStatus


@dataclass(frozen=True)
class ProgressEvent:
    """Detection progress for one job, as a fraction from 0.0 to 1.0."""
    job_id: int
    input_path: str
    fraction: float


@dataclass
class BatchSummary:
    """Final status of every job in a batch. Informational only."""
    statuses: Dict[int, JobStatus] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.statuses)

    @property
    def completed(self) -> int:
        return sum(1 for s in self.statuses.values() if s.state is JobState.COMPLETED)

    @property
    def failed(self) -> int:
        return sum(1 for s in self.statuses.values() if s.state is JobState.ERROR)

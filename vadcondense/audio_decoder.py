"""Decodes audio files to raw mono float32 samples using ffmpeg."""

import ffmpeg
import numpy as np
import os
import logging
from typing import Optional

from .exceptions import DecodeError
from .models import SampleBuffer, SAMPLE_RATE

logger = logging.getLogger(__name__)

class AudioDecoder:
    """Turns any file ffmpeg can read into a SampleBuffer."""

    def __init__(self, ffmpeg_path: Optional[str] = None):
        """
        Initializes the AudioDecoder.

        Args:
            ffmpeg_path: Optional path to the ffmpeg executable.
                         If None, assumes ffmpeg is in the system PATH.
        """
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        logger.debug(f"Decoder using ffmpeg command: {self.ffmpeg_cmd}")

    def decode(self, audio_filepath: str, sample_rate: int = SAMPLE_RATE) -> SampleBuffer:
        """
        Decodes an audio file to mono 32-bit float PCM.

        Args:
            audio_filepath: Path to the input audio (or video) file.
            sample_rate: Target sample rate in Hz.

        Returns:
            A read-only SampleBuffer at the requested rate.

        Raises:
            DecodeError: If the file is missing or ffmpeg fails; the message
                         carries ffmpeg's stderr output.
        """
        logger.debug(f"Decoding audio file {audio_filepath} at {sample_rate} Hz")
        if not os.path.isfile(audio_filepath):
            raise DecodeError(f"Input audio file not found: {audio_filepath}")

        try:
            # f32le -> raw little-endian float32, ac=1 -> mono, written to stdout
            out, _ = (
                ffmpeg
                .input(audio_filepath)
                .output('pipe:', format='f32le', acodec='pcm_f32le', ac=1, ar=sample_rate)
                .run(cmd=self.ffmpeg_cmd, capture_stdout=True, capture_stderr=True)
            )
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else "No stderr output"
            logger.error(f"ffmpeg stderr: {stderr_output}")
            raise DecodeError(f"ffmpeg decode error: {stderr_output}") from e
        except OSError as e:
            logger.error(f"Could not run ffmpeg command '{self.ffmpeg_cmd}': {e}", exc_info=True)
            raise DecodeError(f"Could not run ffmpeg: {e}") from e

        # A trailing partial frame is dropped.
        usable = len(out) - (len(out) % 4)
        samples = np.frombuffer(out[:usable], dtype='<f4')
        buffer = SampleBuffer(samples=samples, sample_rate=sample_rate)
        logger.debug(f"Audio decoded: {len(buffer)} samples, {buffer.duration:.2f}s")
        return buffer

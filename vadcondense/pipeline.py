"""Runs one file through decode, detect, compile and export."""

import logging
import time

from .audio_decoder import AudioDecoder
from .audio_exporter import AudioExporter
from .detector import ModelSession, detect_speech
from .events import StatusChannel
from .exceptions import VadCondenseError
from .filter_compiler import compile_filter
from .models import CondenseJob, JobState, JobStatus, ProgressEvent, StatusEvent
from .output_paths import check_not_input, resolve_output_path
from .segments import covered_duration, normalize_segments

logger = logging.getLogger(__name__)


class CondensePipeline:
    """
    Moves a single job through ``loading -> detecting -> exporting`` and on to
    ``completed`` or ``error``.

    Every transition is published on the channel before the next stage
    starts. Nothing is retried: the first failure ends the job.
    """

    def __init__(
        self,
        decoder: AudioDecoder,
        session: ModelSession,
        exporter: AudioExporter,
        channel: StatusChannel,
    ):
        """
        Args:
            decoder: Turns input files into sample buffers.
            session: Shared detector handle, held only while detecting.
            exporter: Writes the output from the original file.
            channel: Receives a StatusEvent for every transition.
        """
        self.decoder = decoder
        self.session = session
        self.exporter = exporter
        self.channel = channel

    def _emit(self, job: CondenseJob, status: JobStatus) -> JobStatus:
        self.channel.publish(StatusEvent(job_id=job.job_id, input_path=job.input_path, status=status))
        return status

    def _progress(self, job: CondenseJob, fraction: float) -> None:
        self.channel.publish_progress(ProgressEvent(job_id=job.job_id, input_path=job.input_path, fraction=fraction))

    def run(self, job: CondenseJob) -> JobStatus:
        """
        Condenses one file. Never raises for job-level failures.

        Returns:
            The terminal JobStatus, also the last event published for the job.
        """
        start_time = time.time()
        logger.info(f"--- Condensing: {job.input_path} ---")
        try:
            self._emit(job, JobStatus(JobState.LOADING))
            buffer = self.decoder.decode(job.input_path, job.detection.sample_rate)

            self._emit(job, JobStatus(JobState.DETECTING))
            raw_segments = detect_speech(
                self.session, buffer, job.detection, job.input_path,
                progress_callback=lambda fraction: self._progress(job, fraction),
            )
            segments = normalize_segments(raw_segments, total_duration=buffer.duration)

            self._emit(job, JobStatus(JobState.EXPORTING))
            expression = compile_filter(segments)
            output_path = resolve_output_path(job.input_path, job.output_dir, job.output_suffix, job.output_format)
            check_not_input(job.input_path, output_path)
            self.exporter.export(job.input_path, expression, output_path)

        except VadCondenseError as e:
            logger.error(f"Condense failed for {job.input_path}: {e}", exc_info=False)
            return self._emit(job, JobStatus.error(str(e), e.kind))
        except Exception as e:
            logger.critical(f"An unexpected error occurred while condensing {job.input_path}: {e}", exc_info=True)
            return self._emit(job, JobStatus.error(f"An unexpected error occurred: {e}", "unexpected"))

        kept = covered_duration(segments)
        logger.info(
            f"Kept {kept:.2f}s of {buffer.duration:.2f}s in {len(segments)} segments -> {output_path} "
            f"({time.time() - start_time:.2f}s)"
        )
        return self._emit(job, JobStatus(JobState.COMPLETED))

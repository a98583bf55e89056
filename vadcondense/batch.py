"""Processes a list of files through the condense pipeline, one at a time."""

import logging
import os
import time
from typing import Iterable, List, Sequence

from tqdm import tqdm

from .events import StatusChannel
from .models import BatchSummary, CondenseJob, CondenseOptions, JobState, JobStatus, StatusEvent
from .pipeline import CondensePipeline

logger = logging.getLogger(__name__)


def build_jobs(file_paths: Iterable[str], options: CondenseOptions) -> List[CondenseJob]:
    """Creates one job per path, numbered from 1 in the given order."""
    detection = options.detection_config()
    return [
        CondenseJob(
            job_id=index,
            input_path=path,
            output_dir=options.output_dir,
            output_suffix=options.output_suffix,
            output_format=options.output_format,
            detection=detection,
        )
        for index, path in enumerate(file_paths, start=1)
    ]


class BatchOrchestrator:
    """
    Runs jobs strictly in order. A job reaches a terminal state before the
    next one is announced, and a failed job never stops the batch.
    """

    def __init__(self, pipeline: CondensePipeline, channel: StatusChannel, show_progress: bool = False):
        self.pipeline = pipeline
        self.channel = channel
        self.show_progress = show_progress

    def run(self, jobs: Sequence[CondenseJob]) -> BatchSummary:
        """
        Processes every job and returns their final statuses.

        The summary is informational; callers learn about individual
        failures from the status events.
        """
        summary = BatchSummary()
        total_files = len(jobs)
        batch_start_time = time.time()
        logger.info(f"Starting batch condense for {total_files} files")

        with tqdm(total=total_files, unit="file", desc="Starting Batch", disable=not self.show_progress) as pbar:
            for job in jobs:
                pbar.set_description(f"Processing: {os.path.basename(job.input_path)[:30]}")
                logger.debug(f"Processing file {job.job_id}/{total_files}: {job.input_path}")
                try:
                    self.channel.publish(
                        StatusEvent(job_id=job.job_id, input_path=job.input_path, status=JobStatus(JobState.PENDING))
                    )
                    summary.statuses[job.job_id] = self.pipeline.run(job)
                finally:
                    pbar.update(1)

        logger.info(f"Batch condense complete in {time.time() - batch_start_time:.2f}s")
        logger.info(f"Completed: {summary.completed}/{total_files}, failed: {summary.failed}/{total_files}")
        return summary

"""Command-Line Interface handler for VadCondense."""

import argparse
import logging
import sys
from typing import List, Optional

from tqdm import tqdm

from .audio_decoder import AudioDecoder
from .audio_exporter import AudioExporter
from .batch import BatchOrchestrator, build_jobs
from .config_loader import ConfigLoader, DEFAULT_CONFIG, options_from_config
from .detector import ModelSession, SileroSpeechDetector
from .events import StatusChannel
from .exceptions import ConfigurationError, VadCondenseError
from .log_setup import setup_logging
from .models import JobState, ProgressEvent, StatusEvent
from .pipeline import CondensePipeline
from .utils import expand_inputs

logger = logging.getLogger(__name__) # Get logger for this module

class StatusPrinter:
    """Prints each job's transitions without breaking the progress bar."""

    def __init__(self, total: int):
        self.total = total

    def __call__(self, event: StatusEvent) -> None:
        line = f"({event.job_id}/{self.total}) {event.input_path}: {event.status.state.value}"
        if event.status.state is JobState.ERROR:
            line += f" [{event.status.error_kind}] {event.status.message}"
        tqdm.write(line)


class DetectionProgressBar:
    """Shows a "voice detection" bar for the file currently being analysed."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._bar = None
        self._job_id = None

    def __call__(self, event: ProgressEvent) -> None:
        if not self.enabled:
            return
        if event.job_id != self._job_id:
            self.close()
            self._job_id = event.job_id
            self._bar = tqdm(total=100, desc="voice detection", unit="%", leave=False)
        if self._bar is None:
            return
        self._bar.n = int(round(event.fraction * 100))
        self._bar.refresh()
        if event.fraction >= 1.0:
            self.close()

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


class CLIHandler:
    """Parses arguments and runs a batch of condense jobs."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            prog="vadcondense",
            description="VadCondense: remove silence from audio files, keeping only detected speech.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter # Show defaults in help
        )
        parser.add_argument(
            "inputs",
            nargs="*",
            help="Audio files or directories of audio files to condense."
        )
        # Detection and output settings default to None so the config file can supply them.
        parser.add_argument("-o", "--output-dir", default=None,
                            help="Output directory. Empty means next to each input file.")
        parser.add_argument("-s", "--suffix", dest="output_suffix", default=None,
                            help=f"Output file suffix (default from config: {DEFAULT_CONFIG['output_suffix']}).")
        parser.add_argument("-f", "--format", dest="output_format", default=None,
                            help=f"Output file format (default from config: {DEFAULT_CONFIG['output_format']}).")
        parser.add_argument("-t", "--threshold", dest="vad_threshold", type=float, default=None,
                            help=f"Speech probability threshold, 0-1 (default from config: {DEFAULT_CONFIG['vad_threshold']}).")
        parser.add_argument("-m", "--min-silence-duration", dest="min_silence_duration_ms", type=int, default=None,
                            help=f"Minimum silence duration in ms (default from config: {DEFAULT_CONFIG['min_silence_duration_ms']}).")
        parser.add_argument("-p", "--pad-ms", dest="speech_padding_ms", type=int, default=None,
                            help=f"Padding around speech in ms (default from config: {DEFAULT_CONFIG['speech_padding_ms']}).")
        parser.add_argument("-c", "--config", default=None,
                            help="Path to a YAML configuration file.")
        parser.add_argument("--ffmpeg-path", default=None,
                            help="Path to the ffmpeg executable (default: ffmpeg on PATH).")
        parser.add_argument("--onnx", action="store_true",
                            help="Use the ONNX build of the Silero VAD model.")
        parser.add_argument("--log-level", default="WARNING",
                            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                            help="Set the logging level for console and file output.")
        parser.add_argument("-v", "--verbose", action="store_true",
                            help="Enable verbose logging (same as --log-level DEBUG).")
        parser.add_argument("--no-progress", action="store_true",
                            help="Disable the batch and voice detection progress bars.")
        return parser

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Parses arguments, sets up logging, loads config, and runs the batch. Returns the exit code."""
        args = self.parser.parse_args(argv)

        log_level_name = "DEBUG" if args.verbose else args.log_level.upper()
        log_level = getattr(logging, log_level_name, logging.WARNING)
        setup_logging(log_level=log_level, log_dir=None)

        if not args.inputs:
            self.parser.print_usage(sys.stderr)
            sys.stderr.write("vadcondense: error: no input files given\n")
            return 2

        # --- Load Configuration ---
        config = dict(DEFAULT_CONFIG)
        if args.config:
            try:
                config = ConfigLoader().load_config(args.config)
            except (ConfigurationError, FileNotFoundError) as e:
                logger.critical(f"Failed to load configuration from {args.config}: {e}")
                return 1

        setup_logging(log_level=log_level, log_dir=config.get('log_dir'), log_file=config.get('log_file') or "vadcondense.log")

        try:
            options = options_from_config(config, overrides={
                'output_dir': args.output_dir,
                'output_suffix': args.output_suffix,
                'output_format': args.output_format,
                'vad_threshold': args.vad_threshold,
                'min_silence_duration_ms': args.min_silence_duration_ms,
                'speech_padding_ms': args.speech_padding_ms,
            })
            file_paths = expand_inputs(args.inputs)
        except ConfigurationError as e:
            logger.critical(f"Invalid settings: {e}")
            return 1
        except (FileNotFoundError, ValueError) as e:
            logger.critical(f"Input error: {e}")
            return 1

        if not file_paths:
            logger.warning("No audio files found in the given inputs.")
            return 2

        ffmpeg_path = args.ffmpeg_path or config.get('ffmpeg_path')
        channel = StatusChannel()
        channel.subscribe(StatusPrinter(len(file_paths)))
        progress_bar = channel.subscribe_progress(DetectionProgressBar(enabled=not args.no_progress))
        pipeline = CondensePipeline(
            decoder=AudioDecoder(ffmpeg_path=ffmpeg_path),
            session=ModelSession(SileroSpeechDetector(use_onnx=args.onnx or bool(config.get('use_onnx')))),
            exporter=AudioExporter(ffmpeg_path=ffmpeg_path),
            channel=channel,
        )
        orchestrator = BatchOrchestrator(pipeline, channel, show_progress=not args.no_progress)

        try:
            summary = orchestrator.run(build_jobs(file_paths, options))
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            return 1
        finally:
            progress_bar.close()

        print(f"Done: {summary.completed}/{summary.total} condensed, {summary.failed} failed.")
        return 1 if summary.failed else 0


def main(argv: Optional[List[str]] = None) -> None:
    try:
        sys.exit(CLIHandler().run(argv))
    except VadCondenseError as e:
        logger.critical(f"A VadCondense error occurred: {e}")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
        sys.exit(2)

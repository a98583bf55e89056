"""Writes the condensed output from the original file using ffmpeg."""

import ffmpeg
import os
import logging
import tempfile
from typing import Optional

from .exceptions import EncodeError, FileSystemError
from .models import FilterExpression
from .output_paths import check_not_input
from .utils import ensure_dir_exists

logger = logging.getLogger(__name__)

class AudioExporter:
    """Applies a select filter to the original file and writes the result."""

    def __init__(self, ffmpeg_path: Optional[str] = None):
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        logger.debug(f"Exporter using ffmpeg command: {self.ffmpeg_cmd}")

    def export(self, original_path: str, expression: FilterExpression, destination_path: str) -> None:
        """
        Runs ``ffmpeg -y -i original -vn -af <expression> <temporary file>``
        and moves the result onto ``destination_path`` once ffmpeg succeeds.

        The container and codec follow from the destination's extension. The
        original file is read directly, never the decoded intermediate. A
        file already at the destination is only replaced by a finished output.

        Raises:
            EncodeError: If ffmpeg fails or the result cannot be moved into
                         place. Only the temporary file is removed.
            PathError: If the destination is the original file.
        """
        check_not_input(original_path, destination_path)
        output_dir = os.path.dirname(destination_path) or "."
        try:
            ensure_dir_exists(output_dir)
        except FileSystemError as e:
            raise EncodeError(str(e)) from e

        stem, extension = os.path.splitext(os.path.basename(destination_path))
        try:
            fd, temp_path = tempfile.mkstemp(prefix=f".{stem}.", suffix=extension, dir=output_dir)
            os.close(fd)
        except OSError as e:
            raise EncodeError(f"Could not create a temporary output file in {output_dir}: {e}") from e

        logger.debug(f"Writing {temp_path} for {destination_path} with filter: {expression}")
        try:
            (
                ffmpeg
                .input(original_path)
                .output(temp_path, vn=None, af=str(expression))
                .overwrite_output()
                .run(cmd=self.ffmpeg_cmd, capture_stdout=True, capture_stderr=True)
            )
            os.replace(temp_path, destination_path)
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else "No stderr output"
            logger.error(f"ffmpeg stderr: {stderr_output}")
            self._remove_temp(temp_path)
            raise EncodeError(f"ffmpeg error: {stderr_output}") from e
        except OSError as e:
            logger.error(f"Export of {original_path} failed: {e}", exc_info=True)
            self._remove_temp(temp_path)
            raise EncodeError(f"Could not run ffmpeg or move its output into place: {e}") from e

        logger.info(f"Wrote condensed file: {destination_path}")

    def _remove_temp(self, path: str) -> None:
        if os.path.exists(path):
            try:
                os.remove(path)
            except OSError:
                logger.warning(f"Could not clean up temporary output file: {path}")

"""Utility functions for VadCondense."""

import os
import logging
from typing import Iterable, List

from .exceptions import FileSystemError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".wav", ".mp3", ".flac", ".m4a", ".ogg", ".opus", ".aac", ".wma", ".aiff")

def ensure_dir_exists(dir_path: str) -> None:
    """
    Ensures that a directory exists. Creates it if it doesn't.

    Args:
        dir_path: The path to the directory.

    Raises:
        FileSystemError: If the directory cannot be created due to permissions
                         or if the path exists but is not a directory.
    """
    if not dir_path:
        raise ValueError("Directory path cannot be empty.")
    try:
        if not os.path.exists(dir_path):
            os.makedirs(dir_path)
            logger.info(f"Created directory: {dir_path}")
        elif not os.path.isdir(dir_path):
            raise FileSystemError(f"Path exists but is not a directory: {dir_path}")
    except OSError as e:
        logger.error(f"Error creating or accessing directory {dir_path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not create or access directory {dir_path}: {e}") from e

def find_audio_files(input_dir: str) -> List[str]:
    """
    Finds all supported audio files directly inside a directory.

    Args:
        input_dir: The directory to scan (not recursive).

    Returns:
        File paths sorted by file name.

    Raises:
        FileNotFoundError: If the input directory doesn't exist.
        ValueError: If the input path is not a directory.
    """
    if not os.path.exists(input_dir):
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    if not os.path.isdir(input_dir):
        raise ValueError(f"Input path is not a directory: {input_dir}")

    found = []
    for filename in sorted(os.listdir(input_dir)):
        if filename.lower().endswith(SUPPORTED_EXTENSIONS):
            filepath = os.path.join(input_dir, filename)
            if os.path.isfile(filepath):
                found.append(filepath)
    logger.info(f"Found {len(found)} audio files in {input_dir}")
    return found

def expand_inputs(inputs: Iterable[str]) -> List[str]:
    """Expands directories into their audio files, keeping the given order otherwise."""
    paths = []
    for item in inputs:
        if os.path.isdir(item):
            paths.extend(find_audio_files(item))
        else:
            paths.append(item)
    return paths

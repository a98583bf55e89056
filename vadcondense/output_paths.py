"""Resolves where a condensed file is written."""

import os

from .exceptions import PathError


def resolve_output_path(input_path: str, output_dir: str, output_suffix: str, output_format: str) -> str:
    """
    Builds ``{output_dir}/{base name without extension}{suffix}.{format}``.

    An empty ``output_dir`` means "next to the input file". Nothing is created
    on disk and existing files are not checked.

    Raises:
        PathError: If the input path has no file name or the format is empty.
    """
    base_name = os.path.basename(input_path)
    stem = os.path.splitext(base_name)[0]
    if not stem:
        raise PathError(f"Cannot derive an output name from input path: {input_path!r}")
    if not output_format:
        raise PathError("Output format cannot be empty.")

    if not output_dir:
        output_dir = os.path.dirname(input_path)
    return os.path.join(output_dir, f"{stem}{output_suffix}.{output_format}")


def check_not_input(input_path: str, output_path: str) -> None:
    """
    Refuses an output path that points at the input file itself.

    Happens with an empty suffix and the input's own format and directory.

    Raises:
        PathError: If both paths resolve to the same file.
    """
    if os.path.realpath(input_path) == os.path.realpath(output_path):
        raise PathError(f"Output path would overwrite the input file: {output_path}")

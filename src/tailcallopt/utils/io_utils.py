"""
File I/O for the command line: source files in, optimized source out,
always in DEFAULT_FILE_ENCODING.
"""

from pathlib import Path
from typing import Union

from .config import DEFAULT_FILE_ENCODING


def read_source_file(path: Union[Path, str]) -> str:
    """
    Read a JavaScript source file.

    Raises FileNotFoundError / IsADirectoryError with a short message naming
    the path, so callers can show str(e) as is.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"file not found: {path}")
    if not path.is_file():
        raise IsADirectoryError(f"not a file: {path}")
    return path.read_text(encoding=DEFAULT_FILE_ENCODING)


def write_source_file(path: Union[Path, str], text: str) -> None:
    """Write optimized source, ending it with exactly one newline."""
    Path(path).write_text(text.rstrip("\n") + "\n", encoding=DEFAULT_FILE_ENCODING)

from __future__ import annotations
from pathlib import Path
from typing import Tuple, Union

from .errors import CorpusError


def load_text(path: Union[str, Path], encoding: str = "utf-8",
              normalize_whitespace: bool = False) -> str:
    """Read a training text file.

    NUL bytes are dropped; ``normalize_whitespace`` collapses every whitespace
    run to one space. An empty result is an error rather than a silent no-op.
    """
    path = Path(path)
    if not path.is_file():
        raise CorpusError(f"corpus file not found: {path}")
    try:
        text = path.read_text(encoding=encoding)
    except UnicodeDecodeError as e:
        raise CorpusError(f"corpus file {path} is not valid {encoding}: {e}") from e
    text = text.replace('\0', '')
    if normalize_whitespace:
        text = ' '.join(text.split())
    if not text:
        raise CorpusError(f"corpus file is empty: {path}")
    return text


def split_text(text: str, val_fraction: float) -> Tuple[str, str]:
    """Contiguous head/tail split; the tail is the validation text."""
    if not 0.0 <= val_fraction < 1.0:
        raise ValueError(f"val_fraction must be in [0, 1), got {val_fraction}")
    cut = len(text) - int(len(text) * val_fraction)
    return text[:cut], text[cut:]

"""Small file helpers shared by the result parsers and the command layer."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from crystalflow.errors import ParseError

__all__ = ["read_text_file", "find_files_with_suffix"]


def read_text_file(path) -> str:
    """Return the full text of ``path``; any OS failure becomes ``ParseError``."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as fh:
            return fh.read()
    except OSError as exc:
        raise ParseError(path, exc.strerror or str(exc)) from exc


def find_files_with_suffix(directory, suffixes: Iterable[str]) -> dict[str, list[Path]]:
    """Map each suffix to the sorted files in ``directory`` whose names end with it."""
    directory = Path(directory)
    found: dict[str, list[Path]] = {s: [] for s in suffixes}
    if not directory.is_dir():
        logging.warning("[files] directory not found: %s", directory)
        return found
    for entry in sorted(directory.iterdir()):
        if not entry.is_file():
            continue
        for suffix in found:
            if entry.name.endswith(suffix):
                found[suffix].append(entry)
    return found

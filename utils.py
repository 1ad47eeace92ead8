from dataclasses import dataclass
import logging
import re
import unicodedata
from pathlib import Path
from typing import Iterator, List, Tuple


COLORS = {
    "DEBUG": "\033[36m",  # cyan
    "INFO": "\033[32m",  # green
    "WARNING": "\033[1;33m",  # bold yellow
    "ERROR": "\033[1;31m",  # bold red
    "CRITICAL": "\033[1;31m",  # bold red
}
COLOR_RESET = "\033[0m"

# OS artifacts that show up in icon folders.
ARTIFACT_FILE_NAMES = frozenset({".DS_Store", "Thumbs.db"})

_NUMBER_RE = re.compile(r"(\d+)")
# Collation order of punctuation and symbols, ahead of digits and letters.
PUNCTUATION_ORDER = "_-,;:!?.'\"()[]{}@*/\\&#%`^+<=>|~$"


class ColorFormatter(logging.Formatter):
    def format(self, record):
        color = COLORS.get(record.levelname, "")
        record.levelname = f"{color}{record.levelname}{COLOR_RESET}"
        return super().format(record)


def setup_logging():
    handler = logging.StreamHandler()
    handler.setFormatter(ColorFormatter("%(levelname)s %(message)s"))
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.INFO)


class PipelineError(Exception):
    """Base class for errors raised by the icon build."""


class MetadataError(PipelineError):
    pass


class SpriteError(PipelineError):
    pass


class FontGenerationError(PipelineError):
    pass


def _char_key(c: str) -> Tuple[int, int, str]:
    if c.isalnum():
        return (2, 0, c)
    if c.isspace():
        return (0, -1, "")
    i = PUNCTUATION_ORDER.find(c)
    return (0, i if i >= 0 else len(PUNCTUATION_ORDER) + ord(c), "")


def natural_key(name: str) -> Tuple:
    """Sort key comparing names the way a human would.

    Case and accents are ignored and runs of digits compare by value, so
    "icon2" sorts before "icon10". Punctuation sorts before digits and digits
    before letters. The raw name is the final tie-breaker.
    """
    folded = unicodedata.normalize("NFKD", name)
    folded = "".join(c for c in folded if not unicodedata.combining(c)).casefold()
    parts = []
    for part in _NUMBER_RE.split(folded):
        if part.isdecimal():
            parts.append((1, int(part), ""))
        else:
            parts.extend(_char_key(c) for c in part)
    return (tuple(parts), name)


@dataclass(frozen=True)
class IconFile:
    path: Path
    base_name: str
    file_name: str

    def __post_init__(self):
        if not self.base_name:
            raise ValueError(f"Icon base name must not be empty (path={self.path})")


@dataclass(frozen=True)
class DirContents:
    # Absolute file paths.
    file_paths: Tuple[Path, ...]
    # File names without the extension.
    base_file_names: Tuple[str, ...]
    # File names including the extension (if any).
    file_names: Tuple[str, ...]

    def __len__(self):
        return len(self.file_paths)

    def __iter__(self) -> Iterator[IconFile]:
        for path, base, name in zip(
            self.file_paths, self.base_file_names, self.file_names
        ):
            yield IconFile(path, base, name)


def get_dir_contents(dir_path: Path) -> DirContents:
    """List a flat directory of icons, sorted with natural_key.

    Sub-directories are not supported and are skipped. OSError propagates
    if the directory is missing or unreadable.
    """
    dir_path = Path(dir_path).resolve()
    entries: List[IconFile] = []

    for entry in dir_path.iterdir():
        if entry.name in ARTIFACT_FILE_NAMES:
            continue
        if entry.is_dir():
            logging.debug(f"Skipped sub-directory {entry.name}")
            continue
        entries.append(IconFile(entry, entry.stem, entry.name))

    if not entries:
        logging.warning(f"No files were found in {dir_path}.")

    entries.sort(key=lambda e: (natural_key(e.base_name), natural_key(e.file_name)))

    return DirContents(
        file_paths=tuple(e.path for e in entries),
        base_file_names=tuple(e.base_name for e in entries),
        file_names=tuple(e.file_name for e in entries),
    )

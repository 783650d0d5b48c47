"""Theme file collector."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union

from tagscan.utils.logger import get_logger

logger = get_logger(__name__)

#: Template files where tracking code is usually pasted by hand.
DEFAULT_THEME_FILES: tuple[str, ...] = (
    "header.php",
    "footer.php",
    "functions.php",
    "index.php",
)


def collect_theme_files(
    theme_dir: Union[str, Path],
    filenames: Iterable[str] = DEFAULT_THEME_FILES,
) -> list[tuple[str, str]]:
    """Read each theme file that exists and is readable.

    Returns ``(full_path, text)`` pairs. Text is decoded as UTF-8 with
    undecodable bytes replaced. Missing or unreadable files are skipped.
    """
    root = Path(theme_dir).expanduser()
    pairs: list[tuple[str, str]] = []
    for filename in filenames:
        path = root / filename
        if not path.is_file():
            logger.debug("Theme file not found", path=str(path))
            continue
        try:
            text = path.read_bytes().decode("utf-8", errors="replace")
        except OSError as exc:
            logger.warning("Theme file unreadable, skipped", path=str(path), error=str(exc))
            continue
        pairs.append((str(path), text))
    return pairs

"""Project tree scanning for quickstatic.

Key classes:
- FileScanner: Walks the project tree and discovers content sources.
- ContentCopier: Mirrors every non-content file into the output tree.

Both share one walk: paths matching an ignore glob are skipped (a directory is
not descended into), and the output, VCS, dependency and tool directories are
excluded by name. Entries are visited in sorted order so discovery order is
the same on every run.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Iterator
from pathlib import Path

from .config import EXCLUDED_DIR_NAMES, Config
from .errors import ScanError, WriteError
from .utils import glob_match, is_content, relative_posix

logger = logging.getLogger(__name__)


class FileScanner:
    """Walks a project tree honoring ignore globs and excluded directories.

    Attributes:
        project_root: Directory the walk starts from.
        ignore: Glob patterns matched against project-relative POSIX paths.
        excluded_dir_names: Directory names skipped wherever they appear.
        skip_hidden_dirs: Whether directories starting with "." are skipped.
    """

    def __init__(
        self,
        project_root: Path,
        ignore: Iterable[str] = (),
        excluded_dir_names: Iterable[str] = EXCLUDED_DIR_NAMES,
        skip_hidden_dirs: bool = False,
    ):
        self.project_root = project_root
        self.ignore = tuple(ignore)
        self.excluded_dir_names = frozenset(excluded_dir_names)
        self.skip_hidden_dirs = skip_hidden_dirs

    @classmethod
    def from_config(cls, project_root: Path, config: Config, **kwargs) -> FileScanner:
        return cls(project_root, ignore=config.ignore, **kwargs)

    def is_ignored(self, path: Path) -> bool:
        rel = relative_posix(path, self.project_root)
        return any(glob_match(pattern, rel) for pattern in self.ignore)

    def walk(self) -> Iterator[Path]:
        """Yield every file that survives the ignore and exclusion rules."""
        yield from self._walk_dir(self.project_root)

    def _walk_dir(self, directory: Path) -> Iterator[Path]:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            error = ScanError(directory, f"unable to read directory: {exc}", exc)
            logger.warning("Skipping %s", error)
            return
        for path in entries:
            if self.is_ignored(path):
                logger.debug("Ignoring %s", path)
                continue
            try:
                is_dir = path.is_dir()
            except OSError as exc:
                logger.warning("Skipping %s", ScanError(path, str(exc), exc))
                continue
            if is_dir:
                if path.name in self.excluded_dir_names:
                    continue
                if self.skip_hidden_dirs and path.name.startswith("."):
                    continue
                yield from self._walk_dir(path)
            else:
                yield path

    def content_files(self) -> list[Path]:
        """Discover Markdown and template sources in walk order."""
        return [path for path in self.walk() if is_content(path)]


class ContentCopier:
    """Copies non-content files byte-for-byte into the output tree.

    Content sources are never copied; they are always rendered instead.

    Attributes:
        scanner: Scanner providing the files to consider.
        output_root: Root of the mirrored output tree.
    """

    def __init__(self, scanner: FileScanner, output_root: Path):
        self.scanner = scanner
        self.output_root = output_root

    def run(self) -> list[Path]:
        """Copy every eligible file and return the written destinations.

        Raises:
            WriteError: If a directory cannot be created or a file copied.
        """
        written: list[Path] = []
        for source in self.scanner.walk():
            if is_content(source):
                continue
            dest = self.output_root / source.relative_to(self.scanner.project_root)
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, dest)
            except OSError as exc:
                raise WriteError(source, f"unable to copy to {dest}: {exc}", exc) from exc
            written.append(dest)
        logger.debug("Copied %d static files", len(written))
        return written


def is_inside(path: Path, directory: Path) -> bool:
    """Check whether ``path`` lies inside ``directory`` (or is it)."""
    try:
        Path(path).resolve().relative_to(Path(directory).resolve())
        return True
    except ValueError:
        return False

"""Search index generation for quickstatic.

After a successful build the output tree is handed to Pagefind, which writes
its index next to the pages. Indexing is best effort: a missing executable or
a failed run is logged and never fails the build.

Key class:
- SearchIndexer: Runs the indexer over the output directory.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_GLOB = "**/*.html"


def find_executable(name: str, project_root: Path | None = None) -> str | None:
    """Find an executable in PATH or the project's node_modules/.bin.

    Args:
        name: Name of the executable, e.g. 'pagefind'.
        project_root: Optional project root holding a local install.

    Returns:
        Full path to the executable if found, None otherwise.
    """
    found = shutil.which(name)
    if found:
        return found
    if project_root is not None:
        local = project_root / "node_modules" / ".bin" / name
        if local.exists():
            return str(local)
    return None


class SearchIndexer:
    """Builds a Pagefind search index for a rendered site.

    Attributes:
        project_root: Project root, searched for a local install.
        executable: Name of the indexer executable.
        glob: Which output files get indexed.
    """

    def __init__(
        self,
        project_root: Path,
        executable: str = "pagefind",
        glob: str = DEFAULT_GLOB,
    ):
        self.project_root = project_root
        self.executable = executable
        self.glob = glob

    def run(self, output_dir: Path) -> bool:
        """Index ``output_dir``.

        Returns:
            True if the index was written, False if indexing was skipped or
            failed.
        """
        binary = find_executable(self.executable, self.project_root)
        if binary is None:
            logger.info("%s not found; skipping search index", self.executable)
            return False
        cmd = [binary, "--site", str(output_dir), "--glob", self.glob]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as exc:
            logger.warning("Search indexing failed to start: %s", exc)
            return False
        if result.returncode != 0:
            logger.warning("Search indexing failed: %s", result.stderr.strip())
            return False
        logger.debug("Search index written to %s", output_dir)
        return True

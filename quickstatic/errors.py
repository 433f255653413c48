"""Error taxonomy for quickstatic builds.

Every failure raised by the build pipeline is a BuildError carrying the file it
concerns. The subclasses let callers tell the stages apart; none of them allow a
partial build, except ScanError, which is only ever logged.
"""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class ConfigError(BuildError):
    """The project config is missing, unparsable or wrongly typed."""


class ScanError(BuildError):
    """A directory entry could not be read while walking the project."""


class FrontmatterError(BuildError):
    """A content file starts with a metadata block that is not valid YAML."""


class TemplateError(BuildError):
    """A template failed to compile or render.

    Attributes:
        snippet: The source lines around the failure, when known.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
        snippet: str = "",
    ):
        super().__init__(source_path, message, original_error)
        self.snippet = snippet


class MarkdownError(BuildError):
    """The markdown parser could not consume the whole document."""


class LayoutResolutionError(BuildError):
    """No layout could be chosen for a document."""


class WriteError(BuildError):
    """Copying, creating or writing an output file failed."""


class FilterError(Exception):
    """A template filter rejected its input or arguments.

    Raised while a template renders; the builder reports it as a TemplateError
    for the document being rendered.
    """

    def __init__(self, name: str, message: str):
        self.name = name
        self.message = message
        super().__init__(f"{name}: {message}")


def invalid_input(name: str, cause: str) -> FilterError:
    """Build the error a filter raises for input it cannot handle."""
    return FilterError(name, f"invalid input ({cause})")

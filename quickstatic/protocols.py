"""Protocol definitions for quickstatic.

Filters are the extension point of the template engine: each is an object with
a single ``evaluate`` method, registered under a name in a FilterRegistry.
New operations extend the registry without touching the engine.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Filter(Protocol):
    """Protocol for named template operations.

    Implementations receive the piped-in value, the positional arguments
    given in the template, and the active render context (a Jinja context
    exposing ``config``, ``this`` and ``file_list``).
    """

    name: str

    @abstractmethod
    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> Any:
        """Apply the operation.

        Args:
            input: Value on the left of the ``|``.
            arguments: Arguments passed to the filter, already evaluated.
            context: The active render context.

        Returns:
            The filter result.

        Raises:
            FilterError: If the input or arguments are unusable.
        """
        ...

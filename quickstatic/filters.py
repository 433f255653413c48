"""Template filters for quickstatic.

Every filter implements the Filter protocol (``evaluate(input, arguments,
context)``) and lives in a FilterRegistry, which installs them into the Jinja
environment. Filters follow Liquid's value model: ``None`` and Jinja's
``Undefined`` are both nil, mappings are objects, lists and tuples are arrays,
and strings, numbers, booleans and dates are scalars.

Key classes:
- FilterRegistry: Maps filter names to filter objects.
- SortFilter, WhereGlobFilter, TernaryFilter, StartsWithFilter, EqualsFilter,
  MarkdownifyFilter: Site-specific operations.
- PluralizeFilter, SlugifyFilter, PushFilter, PopFilter, ShiftFilter,
  UnshiftFilter, ArrayToSentenceFilter: Conventional string/array utilities.
"""

from __future__ import annotations

import datetime
import functools
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, Undefined, pass_context

from .errors import FilterError, invalid_input
from .utils import glob_match

if TYPE_CHECKING:
    from .protocols import Filter
    from .renderers import MarkdownProcessor


def is_nil(value: Any) -> bool:
    return value is None or isinstance(value, Undefined)


def is_object(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_array(value: Any) -> bool:
    """Check for an array: any iterable that is neither a string nor an object.

    This covers the generators returned by Jinja's ``map``, ``select`` and
    ``selectattr``.
    """
    if is_nil(value) or isinstance(value, (str, bytes, Mapping)):
        return False
    return isinstance(value, Iterable)


def is_scalar(value: Any) -> bool:
    return isinstance(value, (str, bool, int, float, datetime.date))


def to_str(value: Any) -> str:
    """Render a scalar the way Liquid prints it."""
    if is_nil(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def as_sequence(value: Any) -> list[Any]:
    """Coerce a value to a list: nil is empty, a non-array is wrapped."""
    if is_nil(value):
        return []
    if is_array(value):
        return list(value)
    return [value]


def get_property(value: Any, path: str) -> Any:
    """Follow a dot-separated property path through nested objects.

    Returns None as soon as a segment is missing or the current value is
    not an object.
    """
    current = value
    for key in path.split("."):
        if not is_object(current) or key not in current:
            return None
        current = current[key]
    return current


def _arguments(
    name: str, arguments: Sequence[Any], minimum: int, maximum: int
) -> list[Any]:
    if not minimum <= len(arguments) <= maximum:
        if minimum == maximum:
            expected = str(minimum)
        else:
            expected = f"{minimum} to {maximum}"
        raise FilterError(name, f"expects {expected} arguments, got {len(arguments)}")
    return list(arguments)


def _nil_safe_compare(a: Any, b: Any) -> int:
    """Order two values, with nil greater than anything else.

    Values that cannot be ordered against each other compare equal.
    """
    a_nil, b_nil = is_nil(a), is_nil(b)
    if a_nil and b_nil:
        return 0
    if a_nil:
        return 1
    if b_nil:
        return -1
    try:
        if a < b:
            return -1
        if b < a:
            return 1
    except TypeError:
        pass
    return 0


def structurally_equal(a: Any, b: Any) -> bool:
    """Compare two values of any kind by structure."""
    if is_nil(a) or is_nil(b):
        return is_nil(a) and is_nil(b)
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if is_object(a) or is_object(b):
        if not (is_object(a) and is_object(b)) or set(a) != set(b):
            return False
        return all(structurally_equal(a[key], b[key]) for key in a)
    if is_array(a) or is_array(b):
        if not (is_array(a) and is_array(b)):
            return False
        a, b = list(a), list(b)
        if len(a) != len(b):
            return False
        return all(structurally_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, str) != isinstance(b, str):
        return False
    return a == b


class SortFilter:
    """Stable sort, optionally by a dot-separated property of each object."""

    name = "sort"

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> list[Any]:
        args = _arguments(self.name, arguments, 0, 1)
        items = as_sequence(input)
        if args and not is_nil(args[0]):
            prop = to_str(args[0])
            if not all(is_object(item) for item in items):
                raise invalid_input(self.name, "Array of objects expected")

            def compare(a: Any, b: Any) -> int:
                return _nil_safe_compare(get_property(a, prop), get_property(b, prop))

        else:
            compare = _nil_safe_compare
        return sorted(items, key=functools.cmp_to_key(compare))


class WhereGlobFilter:
    """Keep the objects whose property is truthy or matches a glob.

    ``items | where_glob("tags")`` keeps objects whose ``tags`` is neither nil
    nor false. ``items | where_glob("permalink", "/posts/*")`` keeps objects
    whose ``permalink`` matches the glob.
    """

    name = "where_glob"

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> list[Any]:
        args = _arguments(self.name, arguments, 1, 2)
        prop = to_str(args[0])
        if is_array(input):
            items = list(input)
            if not all(is_object(item) for item in items):
                return []
        elif is_nil(input):
            items = []
        elif is_object(input):
            items = [input]
        else:
            raise invalid_input(self.name, "Array of objects or a single object expected")

        if len(args) == 1:
            return [item for item in items if self._truthy(self._lookup(item, prop))]
        pattern = to_str(args[1])
        return [item for item in items if self._matches(pattern, self._lookup(item, prop))]

    @staticmethod
    def _lookup(item: Mapping[str, Any], prop: str) -> Any:
        if prop in item:
            return item[prop]
        return get_property(item, prop)

    @staticmethod
    def _truthy(value: Any) -> bool:
        return not is_nil(value) and value is not False

    @staticmethod
    def _matches(pattern: str, value: Any) -> bool:
        if not is_scalar(value):
            return False
        return glob_match(pattern, to_str(value))


class TernaryFilter:
    """``flag | ternary(a, b)`` is ``a`` when flag is boolean true, else ``b``."""

    name = "ternary"

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> Any:
        true_value, false_value = _arguments(self.name, arguments, 2, 2)
        return true_value if input is True else false_value


class StartsWithFilter:
    name = "starts_with"

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> bool:
        (prefix,) = _arguments(self.name, arguments, 1, 1)
        if not is_scalar(input):
            raise invalid_input(self.name, "string input expected")
        if not is_scalar(prefix):
            raise invalid_input(self.name, "string prefix expected")
        return to_str(input).startswith(to_str(prefix))


class EqualsFilter:
    name = "equals"

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> bool:
        (other,) = _arguments(self.name, arguments, 1, 1)
        return structurally_equal(input, other)


class MarkdownifyFilter:
    """Translate a Markdown string into an HTML fragment."""

    name = "markdownify"

    def __init__(self, markdown: MarkdownProcessor):
        self.markdown = markdown

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> str:
        _arguments(self.name, arguments, 0, 0)
        return self.markdown.translate(to_str(input))


class PluralizeFilter:
    """``count | pluralize("item", "items")``."""

    name = "pluralize"

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> Any:
        singular, plural = _arguments(self.name, arguments, 2, 2)
        try:
            count = float(to_str(input))
        except ValueError:
            count = None
        return singular if count == 1 else plural


class SlugifyFilter:
    """Convert a string into a lowercase, URL-friendly slug.

    Modes: ``none`` returns the input unchanged, ``raw`` only replaces
    whitespace, ``default`` replaces every non-alphanumeric run, ``pretty``
    keeps common URL punctuation and ``ascii`` keeps only ASCII letters and
    digits.
    """

    name = "slugify"

    _MODES = {
        "raw": re.compile(r"\s+"),
        "default": re.compile(r"[\W_]+"),
        "pretty": re.compile(r"(?:[^\w._~!$&'()+,;=@]|_)+"),
        "ascii": re.compile(r"[^a-zA-Z0-9]+"),
    }

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> str:
        args = _arguments(self.name, arguments, 0, 1)
        mode = to_str(args[0]) if args else "default"
        text = to_str(input)
        if mode == "none":
            return text
        pattern = self._MODES.get(mode)
        if pattern is None:
            raise FilterError(self.name, f"unknown mode '{mode}'")
        return pattern.sub("-", text).strip("-").lower()


class PushFilter:
    name = "push"

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> list[Any]:
        (item,) = _arguments(self.name, arguments, 1, 1)
        return as_sequence(input) + [item]


class UnshiftFilter:
    name = "unshift"

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> list[Any]:
        (item,) = _arguments(self.name, arguments, 1, 1)
        return [item] + as_sequence(input)


def _count(name: str, arguments: Sequence[Any]) -> int:
    args = _arguments(name, arguments, 0, 1)
    if not args:
        return 1
    if isinstance(args[0], bool) or not isinstance(args[0], int) or args[0] < 0:
        raise invalid_input(name, "a non-negative integer count expected")
    return args[0]


class PopFilter:
    """Drop the last ``n`` items (default 1)."""

    name = "pop"

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> list[Any]:
        count = _count(self.name, arguments)
        items = as_sequence(input)
        return items[: max(len(items) - count, 0)]


class ShiftFilter:
    """Drop the first ``n`` items (default 1)."""

    name = "shift"

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> list[Any]:
        count = _count(self.name, arguments)
        return as_sequence(input)[count:]


class ArrayToSentenceFilter:
    """Join items into an English list: ``a, b, and c``."""

    name = "array_to_sentence_string"

    def evaluate(self, input: Any, arguments: Sequence[Any], context: Any) -> str:
        args = _arguments(self.name, arguments, 0, 1)
        connector = to_str(args[0]) if args else "and"
        words = [to_str(item) for item in as_sequence(input)]
        if not words:
            return ""
        if len(words) == 1:
            return words[0]
        if len(words) == 2:
            return f"{words[0]} {connector} {words[1]}"
        return f"{', '.join(words[:-1])}, {connector} {words[-1]}"


class FilterRegistry:
    """Registry mapping filter names to filter objects.

    New filters are added with ``register`` and reach templates through
    ``install``, without changes to the template engine.
    """

    def __init__(self):
        self._filters: dict[str, Filter] = {}

    def register(self, filter: Filter) -> None:
        """Register a filter under its ``name``, replacing any previous one."""
        self._filters[filter.name] = filter

    def get(self, name: str) -> Filter | None:
        return self._filters.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._filters

    def __iter__(self) -> Iterator[str]:
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def install(self, env: Environment) -> None:
        """Expose every registered filter to templates rendered by ``env``."""
        for name, flt in self._filters.items():
            env.filters[name] = _as_jinja_filter(flt)


def _as_jinja_filter(flt: Filter):
    @pass_context
    def apply(context, value, *args):
        return flt.evaluate(value, args, context)

    apply.__name__ = flt.name
    return apply


def create_default_registry(markdown: MarkdownProcessor) -> FilterRegistry:
    """Create a registry holding every built-in filter.

    Args:
        markdown: Processor used by ``markdownify``.
    """
    registry = FilterRegistry()
    for flt in (
        SortFilter(),
        WhereGlobFilter(),
        TernaryFilter(),
        StartsWithFilter(),
        EqualsFilter(),
        MarkdownifyFilter(markdown),
        PluralizeFilter(),
        SlugifyFilter(),
        PushFilter(),
        PopFilter(),
        ShiftFilter(),
        UnshiftFilter(),
        ArrayToSentenceFilter(),
    ):
        registry.register(flt)
    return registry

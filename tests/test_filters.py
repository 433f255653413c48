import pytest
from jinja2 import Environment, Undefined

from quickstatic.errors import FilterError
from quickstatic.filters import (
    ArrayToSentenceFilter,
    EqualsFilter,
    FilterRegistry,
    PluralizeFilter,
    PopFilter,
    PushFilter,
    ShiftFilter,
    SlugifyFilter,
    SortFilter,
    StartsWithFilter,
    TernaryFilter,
    UnshiftFilter,
    WhereGlobFilter,
    create_default_registry,
)
from quickstatic.protocols import Filter
from quickstatic.renderers import MarkdownProcessor


def apply(flt, value, *args):
    return flt.evaluate(value, args, None)


@pytest.fixture
def env():
    environment = Environment()
    create_default_registry(MarkdownProcessor()).install(environment)
    return environment


# sort


def test_sort_by_property_puts_nil_last_and_is_stable():
    items = [
        {"n": "a", "k": 2},
        {"n": "b"},
        {"n": "c", "k": 1},
        {"n": "d", "k": None},
        {"n": "e", "k": 1},
    ]
    result = apply(SortFilter(), items, "k")
    assert [item["n"] for item in result] == ["c", "e", "a", "b", "d"]


def test_sort_by_nested_property():
    items = [
        {"fm": {"date": "2024-02"}},
        {"fm": {}},
        {"fm": {"date": "2024-01"}},
    ]
    result = apply(SortFilter(), items, "fm.date")
    assert [item["fm"].get("date") for item in result] == ["2024-01", "2024-02", None]


def test_sort_without_property():
    assert apply(SortFilter(), [3, None, 1, 2]) == [1, 2, 3, None]
    assert apply(SortFilter(), "solo") == ["solo"]
    assert apply(SortFilter(), None) == []


def test_sort_by_property_rejects_non_objects():
    with pytest.raises(FilterError) as excinfo:
        apply(SortFilter(), [{"k": 1}, 2], "k")
    assert str(excinfo.value) == "sort: invalid input (Array of objects expected)"


# where_glob


def test_where_glob_matches_pattern():
    items = [
        {"name": "apple"},
        {"name": "banana"},
        {"name": "avocado"},
        {"name": 5},
        {"other": 1},
    ]
    result = apply(WhereGlobFilter(), items, "name", "a*")
    assert result == [{"name": "apple"}, {"name": "avocado"}]


def test_where_glob_without_pattern_keeps_truthy_values():
    items = [{"p": ""}, {"p": False}, {"p": None}, {"p": 0}, {}]
    assert apply(WhereGlobFilter(), items, "p") == [{"p": ""}, {"p": 0}]


def test_where_glob_star_does_not_cross_slash():
    items = [{"permalink": "/posts/a.html"}, {"permalink": "/posts/x/b.html"}]
    result = apply(WhereGlobFilter(), items, "permalink", "/posts/*")
    assert result == [{"permalink": "/posts/a.html"}]


def test_where_glob_dotted_property():
    items = [{"frontmatter": {"tag": "news"}}, {"frontmatter": {"tag": "misc"}}]
    result = apply(WhereGlobFilter(), items, "frontmatter.tag", "n*")
    assert result == [{"frontmatter": {"tag": "news"}}]


def test_where_glob_ignores_non_scalar_values():
    assert apply(WhereGlobFilter(), [{"tags": ["a"]}], "tags", "*") == []


def test_where_glob_input_shapes():
    flt = WhereGlobFilter()
    assert apply(flt, [{"a": "x"}, 2], "a", "*") == []
    assert apply(flt, None, "a") == []
    assert apply(flt, {"name": "abc"}, "name", "a*") == [{"name": "abc"}]
    with pytest.raises(FilterError, match="invalid input"):
        apply(flt, "text", "name")


# ternary, starts_with, equals


@pytest.mark.parametrize(
    "flag,expected", [(True, "yes"), (False, "no"), ("true", "no"), (None, "no"), (1, "no")]
)
def test_ternary_only_selects_on_true(flag, expected):
    assert apply(TernaryFilter(), flag, "yes", "no") == expected


def test_ternary_requires_two_arguments():
    with pytest.raises(FilterError, match="expects 2 arguments"):
        apply(TernaryFilter(), True, "yes")


def test_starts_with():
    flt = StartsWithFilter()
    assert apply(flt, "hello", "he") is True
    assert apply(flt, "hello", "lo") is False
    assert apply(flt, 512, "5") is True
    with pytest.raises(FilterError, match="invalid input"):
        apply(flt, ["a"], "a")
    with pytest.raises(FilterError, match="invalid input"):
        apply(flt, "a", None)


def test_equals_compares_structure():
    flt = EqualsFilter()
    assert apply(flt, {"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]}) is True
    assert apply(flt, [1, 2], [2, 1]) is False
    assert apply(flt, 1, True) is False
    assert apply(flt, "1", 1) is False
    assert apply(flt, None, Undefined()) is True


# markdownify and library filters


def test_markdownify(env):
    assert env.from_string("{{ '*hi*' | markdownify }}").render() == "<p><em>hi</em></p>\n"


def test_pluralize():
    assert apply(PluralizeFilter(), 1, "item", "items") == "item"
    assert apply(PluralizeFilter(), 2, "item", "items") == "items"
    assert apply(PluralizeFilter(), "1", "item", "items") == "item"


def test_slugify_modes():
    flt = SlugifyFilter()
    assert apply(flt, "Hello, World!") == "hello-world"
    assert apply(flt, "Hello, World!", "raw") == "hello,-world!"
    assert apply(flt, "Hello, World!", "none") == "Hello, World!"
    assert apply(flt, "Café déjà", "ascii") == "caf-d-j"
    assert apply(flt, "snake_case name") == "snake-case-name"
    with pytest.raises(FilterError, match="unknown mode"):
        apply(flt, "x", "loud")


def test_array_filters():
    assert apply(PushFilter(), [1], 2) == [1, 2]
    assert apply(UnshiftFilter(), [2], 1) == [1, 2]
    assert apply(PopFilter(), [1, 2, 3]) == [1, 2]
    assert apply(PopFilter(), [1, 2, 3], 2) == [1]
    assert apply(ShiftFilter(), [1, 2, 3]) == [2, 3]
    assert apply(ShiftFilter(), None) == []
    with pytest.raises(FilterError, match="invalid input"):
        apply(PopFilter(), [1], -1)


def test_array_to_sentence_string():
    flt = ArrayToSentenceFilter()
    assert apply(flt, ["a", "b", "c"]) == "a, b, and c"
    assert apply(flt, ["a", "b"]) == "a and b"
    assert apply(flt, ["a", "b"], "or") == "a or b"
    assert apply(flt, ["a"]) == "a"
    assert apply(flt, []) == ""


# registry


def test_default_registry_contents():
    registry = create_default_registry(MarkdownProcessor())
    for name in ("sort", "where_glob", "ternary", "starts_with", "equals", "markdownify"):
        assert name in registry
        assert isinstance(registry.get(name), Filter)
    assert len(registry) == len(list(registry))


def test_filters_render_through_jinja(env):
    template = env.from_string(
        "{{ items | sort('k') | map(attribute='n') | join(',') }}|"
        "{{ items | where_glob('n', 'b*') | length }}|"
        "{{ (1 == 1) | ternary('on', 'off') }}"
    )
    items = [{"n": "b", "k": 2}, {"n": "a", "k": 1}]
    assert template.render(items=items) == "a,b|1|on"


def test_custom_filter_registration():
    class ShoutFilter:
        name = "shout"

        def evaluate(self, input, arguments, context):
            return str(input).upper() + "!" * len(arguments)

    registry = FilterRegistry()
    registry.register(ShoutFilter())
    environment = Environment()
    registry.install(environment)
    assert environment.from_string("{{ 'hey' | shout(1, 2) }}").render() == "HEY!!"


def test_filter_errors_propagate_from_templates(env):
    with pytest.raises(FilterError):
        env.from_string("{{ 5 | where_glob('x') }}").render()


def test_filters_accept_generators_from_jinja_filters(env):
    docs = [{"n": "b", "k": True}, {"n": "c", "k": False}, {"n": "a", "k": True}]
    sorted_names = env.from_string(
        "{% for d in docs | selectattr('k') | sort('n') %}{{ d.n }}{% endfor %}"
    )
    assert sorted_names.render(docs=docs) == "ab"
    matching = env.from_string(
        "{{ docs | selectattr('k') | where_glob('n', 'a*') | map(attribute='n') | join(',') }}"
    )
    assert matching.render(docs=docs) == "a"
    plain = env.from_string("{{ docs | map(attribute='n') | sort | join(',') }}")
    assert plain.render(docs=docs) == "a,b,c"


def test_generators_count_as_arrays():
    items = ({"n": name} for name in ("b", "a"))
    assert apply(SortFilter(), items, "n") == [{"n": "a"}, {"n": "b"}]
    assert apply(WhereGlobFilter(), iter([{"n": "x"}, 3]), "n") == []
    assert apply(EqualsFilter(), (x for x in [1, 2]), [1, 2]) is True
    assert apply(PushFilter(), iter([1]), 2) == [1, 2]

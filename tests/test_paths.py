"""Path-addressed node access: get, set, distribute and URL helpers."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from castor._paths import (
    encode_query,
    format_map,
    get_value_by_path,
    set_value_by_path,
    split_path,
)
from castor.errors import ConversionError

pytestmark = pytest.mark.unit

_keys = st.text(alphabet="abcdefgh", min_size=1, max_size=4)
_paths = st.lists(_keys, min_size=1, max_size=4).map(tuple)
_scalars = st.one_of(
    st.integers(), st.booleans(), st.text(min_size=1, max_size=5), st.floats(allow_nan=False)
)


# =============================================================================
# get_value_by_path
# =============================================================================


def test_get_nested_value() -> None:
    assert get_value_by_path({"a": {"b": {"c": 3}}}, "a.b.c") == 3
    assert get_value_by_path({"a": {"b": {"c": 3}}}, ["a", "b"]) == {"c": 3}


def test_get_missing_segment_returns_none() -> None:
    assert get_value_by_path({"a": {"b": 1}}, "a.x.c") is None
    assert get_value_by_path({"a": 1}, "a.b") is None
    assert get_value_by_path(None, "a") is None


def test_get_self_returns_root_and_empty_path_returns_none() -> None:
    data = {"a": 1}
    assert get_value_by_path(data, ("_self",)) is data
    assert get_value_by_path(data, ()) is None


def test_get_distributes_over_lists() -> None:
    data = {"items": [{"x": 1}, {"x": 2}, {"y": 3}]}
    assert get_value_by_path(data, "items[].x") == [1, 2, None]
    assert get_value_by_path(data, "items[]") == data["items"]
    assert get_value_by_path({"items": "nope"}, "items[].x") is None


# =============================================================================
# set_value_by_path
# =============================================================================


def test_set_creates_intermediate_maps() -> None:
    data: dict = {}
    set_value_by_path(data, "a.b.c", 1)
    assert data == {"a": {"b": {"c": 1}}}


def test_set_replaces_non_map_intermediates() -> None:
    data: dict = {"a": 5}
    set_value_by_path(data, "a.b", "x")
    assert data == {"a": {"b": "x"}}


@pytest.mark.parametrize("value", [None, "", 0, 0.0, False, [], {}, b""])
def test_set_zero_value_is_a_no_op(value: object) -> None:
    data: dict = {}
    set_value_by_path(data, "a.b", value)
    assert data == {}


def test_set_zero_value_leaves_existing_value_alone() -> None:
    data: dict = {"a": {"b": 7}}
    set_value_by_path(data, "a.b", 0)
    assert data == {"a": {"b": 7}}


def test_set_empty_path_is_an_error() -> None:
    with pytest.raises(ConversionError):
        set_value_by_path({}, (), 1)


def test_set_distributed_list_pairs_elements() -> None:
    data: dict = {}
    set_value_by_path(data, "requests[].content", [{"t": 1}, {"t": 2}])
    assert data == {"requests": [{"content": {"t": 1}}, {"content": {"t": 2}}]}


def test_set_distributed_list_pairs_with_existing_elements_of_equal_length() -> None:
    data: dict = {"requests": [{"model": "m"}, {"model": "n"}]}
    set_value_by_path(data, "requests[].content", ["a", "b"])
    assert data == {
        "requests": [{"model": "m", "content": "a"}, {"model": "n", "content": "b"}]
    }


def test_set_distributed_list_of_other_length_is_broadcast() -> None:
    data: dict = {"a": [{}, {}, {}]}
    set_value_by_path(data, "a[].b", [1, 2])
    assert data == {"a": [{"b": [1, 2]}, {"b": [1, 2]}, {"b": [1, 2]}]}


def test_set_distributed_scalar_broadcasts_to_existing_elements() -> None:
    data: dict = {"requests": [{"content": "a"}, {"content": "b"}]}
    set_value_by_path(data, "requests[].model", "models/x")
    assert data == {
        "requests": [
            {"content": "a", "model": "models/x"},
            {"content": "b", "model": "models/x"},
        ]
    }


def test_set_distributed_scalar_without_list_writes_nothing() -> None:
    data: dict = {}
    set_value_by_path(data, "requests[].model", "models/x")
    assert data == {}


def test_set_distributed_nested_path() -> None:
    data: dict = {"instances": [{}, {}]}
    set_value_by_path(data, "instances[].meta.title", "t")
    assert data == {"instances": [{"meta": {"title": "t"}}, {"meta": {"title": "t"}}]}


@settings(max_examples=10, deadline=None, derandomize=True)
@given(path=_paths, value=_scalars)
def test_set_then_get_returns_value(path: tuple[str, ...], value: object) -> None:
    """Any non-zero scalar written at a plain path reads back unchanged."""
    if not value:
        return
    data: dict = {}
    set_value_by_path(data, path, value)
    assert get_value_by_path(data, path) == value


@settings(max_examples=10, deadline=None, derandomize=True)
@given(values=st.lists(st.integers(min_value=1), min_size=0, max_size=6))
def test_distributed_set_get_preserves_order(values: list[int]) -> None:
    data: dict = {}
    set_value_by_path(data, "items[].v", values)
    if values:
        assert get_value_by_path(data, "items[].v") == values
    else:
        assert data == {}


# =============================================================================
# Path parsing and URL helpers
# =============================================================================


def test_split_path_accepts_strings_and_sequences() -> None:
    assert split_path("a.b[].c") == ("a", "b[]", "c")
    assert split_path(["a", "b"]) == ("a", "b")


def test_format_map_keeps_slashes() -> None:
    assert format_map("{model}:generateContent", {"model": "models/gemini"}) == (
        "models/gemini:generateContent"
    )


def test_format_map_missing_parameter_raises() -> None:
    with pytest.raises(ConversionError, match="model"):
        format_map("{model}:generateContent", {})


def test_encode_query_sorts_and_skips_empty_values() -> None:
    query = {"pageToken": "", "pageSize": 5, "alt": "sse", "filter": None, "flag": True}
    assert encode_query(query) == "alt=sse&flag=true&pageSize=5"
    assert encode_query(None) == ""

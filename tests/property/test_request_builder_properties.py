"""Property tests for path templating and query serialization."""

from __future__ import annotations

from urllib.parse import parse_qsl, unquote

from hypothesis import given, settings, strategies as st

from api_call_sdk.core.request_builder import build_query_string, substitute_path

# Text that can be UTF-8 encoded
url_text = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",)),
    min_size=1,
    max_size=40,
)
identifiers = st.from_regex(r"[a-z][a-z0-9_]{0,10}", fullmatch=True)


class TestSubstitutePathProperties:
    """Property tests for substitute_path."""

    @given(value=url_text)
    @settings(max_examples=200)
    def test_substituted_segment_decodes_to_value(self, value: str) -> None:
        result = substitute_path("/items/:id/detail", {"id": value})

        prefix, _, rest = result.partition("/items/")
        segment, _, suffix = rest.rpartition("/")
        assert prefix == ""
        assert suffix == "detail"
        assert "/" not in segment
        assert unquote(segment) == value

    @given(value=st.integers() | st.text(alphabet="abc123", min_size=1))
    def test_unrelated_placeholders_untouched(self, value: int | str) -> None:
        result = substitute_path("/a/:id/b/:other", {"id": value}, strict=False)

        assert result.endswith("/b/:other")

    @given(name=identifiers, value=url_text)
    def test_no_placeholder_without_params(self, name: str, value: str) -> None:
        template = f"/static/{name}"

        assert substitute_path(template, {"id": value}) == template


class TestQueryStringProperties:
    """Property tests for build_query_string."""

    @given(
        params=st.dictionaries(
            identifiers,
            st.none() | st.text(alphabet=st.characters(blacklist_categories=("Cs",))),
            max_size=8,
        )
    )
    @settings(max_examples=200)
    def test_round_trips_non_none_entries(self, params: dict[str, str | None]) -> None:
        result = build_query_string(params)

        expected = [(k, v) for k, v in params.items() if v is not None]
        assert parse_qsl(result, keep_blank_values=True) == expected

    @given(keys=st.lists(identifiers, max_size=6, unique=True))
    def test_all_none_yields_empty(self, keys: list[str]) -> None:
        assert build_query_string(dict.fromkeys(keys)) == ""

    @given(key=identifiers, items=st.lists(st.integers(), min_size=1, max_size=6))
    def test_sequences_repeat_bracket_key(self, key: str, items: list[int]) -> None:
        result = build_query_string({key: items})

        assert parse_qsl(result) == [(f"{key}[]", str(item)) for item in items]

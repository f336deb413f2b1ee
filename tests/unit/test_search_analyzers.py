"""Unit tests for analyzer pipelines and filters."""

import pytest

from ti_search.search.analyzers import (
    AnalyzerPipeline,
    LowercaseFilter,
    MinLengthFilter,
    PorterStemFilter,
    SeparatorTokenizer,
    StopFilter,
    Token,
    build_porter_stemmer,
)


pytestmark = pytest.mark.unit


class TestToken:
    def test_copy_with_leaves_original_untouched(self):
        token = Token(text="Configure", position=2, start_char=10, end_char=19)

        clone = token.copy_with(text="configure")

        assert clone.text == "configure"
        assert clone.position == 2
        assert clone.start_char == 10
        assert clone.end_char == 19
        assert token.text == "Configure"


class TestSeparatorTokenizer:
    def test_emits_tokens_with_offsets(self):
        tokens = list(SeparatorTokenizer()("Hello, world's end"))

        assert [token.text for token in tokens] == ["Hello", "world's", "end"]
        assert [token.position for token in tokens] == [0, 1, 2]
        assert (tokens[1].start_char, tokens[1].end_char) == (7, 14)

    def test_custom_word_characters(self):
        tokens = list(SeparatorTokenizer("a-z")("abc-DEF ghi"))

        assert [token.text for token in tokens] == ["abc", "ghi"]

    def test_empty_text_yields_nothing(self):
        assert list(SeparatorTokenizer()("")) == []


class TestFilters:
    def _tokens(self, *words: str) -> list[Token]:
        return [Token(text=word, position=i, start_char=0, end_char=len(word)) for i, word in enumerate(words)]

    def test_lowercase_filter(self):
        result = list(LowercaseFilter()(self._tokens("HeLLo", "done")))

        assert [token.text for token in result] == ["hello", "done"]

    def test_min_length_filter_keeps_tokens_at_threshold(self):
        result = list(MinLengthFilter(5)(self._tokens("four", "apple", "bananas")))

        assert [token.text for token in result] == ["apple", "bananas"]

    def test_min_length_filter_rejects_non_positive(self):
        with pytest.raises(ValueError):
            MinLengthFilter(0)

    def test_stop_filter_is_case_insensitive(self):
        result = list(StopFilter(["About"])(self._tokens("about", "ABOUT", "apple")))

        assert [token.text for token in result] == ["apple"]

    def test_porter_stem_filter_rewrites_text(self):
        result = list(PorterStemFilter()(self._tokens("running", "apples")))

        assert [token.text for token in result] == ["runn", "appl"]


class TestPorterStemmer:
    @pytest.mark.parametrize(
        ("word", "expected"),
        [
            ("apples", "appl"),
            ("cherries", "cherri"),
            ("indexing", "index"),
            ("happiness", "happi"),
            ("kindness", "kind"),
            ("class", "class"),
            ("glass", "glass"),
            ("glasses", "glass"),
            ("normalization", "normalize"),
            ("cat", "cat"),
        ],
    )
    def test_stems(self, word, expected):
        assert build_porter_stemmer()(word) == expected


class TestAnalyzerPipeline:
    def test_positions_are_dense_after_filtering(self):
        pipeline = AnalyzerPipeline(SeparatorTokenizer(), [LowercaseFilter(), MinLengthFilter(5)])

        tokens = pipeline("The QUICK brown foxes jumped")

        assert [token.text for token in tokens] == ["quick", "brown", "foxes", "jumped"]
        assert [token.position for token in tokens] == [0, 1, 2, 3]

    def test_terms_returns_texts(self):
        pipeline = AnalyzerPipeline(SeparatorTokenizer(), [LowercaseFilter()])

        assert pipeline.terms("One two") == ["one", "two"]

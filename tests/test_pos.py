"""Unit tests for the part-of-speech classifier."""

import pytest

from analysis_export.core.pos import (
    DEFAULT_CATEGORY,
    POS_CATEGORIES,
    category_color,
    category_label,
    classify,
)


class TestClassify:

    def test_subtag_is_ignored(self):
        assert classify("助動詞-バ").key == "助動詞"

    def test_only_first_hyphen_splits(self):
        assert classify("名詞-固有名詞-人名").key == "名詞"

    def test_plain_tag(self):
        category = classify("動詞")
        assert category.name == "verb"
        assert category.label == "动词"
        assert category.color == "#77DD77"

    @pytest.mark.parametrize("raw", ["ズズズ", "", "-名詞", None, 42, "改行"])
    def test_unknown_tags_fall_back_to_default(self, raw):
        assert classify(raw) is DEFAULT_CATEGORY

    def test_css_class(self):
        assert classify("名詞").css_class == "pos-名詞"
        assert DEFAULT_CATEGORY.css_class == "pos-default"

    def test_helpers(self):
        assert category_label("助詞-格助詞") == "助词"
        assert category_color("ズズズ") == "#E0E0E0"


class TestCategoryTable:

    def test_closed_set(self):
        names = {category.name for category in POS_CATEGORIES.values()}
        assert names == {
            "noun", "verb", "adjective", "adverb", "particle", "auxiliary-verb",
            "conjunction", "interjection", "adnominal", "pronoun",
            "adjectival-noun", "symbol", "prefix", "suffix", "filler", "other",
        }

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            POS_CATEGORIES["新"] = DEFAULT_CATEGORY

    def test_keys_match_category_keys(self):
        for key, category in POS_CATEGORIES.items():
            assert key == category.key

"""Part-of-speech category table and classifier.

WHY: The analyzer tags each token with a raw string such as "名詞" or
"助動詞-バ". The interactive renderer, the image layout and the text export
all need to turn that tag into the same category, label and chip color.
One immutable table owned here is the shared contract; renaming a key or
changing the row-break tag breaks every consumer at once.

HOW: POS_CATEGORIES maps the primary tag (the part before the first
hyphen) to a frozen PosCategory. classify() splits, looks up, and falls
back to DEFAULT_CATEGORY for anything it does not recognize.

RULES:
- classify() never raises, whatever it is given
- Only the part before the FIRST hyphen is looked up
- The table is read-only (MappingProxyType)
- The row-break tag "改行" is not a category; callers filter it out first
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class PosCategory:
    """One part-of-speech category.

    Attributes:
        key: Primary analyzer tag, e.g. ``"助動詞"``.
        name: English identifier, e.g. ``"auxiliary-verb"``.
        label: Display name used in exported labels, e.g. ``"助动词"``.
        color: Chip fill color as ``#RRGGBB``.
    """

    key: str
    name: str
    label: str
    color: str

    @property
    def css_class(self) -> str:
        """Style class used by the interactive renderer (``pos-名詞``)."""
        return "pos-{}".format(self.key)


DEFAULT_CATEGORY = PosCategory("default", "default", "未知", "#E0E0E0")

_CATEGORIES = (
    PosCategory("名詞", "noun", "名词", "#89CFF0"),
    PosCategory("動詞", "verb", "动词", "#77DD77"),
    PosCategory("形容詞", "adjective", "形容词", "#FFB347"),
    PosCategory("副詞", "adverb", "副词", "#C3B1E1"),
    PosCategory("助詞", "particle", "助词", "#FF6961"),
    PosCategory("助動詞", "auxiliary-verb", "助动词", "#FF8FAB"),
    PosCategory("接続詞", "conjunction", "连词", "#D2B48C"),
    PosCategory("感動詞", "interjection", "感叹词", "#AEC6CF"),
    PosCategory("連体詞", "adnominal", "连体词", "#7FFFD4"),
    PosCategory("代名詞", "pronoun", "代词", "#ADD8E6"),
    PosCategory("形状詞", "adjectival-noun", "形状词", "#FDFD96"),
    PosCategory("記号", "symbol", "符号", "#B2BEB5"),
    PosCategory("接頭辞", "prefix", "接头词", "#DCDCDC"),
    PosCategory("接尾辞", "suffix", "接尾词", "#E6E6FA"),
    PosCategory("フィラー", "filler", "填充词", "#F5F5F5"),
    PosCategory("その他", "other", "其他", "#C0C0C0"),
)

POS_CATEGORIES: Mapping[str, PosCategory] = MappingProxyType(
    {category.key: category for category in _CATEGORIES}
)


def primary_tag(raw_tag: Any) -> str:
    """Return the part of a raw tag before the first hyphen ("" if not a str)."""
    if not isinstance(raw_tag, str):
        return ""
    return raw_tag.split("-", 1)[0].strip()


def classify(raw_tag: Any) -> PosCategory:
    """Map a raw analyzer tag to its PosCategory.

    Examples:
        >>> classify("助動詞-バ").key
        '助動詞'
        >>> classify("ズズズ") is DEFAULT_CATEGORY
        True
    """
    return POS_CATEGORIES.get(primary_tag(raw_tag), DEFAULT_CATEGORY)


def category_label(raw_tag: Any) -> str:
    return classify(raw_tag).label


def category_color(raw_tag: Any) -> str:
    return classify(raw_tag).color

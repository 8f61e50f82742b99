"""
Tag extraction rule tables.

Each tag field has an ordered table of ExtractionRules. Order is
priority: single-value fields take the first rule that matches, the
composer field takes the union of every rule's matches. The tables are
plain data, compiled once at import, so a rule is added by adding a
row, not by touching the detection logic.

Description patterns were tuned against real upload descriptions, most
importantly YouTube Music "Topic" channel uploads:

    Provided to YouTube by Label

    Song · Artist

    Album

    ℗ 2019 Label

    Released on: 2019-05-01

Note that the Topic credit line is "Song · Artist", so the title comes
from group 1 and the artist from group 2.
"""

import re
from dataclasses import dataclass

from tube_tagger.postprocess.models import SourceField


@dataclass(frozen=True)
class ExtractionRule:
    """
    One way of finding a value in a video's title or description.

    Attributes:
        pattern: Compiled regular expression.
        group: Capture group holding the value; 0 is the whole match.
        source: Which text the pattern is applied to.
        label: Where the value came from, for log output only.
    """
    pattern: re.Pattern[str]
    group: int
    source: SourceField
    label: str


def rule(pattern: str, group: int, source: SourceField, label: str) -> ExtractionRule:
    """Compile a pattern into an ExtractionRule."""
    compiled = re.compile(pattern)
    if group > compiled.groups:
        raise ValueError(f"Pattern {pattern!r} has no group {group}")
    return ExtractionRule(compiled, group, source, label)


D = SourceField.DESCRIPTION
T = SourceField.TITLE

TOPIC_STYLE = r"(.+) · (.+)(?:\n|\r|\r\n){2}(.+)(?:\n|\r|\r\n){2}.*℗ ([12]\d{3})\D"
PSEUDO_TOPIC_STYLE = r"(.+) · (.+)(?:\n|\r|\r\n){2}(.+)(?:\n|\r|\r\n){2}.*℗"
# e.g. "Artist 1st『Song』[2018]" or "Artist Vol.2『Song』[2018]"
BRACKETED_RELEASE = r"(.+) (?:\d\w{2}|Vol\.\d)?『(.+)』\[([12]\d{3})\]"
# Python lookbehinds must be fixed-width, hence one lookbehind per phrasing
COMPOSER_CREDIT = (
    r"(?:(?<=[Cc]omposed by )|(?<=[Cc]omposed by: )|(?<=[Cc]omposer: )|(?<=作曲[:：])).+"
)

TOPIC_LABEL = "description (Topic style)"
PSEUDO_TOPIC_LABEL = "description (pseudo-Topic style)"


TITLE_RULES: tuple[ExtractionRule, ...] = (
    rule(TOPIC_STYLE, 1, D, TOPIC_LABEL),
    rule(PSEUDO_TOPIC_STYLE, 1, D, PSEUDO_TOPIC_LABEL),
    rule(BRACKETED_RELEASE, 2, T, "title"),
)

ARTIST_RULES: tuple[ExtractionRule, ...] = (
    rule(TOPIC_STYLE, 2, D, TOPIC_LABEL),
    rule(PSEUDO_TOPIC_STYLE, 2, D, PSEUDO_TOPIC_LABEL),
    rule(r"(.+)(?: - )?[「『](.+)[」』]\[([12]\d{3})\]", 1, T, "title"),
)

ALBUM_RULES: tuple[ExtractionRule, ...] = (
    rule(r"(?<=[Aa]lbum: ).+", 0, D, "description"),
    rule(TOPIC_STYLE, 3, D, TOPIC_LABEL),
    rule(PSEUDO_TOPIC_STYLE, 3, D, PSEUDO_TOPIC_LABEL),
    rule(r"""(?<='s ['"]).+(?=['"] album)""", 0, D, "description"),
    rule(r"(?<=Vol\.\d『).+(?=』\s?#\d)", 0, D, "description"),
    rule(r"(?<=^\w{3}アルバム『).+(?=』)", 0, D, "description"),
)

YEAR_RULES: tuple[ExtractionRule, ...] = (
    rule(r"(?<=[(（\[［【])[12]\d{3}(?=[)）\]］】])", 0, T, "title"),
    rule(r"(?<=℗ )[12]\d{3}(?=\s)", 0, D, "description's \"℗\" symbol"),
    rule(r"(?<=[Rr]eleased [io]n: )[12]\d{3}", 0, D, "description 'released on' date"),
    rule(
        r"[12]\d{3}(?=(?:[./年]\d{1,2}[./月]\d{1,2}日?\s?)?\s?(?:[Rr]elease|リリース|発売))",
        0, D, "description's year-first date"
    ),
    rule(r"[12]\d{3}年(?=\d{1,2}月\d{1,2}日\s?[Rr]elease)", 0, D, "description's 年月日-style release date"),
    rule(BRACKETED_RELEASE, 3, T, "title"),
    rule(BRACKETED_RELEASE, 3, D, "description"),
)

COMPOSER_RULES: tuple[ExtractionRule, ...] = (
    rule(COMPOSER_CREDIT, 0, D, "description"),
    rule(COMPOSER_CREDIT, 0, T, "title"),
)


@dataclass(frozen=True)
class FieldRules:
    """The rule table for every tag field."""
    title: tuple[ExtractionRule, ...] = TITLE_RULES
    artist: tuple[ExtractionRule, ...] = ARTIST_RULES
    album: tuple[ExtractionRule, ...] = ALBUM_RULES
    year: tuple[ExtractionRule, ...] = YEAR_RULES
    composer: tuple[ExtractionRule, ...] = COMPOSER_RULES


DEFAULT_RULES = FieldRules()

"""
Heuristic tag detection.

Applies the rule tables from tube_tagger.postprocess.rules to a video's
title and description:

    - Single-value fields (title, artist, album, year) use
      first-match-wins: rules are tried in order and the first one whose
      value parses is returned. Later rules are never evaluated.
    - The composer field takes the union of every match of every rule,
      deduplicated in order of first appearance and joined with "; ".

Values are always extracted as text and then converted by an explicit
parser. A value that fails to parse (e.g. "2019年" as a year) counts as
a miss for that rule; when nothing matches, the caller's default is
returned with no provenance.

Usage:
    detector = FieldDetector()
    result = detector.detect_release_year(document, default=None)
    if result.found:
        print(f"{result.value} from {result.source}")
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from tube_tagger.postprocess.models import VideoMetadata
from tube_tagger.postprocess.rules import DEFAULT_RULES, ExtractionRule, FieldRules


T = TypeVar("T")

COMPOSER_SEPARATOR = "; "

# Largest value an unsigned 16-bit year field can hold
MAX_YEAR = 65535


@dataclass(frozen=True)
class FieldResult(Generic[T]):
    """
    Outcome of detecting one field.

    Attributes:
        value: The detected value, or the caller's default.
        source: Label of the rule that produced the value, or None
                when the value is the default.
    """
    value: T | None
    source: str | None = None

    @property
    def found(self) -> bool:
        return self.source is not None


def parse_text(raw: str) -> str | None:
    """Strip whitespace; blank text is not a value."""
    text = raw.strip()
    return text or None


def parse_year(raw: str) -> int | None:
    """Parse an unsigned year, or return None if the text is not one."""
    try:
        year = int(raw.strip())
    except ValueError:
        return None
    if year < 0 or year > MAX_YEAR:
        return None
    return year


def detect_first(
    document: VideoMetadata,
    rules: Sequence[ExtractionRule],
    default: T | None,
    parse: Callable[[str], T | None]
) -> FieldResult[T]:
    """
    Return the value from the first rule that matches and parses.

    Args:
        document: Video metadata providing the title and description.
        rules: Ordered rules; earlier rules win.
        default: Value returned (without provenance) when no rule matches.
        parse: Converts the matched text; returning None rejects the match.
    """
    for extraction_rule in rules:
        match = extraction_rule.pattern.search(document.text_for(extraction_rule.source))
        if match is None:
            continue

        value = parse(match.group(extraction_rule.group) or "")
        if value is None:
            continue

        return FieldResult(value, extraction_rule.label)

    return FieldResult(default, None)


def detect_all(
    document: VideoMetadata,
    rules: Sequence[ExtractionRule],
    default: str | None,
    separator: str = COMPOSER_SEPARATOR
) -> FieldResult[str]:
    """
    Join every distinct match of every rule.

    Matches are stripped, blanks dropped, and duplicates removed while
    keeping the order in which values first appear.

    Returns:
        FieldResult whose source lists the labels of the rules that
        contributed, or the default with no source if nothing matched.
    """
    values: dict[str, None] = {}
    labels: dict[str, None] = {}

    for extraction_rule in rules:
        text = document.text_for(extraction_rule.source)
        for match in extraction_rule.pattern.finditer(text):
            value = parse_text(match.group(extraction_rule.group) or "")
            if value is None:
                continue
            values.setdefault(value)
            labels.setdefault(extraction_rule.label)

    if not values:
        return FieldResult(default, None)

    return FieldResult(separator.join(values), ", ".join(labels))


class FieldDetector:
    """
    Detects tag fields in a video's title and description.

    Stateless apart from its (immutable) rule tables, so one instance
    can be shared between threads.
    """

    def __init__(self, rules: FieldRules = DEFAULT_RULES) -> None:
        self.rules = rules

    def detect_title(self, document: VideoMetadata, default: str | None = None) -> FieldResult[str]:
        return detect_first(document, self.rules.title, default, parse_text)

    def detect_artist(self, document: VideoMetadata, default: str | None = None) -> FieldResult[str]:
        return detect_first(document, self.rules.artist, default, parse_text)

    def detect_album(self, document: VideoMetadata, default: str | None = None) -> FieldResult[str]:
        return detect_first(document, self.rules.album, default, parse_text)

    def detect_release_year(self, document: VideoMetadata, default: int | None = None) -> FieldResult[int]:
        return detect_first(document, self.rules.year, default, parse_year)

    def detect_composers(self, document: VideoMetadata, default: str | None = None) -> FieldResult[str]:
        return detect_all(document, self.rules.composer, default)

"""Keyword vocabularies used to tag events from free text."""
import re
import unicodedata
from typing import Dict, Iterable, List

# tag -> aliases
FOOTBALL_TEAMS: Dict[str, List[str]] = {
    'barcelone': ['FC Barcelona', 'Futbol Club Barcelona', 'Barcelona', 'Barca'],
    'real_madrid': ['Real Madrid CF', 'Real Madrid'],
    'manchester_city': ['Manchester City FC', 'Manchester City', 'Man City'],
    'liverpool': ['Liverpool FC', 'Liverpool'],
    'bayern': ['FC Bayern München', 'Bayern München', 'Bayern Munchen', 'Bayern'],
    'psg': ['Paris Saint-Germain FC', 'Paris Saint Germain', 'Paris SG', 'PSG'],
    'nice': ['OGC Nice', 'Nice'],
    'asse': ['AS Saint-Étienne', 'Saint-Étienne', 'ASSE'],
}

ESPORT_TEAMS: Dict[str, List[str]] = {
    'geng': ['Gen.G', 'GenG'],
    'fnatic': ['Fnatic', 'FNC'],
}

_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def normalize_text(text: str) -> str:
    """Lower-case, strip accents and reduce to space-separated words."""
    decomposed = unicodedata.normalize('NFD', str(text or ''))
    stripped = ''.join(c for c in decomposed if not unicodedata.combining(c))
    return _NON_ALNUM.sub(' ', stripped.lower()).strip()


def match_keywords(text: str, vocabulary: Dict[str, List[str]]) -> List[str]:
    """
    Find vocabulary tags whose aliases appear in ``text``.

    Matching is case and accent insensitive and respects word boundaries,
    so "Nice" matches "OGC Nice" but not "Venice".

    Args:
        text: Free text (title, team name, ...)
        vocabulary: Mapping of tag to aliases

    Returns:
        Matching tags in vocabulary order
    """
    haystack = f" {normalize_text(text)} "
    tags = []
    for tag, aliases in vocabulary.items():
        for alias in aliases:
            needle = normalize_text(alias)
            if needle and f" {needle} " in haystack:
                tags.append(tag)
                break
    return tags


def clean_tags(tags: Iterable[str]) -> List[str]:
    """Lower-case, trim and de-duplicate tags, dropping empty ones."""
    seen = []
    for tag in tags or []:
        if tag is None:
            continue
        value = str(tag).strip().lower()
        if value and value not in seen:
            seen.append(value)
    return seen

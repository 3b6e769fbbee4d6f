"""Lolix esports match prediction adapter (framework data endpoint)."""
import logging
from typing import Any, Iterator, List, Optional

from processor.models import RawRecord
from processor.tagging import ESPORT_TEAMS, match_keywords
from scraper.base import SourceAdapter
from scraper.pool_graph import resolve_root

logger = logging.getLogger(__name__)


def iter_matches(node: Any, seen: Optional[set] = None) -> Iterator[dict]:
    """
    Walk a decoded page graph and yield match objects.

    A match is any mapping with a ``begin_at`` key; the walk does not depend
    on where the page nests them.
    """
    if seen is None:
        seen = set()
    if id(node) in seen:
        return
    if isinstance(node, dict):
        seen.add(id(node))
        if 'begin_at' in node:
            yield node
            return
        for value in node.values():
            yield from iter_matches(value, seen)
    elif isinstance(node, list):
        seen.add(id(node))
        for value in node:
            yield from iter_matches(value, seen)


def _name(value: Any) -> str:
    return str(value).strip() if value not in (None, '') else ''


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def build_title(match: dict) -> str:
    """Build "[League] Team A vs Team B" from a match object."""
    league = _name(_mapping(match.get('league')).get('name')) or 'LOL'
    opponents = match.get('opponents')
    teams = []
    for entry in opponents if isinstance(opponents, list) else []:
        opponent = _mapping(_mapping(entry).get('opponent'))
        name = _name(opponent.get('name')) or _name(opponent.get('acronym'))
        if name:
            teams.append(name)

    if len(teams) >= 2:
        return f"[{league}] {teams[0]} vs {teams[1]}"
    if len(teams) == 1:
        return f"[{league}] {teams[0]} (TBD)"
    return f"[{league}] Match"


class LolixPredictionsAdapter(SourceAdapter):
    """Adapter reading upcoming matches from the lolix.gg predictions page data."""

    DATA_URL = "https://lolix.gg/predictions/__data.json"
    PAGE_URL = "https://lolix.gg/predictions"

    def __init__(self, timeout: int = SourceAdapter.DEFAULT_TIMEOUT):
        super().__init__(name='lolix.gg', timeout=timeout)

    def fetch_records(self) -> List[RawRecord]:
        response = self._get(self.DATA_URL)
        return self.parse_payload(response.json())

    def parse_payload(self, payload: dict) -> List[RawRecord]:
        """
        Decode every data node of the payload and extract matches.

        Args:
            payload: Parsed ``__data.json`` document

        Returns:
            List of RawRecord objects, one per distinct match

        Raises:
            ValueError: If the payload has no data node
        """
        nodes = [
            node for node in (payload or {}).get('nodes') or []
            if isinstance(node, dict) and node.get('type') == 'data'
            and isinstance(node.get('data'), list)
        ]
        if not nodes:
            raise ValueError("no data node in lolix payload")

        matches = []
        seen_ids = set()
        for node in nodes:
            for match in iter_matches(resolve_root(node['data'])):
                match_id = match.get('id')
                if isinstance(match_id, (int, str)):
                    if match_id in seen_ids:
                        continue
                    seen_ids.add(match_id)
                matches.append(match)

        logger.info(f"Decoded {len(matches)} matches from {len(nodes)} data nodes")
        return self._parse_each(matches, self._parse_match)

    def _parse_match(self, match: dict) -> Optional[RawRecord]:
        start = _text(match.get('begin_at')) or _text(match.get('scheduled_at'))
        if not start:
            return None

        title = build_title(match)
        league = _name(_mapping(match.get('league')).get('name')).lower()
        tags = ['lolix', 'esport', 'lol', league] + match_keywords(title, ESPORT_TEAMS)

        return RawRecord(
            title=title,
            start=start,
            end=_text(match.get('end_at')),
            url=self.PAGE_URL,
            tags=tags
        )

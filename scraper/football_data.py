"""football-data.org fixtures adapter (JSON API)."""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, List, Optional

from processor.models import RawRecord
from processor.tagging import FOOTBALL_TEAMS, match_keywords
from scraper.base import SourceAdapter

logger = logging.getLogger(__name__)


@dataclass
class Competition:
    code: str
    tag: str


DEFAULT_COMPETITIONS = [
    Competition(code='CL', tag='ldc'),
    Competition(code='PL', tag='premier_league'),
    Competition(code='PD', tag='liga'),
    Competition(code='BL1', tag='bundesliga'),
    Competition(code='FL1', tag='ligue1'),
]


class FootballDataAdapter(SourceAdapter):
    """Adapter for upcoming matches of followed teams on football-data.org."""

    BASE_URL = "https://api.football-data.org/v4"
    SITE_URL = "https://www.football-data.org/"
    LOOKAHEAD_DAYS = 30

    def __init__(
        self,
        token: Optional[str],
        competitions: Optional[List[Competition]] = None,
        timeout: int = SourceAdapter.DEFAULT_TIMEOUT,
        today: Optional[Callable[[], date]] = None
    ):
        super().__init__(name='football-data.org', timeout=timeout)
        self.token = token
        self.competitions = competitions or DEFAULT_COMPETITIONS
        self.today = today or date.today

    def fetch_records(self) -> List[RawRecord]:
        """
        Fetch matches of every configured competition.

        Raises:
            RuntimeError: If no API token is configured
            requests.RequestException: If any competition request fails
        """
        if not self.token:
            raise RuntimeError("FOOTBALL_DATA_TOKEN is not set")

        date_from = self.today()
        date_to = date_from + timedelta(days=self.LOOKAHEAD_DAYS)
        params = {'dateFrom': date_from.isoformat(), 'dateTo': date_to.isoformat()}

        records = []
        for competition in self.competitions:
            response = self._get(
                f"{self.BASE_URL}/competitions/{competition.code}/matches",
                params=params,
                headers={'X-Auth-Token': self.token}
            )
            matches = response.json().get('matches') or []
            parsed = self._parse_each(
                matches, lambda match: self._parse_match(match, competition)
            )
            logger.info(f"{competition.code}: {len(parsed)} followed matches out of {len(matches)}")
            records.extend(parsed)
        return records

    def _parse_match(self, match: dict, competition: Competition) -> Optional[RawRecord]:
        start = match.get('utcDate')
        if not start:
            return None

        home = (match.get('homeTeam') or {}).get('name') or ''
        away = (match.get('awayTeam') or {}).get('name') or ''
        team_tags = match_keywords(home, FOOTBALL_TEAMS) + match_keywords(away, FOOTBALL_TEAMS)
        if not team_tags:
            return None

        competition_name = (match.get('competition') or {}).get('name') or competition.code

        return RawRecord(
            title=f"[{competition_name}] {home} vs {away}",
            start=str(start),
            url=self.SITE_URL,
            tags=['foot', competition.tag] + team_tags
        )

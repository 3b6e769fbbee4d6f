"""Football fixture listing adapter (HTML page grouped by date headings)."""
import logging
import re
from datetime import date
from typing import Callable, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from processor.event_processor import collapse_whitespace
from processor.models import RawRecord
from processor.tagging import FOOTBALL_TEAMS, match_keywords, normalize_text
from processor.time_utils import guess_year, local_iso
from scraper.base import SourceAdapter

logger = logging.getLogger(__name__)

FRENCH_MONTHS = {
    'janvier': 1, 'fevrier': 2, 'mars': 3, 'avril': 4, 'mai': 5, 'juin': 6,
    'juillet': 7, 'aout': 8, 'septembre': 9, 'octobre': 10, 'novembre': 11,
    'decembre': 12,
}

# Matched against normalize_text() output: lower-case, no accents
_DATE_HEADING = re.compile(
    r'\b(\d{1,2})(?:er)? (' + '|'.join(FRENCH_MONTHS) + r')\b(?: (\d{4})\b)?'
)
# 16:15 or 16h15
_TIME_TOKEN = re.compile(r'\b([01]?\d|2[0-3]) ?[:hH] ?([0-5]\d)\b')

HEADING_TAGS = ['h1', 'h2', 'h3', 'h4', 'h5', 'h6']


def parse_date_heading(text: str) -> Optional[Tuple[int, int, Optional[int]]]:
    """
    Extract (day, month, year) from a French date heading.

    "Samedi 07 février" gives (7, 2, None); the year is None when absent.
    """
    match = _DATE_HEADING.search(normalize_text(text))
    if not match:
        return None
    year = int(match.group(3)) if match.group(3) else None
    return int(match.group(1)), FRENCH_MONTHS[match.group(2)], year


def parse_time_token(text: str) -> Optional[Tuple[int, int]]:
    """Find an ``HH:MM`` or ``HHhMM`` time in row text."""
    match = _TIME_TOKEN.search(text or '')
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


class FixtureListingAdapter(SourceAdapter):
    """
    Adapter for a fixture page listing matches under day headings.

    Every row following a date heading, up to the next date heading, belongs
    to that day. Rows carry the kick-off time as ``HH:MM`` or ``HHhMM``;
    rows without a time are ignored.
    """

    ROW_TAGS = ['tr', 'li']

    def __init__(
        self,
        url: str,
        name: str = 'Fixtures',
        timeout: int = SourceAdapter.DEFAULT_TIMEOUT,
        today: Optional[Callable[[], date]] = None
    ):
        super().__init__(name=name, timeout=timeout)
        self.url = url
        self.today = today or date.today

    def fetch_records(self) -> List[RawRecord]:
        response = self._get(self.url)
        return self.parse_html(response.text)

    def parse_html(self, html_content: str) -> List[RawRecord]:
        """
        Parse fixtures from the page HTML.

        Args:
            html_content: HTML content of the fixture page

        Returns:
            List of RawRecord objects
        """
        soup = BeautifulSoup(html_content, 'html.parser')
        today = self.today()
        items = []

        for heading in soup.find_all(HEADING_TAGS):
            day_month = parse_date_heading(heading.get_text(' ', strip=True))
            if not day_month:
                continue

            day, month, year = day_month
            try:
                year = year or guess_year(day, month, today)
            except ValueError as e:
                logger.warning(f"Skipping invalid date heading '{heading.get_text(strip=True)}': {e}")
                continue

            for row in self._rows_after(heading):
                items.append((year, month, day, row))

        return self._parse_each(items, self._parse_row)

    def _rows_after(self, heading) -> List:
        """Collect the rows between ``heading`` and the next date heading."""
        anchor = heading
        # Headings wrapped alone in a container: walk the container's siblings
        if anchor.find_next_sibling() is None and anchor.parent is not None:
            anchor = anchor.parent

        rows = []
        for sibling in anchor.find_next_siblings():
            if self._is_date_heading(sibling) or any(
                self._is_date_heading(h) for h in sibling.find_all(HEADING_TAGS)
            ):
                break
            if sibling.name in self.ROW_TAGS or sibling.name == 'a':
                rows.append(sibling)
                continue
            nested = sibling.find_all(self.ROW_TAGS) or sibling.find_all('a')
            rows.extend(nested or [sibling])
        return rows

    def _is_date_heading(self, element) -> bool:
        return (
            element.name in HEADING_TAGS
            and parse_date_heading(element.get_text(' ', strip=True)) is not None
        )

    def _parse_row(self, item) -> Optional[RawRecord]:
        year, month, day, row = item
        text = collapse_whitespace(row.get_text(' ', strip=True))

        kickoff = parse_time_token(text)
        if not kickoff:
            return None

        title = collapse_whitespace(_TIME_TOKEN.sub(' ', text)).strip(' -|')
        if not title:
            return None

        link = row if row.name == 'a' else row.find('a')
        href = link.get('href') if link is not None else None

        return RawRecord(
            title=title,
            start=local_iso(year, month, day, kickoff[0], kickoff[1]),
            url=urljoin(self.url, href) if href else self.url,
            tags=['foot'] + match_keywords(title, FOOTBALL_TEAMS)
        )

"""Anime airing schedule adapter (published spreadsheet CSV)."""
import csv
import io
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from dateutil import parser as dtparser

from processor.event_processor import collapse_whitespace
from processor.models import RawRecord
from processor.time_utils import utc_iso
from scraper.base import SourceAdapter

logger = logging.getLogger(__name__)

DEFAULT_SHEET_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vT36bHnWhI-sdvq6NOmAyYU1BQZJT4WAsIYozR7fnARi_xBgU0keZw0mTF-N3s3x7V5tcaAofqO78Aq"
    "/pub?output=csv"
)


def detect_delimiter(first_line: str) -> str:
    return ';' if first_line.count(';') > first_line.count(',') else ','


def parse_sheet_time(value: str) -> Optional[datetime]:
    """Parse a sheet cell such as "2025-01-01 18:30" or "2025-01-01"."""
    text = collapse_whitespace(value)
    if not text:
        return None
    try:
        return dtparser.isoparse(text.replace(' ', 'T', 1))
    except ValueError:
        return None


def format_sheet_time(value: datetime) -> str:
    if value.tzinfo is not None:
        return utc_iso(value)
    return value.strftime('%Y-%m-%dT%H:%M:%S')


class AnimeSheetAdapter(SourceAdapter):
    """
    Adapter for the anime airing sheet.

    Columns ``title`` and ``start`` are required; ``end``, ``tags`` (comma
    separated), ``url`` and ``repeat`` are optional. Rows with ``repeat`` set
    to "oui" air weekly and are expanded over ``REPEAT_WEEKS`` weeks.
    """

    REPEAT_WEEKS = 52

    def __init__(self, url: str = DEFAULT_SHEET_URL, timeout: int = SourceAdapter.DEFAULT_TIMEOUT):
        super().__init__(name='Anime (sheet)', timeout=timeout)
        self.url = url

    def fetch_records(self) -> List[RawRecord]:
        response = self._get(self.url)
        response.encoding = response.encoding or 'utf-8'
        return self.parse_csv(response.text)

    def parse_csv(self, csv_text: str) -> List[RawRecord]:
        """
        Parse sheet rows into records.

        Raises:
            ValueError: If the ``title`` or ``start`` column is missing
        """
        text = (csv_text or '').replace('\r', '')
        first_line = next((line for line in text.split('\n') if line.strip()), '')
        reader = csv.reader(io.StringIO(text), delimiter=detect_delimiter(first_line))
        rows = [
            [cell.strip() for cell in row] for row in reader
            if any(cell.strip() for cell in row)
        ]
        if len(rows) < 2:
            return []

        headers = [header.lower() for header in rows[0]]
        if 'title' not in headers or 'start' not in headers:
            raise ValueError("sheet is missing the 'title' and 'start' columns")

        records = []
        for row in rows[1:]:
            cells = dict(zip(headers, row))
            parsed = self._parse_each([cells], self._parse_row)
            records.extend(parsed)
            if parsed and cells.get('repeat', '').lower() == 'oui':
                records.extend(self._repeat(parsed[0]))
        return records

    def _parse_row(self, cells: Dict[str, str]) -> Optional[RawRecord]:
        title = collapse_whitespace(cells.get('title'))
        start = collapse_whitespace(cells.get('start'))
        if not title or not start:
            return None

        start_dt = parse_sheet_time(start)
        end_dt = parse_sheet_time(cells.get('end', ''))
        tags_raw = cells.get('tags', '')

        return RawRecord(
            title=title,
            # unparsable cells are passed through as written
            start=format_sheet_time(start_dt) if start_dt else start,
            end=format_sheet_time(end_dt) if end_dt else None,
            url=cells.get('url') or None,
            tags=[tag for tag in tags_raw.split(',') if tag.strip()]
        )

    def _repeat(self, record: RawRecord) -> List[RawRecord]:
        """Weekly occurrences following ``record`` (the first one excluded)."""
        start_dt = parse_sheet_time(record.start)
        if start_dt is None:
            logger.warning(f"Cannot repeat '{record.title}': unparsable start {record.start!r}")
            return []
        end_dt = parse_sheet_time(record.end) if record.end else None

        occurrences = []
        for week in range(1, self.REPEAT_WEEKS):
            shift = timedelta(days=7 * week)
            occurrences.append(RawRecord(
                title=record.title,
                start=format_sheet_time(start_dt + shift),
                end=format_sheet_time(end_dt + shift) if end_dt else None,
                url=record.url,
                tags=list(record.tags)
            ))
        return occurrences

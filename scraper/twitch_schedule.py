"""Twitch stream schedule adapter (iCalendar feed)."""
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from icalendar import Calendar

from processor.models import RawRecord
from processor.time_utils import local_iso, utc_iso
from scraper.base import SourceAdapter

logger = logging.getLogger(__name__)


@dataclass
class TwitchChannel:
    """A followed Twitch channel, addressed by its numeric broadcaster id."""
    user: str
    label: str
    broadcaster_id: str

    @property
    def schedule_url(self) -> str:
        return f"https://www.twitch.tv/{self.user}/schedule"


DEFAULT_CHANNELS = [
    TwitchChannel(user='domingo', label='Domingo', broadcaster_id='40063341'),
    TwitchChannel(user='rivenzi', label='Rivenzi', broadcaster_id='32053915'),
    TwitchChannel(user='joueur_du_grenier', label='Joueur du Grenier', broadcaster_id='68078157'),
]

# Twitch writes zone ids with a leading slash (TZID=/Europe/Paris). Left as is,
# the parser treats the times as floating and they shift by the host offset.
_TZID_PARAM = re.compile(r'TZID=/([^:;"]+)')
_TZID_QUOTED = re.compile(r'TZID="/([^"]+)"')
_WR_TIMEZONE = re.compile(r'X-WR-TIMEZONE:/([^\r\n]+)')


def normalize_ics_timezones(ics_text: str) -> str:
    """Rewrite slash-prefixed timezone identifiers to standard IANA names."""
    text = _TZID_PARAM.sub(r'TZID=\1', ics_text or '')
    text = _TZID_QUOTED.sub(r'TZID="\1"', text)
    return _WR_TIMEZONE.sub(r'X-WR-TIMEZONE:\1', text)


def format_ical_time(value) -> Optional[str]:
    """
    Convert a decoded DTSTART/DTEND value to a feed timestamp.

    Aware datetimes become UTC instants, floating datetimes and all-day dates
    stay local wall-clock.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return utc_iso(value)
        return local_iso(value.year, value.month, value.day, value.hour, value.minute)
    if isinstance(value, date):
        return local_iso(value.year, value.month, value.day)
    return None


class TwitchScheduleAdapter(SourceAdapter):
    """Adapter for one channel's Twitch schedule iCalendar export."""

    ICAL_URL = "https://api.twitch.tv/helix/schedule/icalendar"

    def __init__(self, channel: TwitchChannel, timeout: int = SourceAdapter.DEFAULT_TIMEOUT):
        super().__init__(name=f"Twitch:{channel.user}", timeout=timeout)
        self.channel = channel

    def fetch_records(self) -> List[RawRecord]:
        response = self._get(self.ICAL_URL, params={'broadcaster_id': self.channel.broadcaster_id})
        return self.parse_ics(response.text)

    def parse_ics(self, ics_text: str) -> List[RawRecord]:
        """
        Parse VEVENT blocks of an iCalendar document.

        Args:
            ics_text: Raw iCalendar text

        Returns:
            List of RawRecord objects
        """
        calendar = Calendar.from_ical(normalize_ics_timezones(ics_text))
        return self._parse_each(calendar.walk('VEVENT'), self._parse_vevent)

    def _parse_vevent(self, component) -> Optional[RawRecord]:
        dtstart = component.get('dtstart')
        if dtstart is None:
            return None

        dtend = component.get('dtend')
        summary = str(component.get('summary') or '').strip() or 'Stream'

        return RawRecord(
            title=f"{self.channel.label} - {summary}",
            start=format_ical_time(dtstart.dt),
            end=format_ical_time(dtend.dt) if dtend is not None else None,
            url=self.channel.schedule_url,
            tags=['twitch', self.channel.user]
        )

"""Unit tests for TwitchScheduleAdapter."""
import responses
from requests.exceptions import Timeout

from scraper.twitch_schedule import (
    TwitchChannel,
    TwitchScheduleAdapter,
    normalize_ics_timezones,
)

ICAL_URL = "https://api.twitch.tv/helix/schedule/icalendar"

SAMPLE_ICS = "\r\n".join([
    "BEGIN:VCALENDAR",
    "VERSION:2.0",
    "PRODID:-//twitch.tv//StreamSchedule//1.0",
    "X-WR-TIMEZONE:/America/New_York",
    "BEGIN:VEVENT",
    "UID:segment-1",
    "DTSTAMP:20291201T000000Z",
    "DTSTART;TZID=/America/New_York:20300115T190000",
    "DTEND;TZID=/America/New_York:20300115T220000",
    "SUMMARY:Speedrun night",
    "END:VEVENT",
    "BEGIN:VEVENT",
    "UID:segment-2",
    "DTSTAMP:20291201T000000Z",
    "DTSTART:20300120T180000Z",
    "END:VEVENT",
    "BEGIN:VEVENT",
    "UID:segment-3",
    "DTSTAMP:20291201T000000Z",
    "DTSTART:20300121T200000",
    "SUMMARY:Floating",
    "END:VEVENT",
    "BEGIN:VEVENT",
    "UID:segment-4",
    "DTSTAMP:20291201T000000Z",
    "DTSTART;VALUE=DATE:20300122",
    "SUMMARY:All day",
    "END:VEVENT",
    "BEGIN:VEVENT",
    "UID:segment-5",
    "DTSTAMP:20291201T000000Z",
    "SUMMARY:No start",
    "END:VEVENT",
    "END:VCALENDAR",
    "",
])


def make_adapter():
    channel = TwitchChannel(user='domingo', label='Domingo', broadcaster_id='40063341')
    return TwitchScheduleAdapter(channel, timeout=20)


class TestNormalizeIcsTimezones:
    """Test cases for TZID normalization."""

    def test_strips_leading_slash(self):
        text = "DTSTART;TZID=/Europe/Paris:20300115T190000"
        assert normalize_ics_timezones(text) == "DTSTART;TZID=Europe/Paris:20300115T190000"

    def test_quoted_tzid(self):
        text = 'DTSTART;TZID="/Europe/Paris":20300115T190000'
        assert normalize_ics_timezones(text) == 'DTSTART;TZID="Europe/Paris":20300115T190000'

    def test_wr_timezone(self):
        assert normalize_ics_timezones("X-WR-TIMEZONE:/Europe/Paris\r\n") == "X-WR-TIMEZONE:Europe/Paris\r\n"

    def test_standard_ids_untouched(self):
        text = "DTSTART;TZID=Europe/Paris:20300115T190000"
        assert normalize_ics_timezones(text) == text


class TestTwitchScheduleAdapter:
    """Test cases for TwitchScheduleAdapter class."""

    @responses.activate
    def test_fetch_success(self):
        """Test successful fetch and parsing of the iCalendar feed."""
        responses.add(responses.GET, ICAL_URL, body=SAMPLE_ICS, status=200)

        result = make_adapter().fetch()

        assert result.ok
        assert result.source == "Twitch:domingo"
        assert len(result.records) == 4
        assert "broadcaster_id=40063341" in responses.calls[0].request.url

        stream = result.records[0]
        assert stream.title == "Domingo - Speedrun night"
        # 19:00 New York (EST) is midnight UTC
        assert stream.start == "2030-01-16T00:00:00Z"
        assert stream.end == "2030-01-16T03:00:00Z"
        assert stream.url == "https://www.twitch.tv/domingo/schedule"
        assert stream.tags == ["twitch", "domingo"]

    @responses.activate
    def test_default_summary_and_time_kinds(self):
        """Test UTC, floating and all-day start values."""
        responses.add(responses.GET, ICAL_URL, body=SAMPLE_ICS, status=200)

        records = make_adapter().fetch().records

        assert records[1].title == "Domingo - Stream"
        assert records[1].start == "2030-01-20T18:00:00Z"
        assert records[1].end is None
        assert records[2].start == "2030-01-21T20:00:00"
        assert records[3].start == "2030-01-22T00:00:00"

    @responses.activate
    def test_http_error_is_reported(self):
        """Test that a non-2xx response becomes an adapter error."""
        responses.add(responses.GET, ICAL_URL, body="Server Error", status=500)

        result = make_adapter().fetch()

        assert not result.ok
        assert "500" in result.error
        assert result.records == []

    @responses.activate
    def test_timeout_is_reported_without_retry(self):
        """Test that a timeout fails the adapter after a single attempt."""
        responses.add(responses.GET, ICAL_URL, body=Timeout("Request timed out"))

        result = make_adapter().fetch()

        assert not result.ok
        assert "timed out" in result.error
        assert len(responses.calls) == 1

"""Event processor normalizing adapter records into feed events."""
import logging
import re
from typing import List, Optional

from processor.models import Event, RawRecord
from processor.tagging import clean_tags

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')


def collapse_whitespace(text: Optional[str]) -> str:
    return _WHITESPACE.sub(' ', str(text or '')).strip()


class EventProcessor:
    """Processor for validating and normalizing event records."""

    MAX_TITLE_LENGTH = 200

    def normalize_all(self, records: List[RawRecord], source: str) -> List[Event]:
        """
        Normalize a batch of records from one source.

        Args:
            records: Records returned by a source adapter
            source: Label of the adapter that produced them

        Returns:
            List of valid Event objects
        """
        events = []

        for record in records:
            event = self.normalize(record, source)
            if event:
                events.append(event)

        if len(events) != len(records):
            logger.info(
                f"Normalized {len(events)} valid events out of "
                f"{len(records)} records from {source}"
            )
        return events

    def normalize(self, record: RawRecord, source: str) -> Optional[Event]:
        """
        Normalize a single record.

        Args:
            record: Provisional record from an adapter
            source: Source label attached to the event

        Returns:
            Event object or None if required fields are missing
        """
        title = collapse_whitespace(record.title)[:self.MAX_TITLE_LENGTH]
        start = collapse_whitespace(record.start)

        if not title:
            logger.warning(f"Record from {source} missing required field: title")
            return None
        if not start:
            logger.warning(f"Record '{title}' from {source} missing required field: start")
            return None

        return Event(
            title=title,
            start=start,
            source=collapse_whitespace(source) or 'unknown',
            end=collapse_whitespace(record.end) or None,
            url=collapse_whitespace(record.url) or None,
            tags=clean_tags(record.tags)
        )

"""Aggregator running all source adapters and assembling the event feed."""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone, tzinfo
from typing import Dict, List, Optional, Sequence, Tuple

from processor.event_processor import EventProcessor
from processor.models import AdapterResult, Event, StatusSummary
from processor.time_utils import (
    DEFAULT_STALE_HOURS,
    is_stale,
    parse_timestamp,
)

logger = logging.getLogger(__name__)


def dedupe(events: List[Event]) -> List[Event]:
    """Keep the first event of each case-insensitive source|title|start key."""
    seen = set()
    unique = []
    for event in events:
        key = event.identity_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(event)
    return unique


def filter_stale(
    events: List[Event],
    now: datetime,
    local_tz: tzinfo,
    max_past_hours: float = DEFAULT_STALE_HOURS
) -> List[Event]:
    """Drop events that started more than ``max_past_hours`` before ``now``."""
    return [
        event for event in events
        if not is_stale(event.start, now, local_tz, max_past_hours)
    ]


def sort_events(events: List[Event], local_tz: tzinfo) -> List[Event]:
    """Sort events by start instant; unparsable starts go last, in input order."""
    def sort_key(event: Event):
        parsed = parse_timestamp(event.start, local_tz)
        if parsed is None:
            return (1, 0.0)
        return (0, parsed.timestamp())

    return sorted(events, key=sort_key)


def build_status(
    events: List[Event],
    sources: Sequence[str],
    errors: List[str],
    now: datetime
) -> StatusSummary:
    """Summarize the final feed: per-source counts and adapter errors."""
    counts: Dict[str, int] = {source: 0 for source in sources}
    for event in events:
        counts[event.source] = counts.get(event.source, 0) + 1

    return StatusSummary(
        generated_at=now.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z'),
        total=len(events),
        counts=counts,
        errors=list(errors)
    )


class Aggregator:
    """Runs adapters independently and merges their events into one feed."""

    def __init__(
        self,
        local_tz: tzinfo = timezone.utc,
        max_past_hours: float = DEFAULT_STALE_HOURS,
        max_workers: int = 4,
        processor: Optional[EventProcessor] = None
    ):
        """
        Initialize the aggregator.

        Args:
            local_tz: Timezone of wall-clock timestamps without offset
            max_past_hours: Staleness window in hours
            max_workers: Number of adapters fetched concurrently
            processor: Normalizer applied to adapter records
        """
        self.local_tz = local_tz
        self.max_past_hours = max_past_hours
        self.max_workers = max(1, max_workers)
        self.processor = processor or EventProcessor()

    def run(self, adapters: Sequence, now: Optional[datetime] = None) -> Tuple[List[Event], StatusSummary]:
        """
        Fetch every adapter and build the feed and its status summary.

        A failing adapter contributes no events and one entry in ``errors``;
        it never prevents other adapters from running.

        Args:
            adapters: Source adapters exposing ``name`` and ``fetch()``
            now: Reference time (default: current time)

        Returns:
            Tuple of (sorted events, status summary)
        """
        results = self._fetch_all(adapters)

        merged: List[Event] = []
        errors: List[str] = []
        for result in results:
            if not result.ok:
                errors.append(f"{result.source}: {result.error}")
                continue
            events = self.processor.normalize_all(result.records, result.source)
            logger.info(f"{result.source}: {len(events)} events")
            merged.extend(events)

        now = now or datetime.now(timezone.utc)
        unique = dedupe(merged)
        fresh = filter_stale(unique, now, self.local_tz, self.max_past_hours)
        final = sort_events(fresh, self.local_tz)

        logger.info(
            f"Aggregated {len(final)} events "
            f"({len(merged)} merged, {len(merged) - len(unique)} duplicates, "
            f"{len(unique) - len(fresh)} stale)"
        )

        status = build_status(final, [result.source for result in results], errors, now)
        return final, status

    def _fetch_all(self, adapters: Sequence) -> List[AdapterResult]:
        """Fetch adapters concurrently, returning results in adapter order."""
        if not adapters:
            return []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(adapters))) as pool:
            futures = [pool.submit(self._fetch_one, adapter) for adapter in adapters]
            return [future.result() for future in futures]

    def _fetch_one(self, adapter) -> AdapterResult:
        try:
            return adapter.fetch()
        except Exception as e:
            # fetch() already isolates errors; this covers adapters that don't
            logger.error(f"Adapter {adapter.name} raised: {e}", exc_info=True)
            return AdapterResult(source=adapter.name, error=str(e) or type(e).__name__)

"""Base class shared by all source adapters."""
import logging
import time
from typing import Any, Callable, Iterable, List, Optional

import requests

from processor.models import AdapterResult, RawRecord

logger = logging.getLogger(__name__)


class SourceAdapter:
    """
    Fetches one external source and parses it into raw records.

    Subclasses implement ``fetch_records``. ``fetch`` wraps it so that any
    failure (timeout, HTTP error, unexpected payload) becomes an error on the
    returned result instead of an exception. All requests made by one
    ``fetch`` share a total time budget of ``max_duration`` seconds.
    """

    USER_AGENT = 'event-feed-sync/1.0 (+scheduled job)'
    DEFAULT_TIMEOUT = 20
    MAX_DURATION = 60

    def __init__(self, name: str, timeout: int = DEFAULT_TIMEOUT, max_duration: float = MAX_DURATION):
        """
        Initialize the adapter.

        Args:
            name: Source label used for events and status counts
            timeout: HTTP request timeout in seconds (default: 20)
            max_duration: Total time budget of one fetch in seconds (default: 60)
        """
        self.name = name
        self.timeout = timeout
        self.max_duration = max_duration
        self._deadline = None
        self.session = requests.Session()
        self.session.headers.update({'User-Agent': self.USER_AGENT})

    def fetch(self) -> AdapterResult:
        """
        Fetch and parse the source.

        Returns:
            AdapterResult with the records, or with the error message
        """
        self._deadline = time.monotonic() + self.max_duration
        try:
            records = self.fetch_records()
        except Exception as e:
            logger.error(
                f"Source {self.name} failed: {e}",
                extra={'source': self.name, 'error_type': type(e).__name__}
            )
            return AdapterResult(source=self.name, error=str(e) or type(e).__name__)
        finally:
            self._deadline = None
            self.session.close()

        logger.info(f"Fetched {len(records)} records from {self.name}")
        return AdapterResult(source=self.name, records=records)

    def fetch_records(self) -> List[RawRecord]:
        raise NotImplementedError

    def _get(self, url: str, **kwargs) -> requests.Response:
        """
        GET a URL with the adapter timeout, bounded by the remaining fetch budget.

        Raises:
            requests.RequestException: On network error, timeout or non-2xx status
        """
        timeout = kwargs.pop('timeout', self.timeout)
        if self._deadline is not None:
            remaining = self._deadline - time.monotonic()
            if remaining <= 0:
                raise requests.Timeout(f"{self.name} exceeded its {self.max_duration}s budget")
            timeout = min(timeout, remaining)

        kwargs['timeout'] = timeout
        response = self.session.get(url, **kwargs)
        response.raise_for_status()
        return response

    def _parse_each(
        self,
        items: Iterable[Any],
        parse: Callable[[Any], Optional[RawRecord]]
    ) -> List[RawRecord]:
        """Apply ``parse`` to every item, skipping items that fail or yield nothing."""
        records = []
        for item in items:
            try:
                record = parse(item)
            except Exception as e:
                logger.warning(f"Failed to parse {self.name} item: {e}")
                continue
            if record and record.title and record.start:
                records.append(record)
        return records

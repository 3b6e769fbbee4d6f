"""AWS Lambda handler for the event feed sync."""
import json
import logging
import os
import sys
import time
from typing import Dict, Any

from scraper.registry import build_adapters
from processor.aggregator import Aggregator
from processor.time_utils import DEFAULT_LOCAL_TIMEZONE, load_timezone
from storage.feed_writer import create_writer


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    EXTRA_FIELDS = ('source', 'error_type', 'destination', 'duration_seconds', 'total', 'errors')

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler: fetch every source and publish the feed.

    Args:
        event: Scheduler event payload (unused)
        context: Lambda context object

    Returns:
        Response dict with statusCode and summary statistics
    """
    # Read configuration from environment variables
    destination = os.environ.get('OUTPUT_DESTINATION', 'data')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '20'))
    stale_hours = float(os.environ.get('STALE_HOURS', '5'))
    local_timezone = os.environ.get('LOCAL_TIMEZONE', DEFAULT_LOCAL_TIMEZONE)
    max_workers = int(os.environ.get('MAX_WORKERS', '4'))

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Feed sync started",
        extra={'destination': destination}
    )

    try:
        writer = create_writer(destination)
    except Exception as e:
        logger.error(f"Cannot create output writer: {e}", exc_info=True)
        return _error_response('Failed to configure output', e, start_time)

    try:
        adapters = build_adapters(
            timeout=timeout_seconds,
            football_data_token=os.environ.get('FOOTBALL_DATA_TOKEN'),
            anime_sheet_url=os.environ.get('ANIME_SHEET_URL'),
            fixture_page_url=os.environ.get('FIXTURE_PAGE_URL')
        )
        aggregator = Aggregator(
            local_tz=load_timezone(local_timezone),
            max_past_hours=stale_hours,
            max_workers=max_workers
        )

        events, status = aggregator.run(adapters)
        writer.write(events, status)

    except Exception as e:
        logger.error(
            f"Feed sync failed: {e}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        writer.write_failure_status(str(e) or type(e).__name__)
        return _error_response('Sync failed', e, start_time)

    duration = time.time() - start_time

    if status.errors:
        logger.warning(f"{len(status.errors)} sources failed", extra={'errors': status.errors})
    logger.info(
        "Feed sync completed",
        extra={
            'duration_seconds': round(duration, 2),
            'total': status.total
        }
    )

    return {
        'statusCode': 200,
        'body': json.dumps({
            'message': 'Sync completed successfully',
            'statistics': {
                'total_events': status.total,
                'sources': len(status.counts),
                'failed_sources': len(status.errors),
                'counts': status.counts,
                'duration_seconds': round(duration, 2)
            },
            'errors': status.errors
        })
    }


def _error_response(message: str, error: Exception, start_time: float) -> Dict[str, Any]:
    duration = time.time() - start_time
    return {
        'statusCode': 500,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            'duration_seconds': round(duration, 2)
        })
    }


if __name__ == '__main__':
    response = lambda_handler({}, None)
    sys.exit(0 if response['statusCode'] == 200 else 1)

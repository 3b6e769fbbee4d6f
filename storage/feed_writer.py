"""Writers persisting the event feed and status documents."""
import json
import logging
import os
from datetime import datetime, timezone
from typing import List

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from processor.models import Event, StatusSummary

logger = logging.getLogger(__name__)

EVENTS_FILENAME = 'generated.json'
STATUS_FILENAME = 'status.json'


def _dumps(document) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def failure_status(message: str) -> dict:
    """Minimal status document recording a failed run."""
    return StatusSummary(
        generated_at=datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        total=0,
        counts={},
        errors=[message]
    ).to_dict()


class FeedWriter:
    """Writes the feed and status documents to a local directory."""

    def __init__(self, directory: str):
        """
        Initialize the writer.

        Args:
            directory: Output directory, created when missing
        """
        self.directory = directory

    def write(self, events: List[Event], status: StatusSummary) -> None:
        """
        Persist both documents.

        Raises:
            OSError: If a document cannot be written
        """
        self._put(EVENTS_FILENAME, _dumps([event.to_dict() for event in events]))
        self._put(STATUS_FILENAME, _dumps(status.to_dict()))
        logger.info(f"Wrote {len(events)} events to {self.describe(EVENTS_FILENAME)}")

    def write_failure_status(self, message: str) -> bool:
        """
        Best-effort write of a status document recording a failed run.

        Returns:
            True if the document was written
        """
        try:
            self._put(STATUS_FILENAME, _dumps(failure_status(message)))
            return True
        except Exception as e:
            logger.error(f"Could not write failure status: {e}")
            return False

    def describe(self, name: str) -> str:
        return os.path.join(self.directory, name)

    def _put(self, name: str, body: str) -> None:
        os.makedirs(self.directory, exist_ok=True)
        with open(os.path.join(self.directory, name), 'w', encoding='utf-8') as handle:
            handle.write(body)


class S3FeedWriter(FeedWriter):
    """Writes the feed and status documents as objects in an S3 bucket."""

    def __init__(self, bucket: str, prefix: str = ''):
        """
        Initialize S3 client.

        Args:
            bucket: Target bucket name
            prefix: Key prefix (acts as the output directory)
        """
        super().__init__(directory=prefix.strip('/'))
        self.bucket = bucket
        self.s3 = boto3.client('s3')
        logger.info(f"Initialized S3FeedWriter for s3://{bucket}/{self.directory}")

    def describe(self, name: str) -> str:
        return f"s3://{self.bucket}/{self._key(name)}"

    def _key(self, name: str) -> str:
        return f"{self.directory}/{name}" if self.directory else name

    def _put(self, name: str, body: str) -> None:
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=self._key(name),
                Body=body.encode('utf-8'),
                ContentType='application/json',
                CacheControl='no-cache'
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error writing {self.describe(name)}: {e}")
            raise


def create_writer(destination: str) -> FeedWriter:
    """Create a writer for a local directory or an ``s3://bucket/prefix`` URL."""
    if destination.startswith('s3://'):
        bucket, _, prefix = destination[len('s3://'):].partition('/')
        return S3FeedWriter(bucket=bucket, prefix=prefix)
    return FeedWriter(directory=destination)

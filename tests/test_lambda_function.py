"""Integration tests for Lambda handler."""
import json
import logging
import os
from unittest.mock import Mock, patch

import pytest

from lambda_function import JsonFormatter, lambda_handler, setup_logging
from processor.models import AdapterResult, Event, RawRecord, StatusSummary


@pytest.fixture
def mock_env(tmp_path):
    """Set up environment variables for testing."""
    env_vars = {
        'OUTPUT_DESTINATION': str(tmp_path / 'data'),
        'LOG_LEVEL': 'INFO',
        'TIMEOUT_SECONDS': '20',
        'STALE_HOURS': '5',
        'LOCAL_TIMEZONE': 'Europe/Paris',
        'MAX_WORKERS': '2',
        'FOOTBALL_DATA_TOKEN': 'secret'
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


@pytest.fixture
def mock_context():
    """Create a mock Lambda context."""
    context = Mock()
    context.function_name = 'test-function'
    context.aws_request_id = 'test-request-id'
    return context


@pytest.fixture
def sample_events():
    return [
        Event(title='Domingo - Stream', start='2030-01-16T00:00:00Z', source='Twitch:domingo',
              tags=['twitch', 'domingo']),
        Event(title='[LEC] Fnatic vs G2 Esports', start='2030-03-01T17:00:00Z', source='lolix.gg',
              tags=['lolix', 'esport']),
    ]


@pytest.fixture
def sample_status():
    return StatusSummary(
        generated_at='2030-01-15T08:00:00Z',
        total=2,
        counts={'Twitch:domingo': 1, 'lolix.gg': 1, 'football-data.org': 0},
        errors=['football-data.org: 429 Client Error']
    )


class FakeAdapter:
    def __init__(self, name, records=None, error=None):
        self.name = name
        self.records = records or []
        self.error = error

    def fetch(self):
        return AdapterResult(source=self.name, records=self.records, error=self.error)


class TestLambdaHandler:
    """Test cases for Lambda handler."""

    @patch('lambda_function.create_writer')
    @patch('lambda_function.Aggregator')
    @patch('lambda_function.build_adapters')
    def test_successful_sync(
        self,
        mock_build_adapters,
        mock_aggregator_class,
        mock_create_writer,
        mock_env,
        mock_context,
        sample_events,
        sample_status
    ):
        """Test successful end-to-end sync process."""
        adapters = [Mock(), Mock()]
        mock_build_adapters.return_value = adapters

        mock_aggregator = Mock()
        mock_aggregator.run.return_value = (sample_events, sample_status)
        mock_aggregator_class.return_value = mock_aggregator

        mock_writer = Mock()
        mock_create_writer.return_value = mock_writer

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert body['message'] == 'Sync completed successfully'
        assert body['statistics']['total_events'] == 2
        assert body['statistics']['sources'] == 3
        assert body['statistics']['failed_sources'] == 1
        assert body['statistics']['counts']['football-data.org'] == 0
        assert 'duration_seconds' in body['statistics']
        assert body['errors'] == ['football-data.org: 429 Client Error']

        mock_create_writer.assert_called_once_with(mock_env['OUTPUT_DESTINATION'])
        mock_build_adapters.assert_called_once_with(
            timeout=20,
            football_data_token='secret',
            anime_sheet_url=None,
            fixture_page_url=None
        )
        aggregator_kwargs = mock_aggregator_class.call_args.kwargs
        assert aggregator_kwargs['max_past_hours'] == 5.0
        assert aggregator_kwargs['max_workers'] == 2
        mock_aggregator.run.assert_called_once_with(adapters)
        mock_writer.write.assert_called_once_with(sample_events, sample_status)
        assert not mock_writer.write_failure_status.called

    @patch('lambda_function.create_writer')
    @patch('lambda_function.Aggregator')
    @patch('lambda_function.build_adapters')
    def test_write_failure(
        self,
        mock_build_adapters,
        mock_aggregator_class,
        mock_create_writer,
        mock_env,
        mock_context,
        sample_events,
        sample_status
    ):
        """Test that a write failure fails the run and records a failure status."""
        mock_build_adapters.return_value = []
        mock_aggregator_class.return_value.run.return_value = (sample_events, sample_status)

        mock_writer = Mock()
        mock_writer.write.side_effect = OSError('No space left on device')
        mock_create_writer.return_value = mock_writer

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 500
        body = json.loads(response['body'])
        assert body['message'] == 'Sync failed'
        assert 'No space left on device' in body['error']
        assert body['error_type'] == 'OSError'
        assert 'duration_seconds' in body
        mock_writer.write_failure_status.assert_called_once_with('No space left on device')

    @patch('lambda_function.create_writer')
    def test_invalid_destination(self, mock_create_writer, mock_env, mock_context):
        mock_create_writer.side_effect = ValueError('bad destination')

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 500
        assert json.loads(response['body'])['message'] == 'Failed to configure output'

    @patch('lambda_function.build_adapters')
    def test_partial_failure_writes_feed(self, mock_build_adapters, mock_env, mock_context):
        """Test a run where one source fails: the others are still published."""
        mock_build_adapters.return_value = [
            FakeAdapter('X', error='Read timed out. (read timeout=20)'),
            FakeAdapter('Y', records=[RawRecord(title='Match', start='2030-01-01T10:00:00Z')]),
            FakeAdapter('Z', records=[RawRecord(title='Stream', start='2030-01-01T09:00:00Z')]),
        ]

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        output_dir = mock_env['OUTPUT_DESTINATION']
        with open(os.path.join(output_dir, 'generated.json'), encoding='utf-8') as handle:
            events = json.load(handle)
        with open(os.path.join(output_dir, 'status.json'), encoding='utf-8') as handle:
            status = json.load(handle)

        assert [event['title'] for event in events] == ['Stream', 'Match']
        assert status['total'] == 2
        assert status['counts'] == {'X': 0, 'Y': 1, 'Z': 1}
        assert len(status['errors']) == 1
        assert 'X' in status['errors'][0]

    @patch('lambda_function.Aggregator')
    @patch('lambda_function.build_adapters')
    @patch('lambda_function.setup_logging')
    def test_logging_output(
        self,
        mock_setup_logging,
        mock_build_adapters,
        mock_aggregator_class,
        mock_env,
        mock_context,
        sample_events,
        sample_status,
        caplog
    ):
        """Test that logging output is generated correctly."""
        mock_build_adapters.return_value = []
        mock_aggregator_class.return_value.run.return_value = (sample_events, sample_status)

        with caplog.at_level(logging.INFO, logger='lambda_function'):
            response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        log_messages = [record.message for record in caplog.records]
        assert any('Feed sync started' in msg for msg in log_messages)
        assert any('1 sources failed' in msg for msg in log_messages)
        assert any('Feed sync completed' in msg for msg in log_messages)


class TestSetupLogging:
    """Test cases for logging setup."""

    def test_setup_logging_default_level(self):
        """Test logging setup with default INFO level."""
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        """Test logging setup with DEBUG level."""
        setup_logging('DEBUG')
        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_unknown_level_defaults_to_info(self):
        setup_logging('CHATTY')
        assert logging.getLogger().level == logging.INFO

    def test_json_formatter_includes_extra_fields(self):
        record = logging.LogRecord('scraper.base', logging.ERROR, __file__, 1, 'Source X failed', None, None)
        record.source = 'X'

        data = json.loads(JsonFormatter().format(record))

        assert data['level'] == 'ERROR'
        assert data['message'] == 'Source X failed'
        assert data['logger'] == 'scraper.base'
        assert data['source'] == 'X'
        assert 'exception' not in data

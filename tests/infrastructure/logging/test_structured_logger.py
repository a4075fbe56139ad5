"""Tests for structured logging."""

import json
import logging
import uuid

import pytest

from quadgrid.infrastructure.logging import (
    LoggingContext, StructuredLogger, get_logger, log_operation, setup_logging, setup_simple_logging
)
from quadgrid.infrastructure.logging.formatters import HumanFormatter, JsonFormatter
from quadgrid.infrastructure.logging.handlers import ConsoleHandler


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__(logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def logger_and_records():
    """Fresh structured logger with an attached recording handler."""
    name = f"quadgrid.tests.{uuid.uuid4().hex[:8]}"
    logger = get_logger(name)
    logger.setLevel(logging.DEBUG)
    handler = RecordingHandler()
    logger.addHandler(handler)
    yield logger, handler.records
    logger.removeHandler(handler)


class TestStructuredLogger:
    """Test StructuredLogger context injection."""

    def test_get_logger_cached(self):
        logger = get_logger('quadgrid.tests.cached')

        assert isinstance(logger, StructuredLogger)
        assert get_logger('quadgrid.tests.cached') is logger
        assert not issubclass(logging.getLoggerClass(), StructuredLogger)

    def test_context_fields(self, logger_and_records):
        logger, records = logger_and_records
        logger.add_context(job='nightly')
        logger.info("hello", extra={'context': {'cells': 9}})

        context = records[-1].context
        assert context['job'] == 'nightly'
        assert context['cells'] == 9
        assert context['logger_name'] == logger.name
        assert 'run_id' not in context

        logger.remove_context('job')
        logger.info("again")
        assert 'job' not in records[-1].context

    def test_extra_dict_not_mutated(self, logger_and_records):
        logger, _ = logger_and_records
        extra = {'context': {'a': 1}, 'performance': {'b': 2}}
        logger.info("msg", extra=extra)
        assert extra == {'context': {'a': 1}, 'performance': {'b': 2}}

    def test_log_performance(self, logger_and_records):
        logger, records = logger_and_records
        logger.log_performance('subdivide', 2.0, cells_processed=36)

        perf = records[-1].performance
        assert records[-1].levelno == logging.DEBUG
        assert perf['operation'] == 'subdivide'
        assert perf['cells_per_second'] == 18.0

    def test_performance_without_cell_count(self, logger_and_records):
        logger, records = logger_and_records
        logger.log_performance('stage_build', 0.5, status='completed')

        assert records[-1].performance['status'] == 'completed'
        assert 'cells_per_second' not in records[-1].performance

    def test_traceback_from_exc_info_true(self, logger_and_records):
        logger, records = logger_and_records
        try:
            {}['missing']
        except KeyError:
            logger.error("lookup failed", exc_info=True)

        assert "KeyError: 'missing'" in records[-1].traceback
        assert not records[-1].exc_info

    def test_error_with_context(self, logger_and_records):
        logger, records = logger_and_records
        try:
            raise ValueError("bad cell")
        except ValueError as e:
            logger.log_error_with_context(e, operation='select', cell_id=4)

        record = records[-1]
        assert record.levelno == logging.ERROR
        assert record.context['error_type'] == 'ValueError'
        assert record.context['operation'] == 'select'
        assert record.context['cell_id'] == 4
        assert 'ValueError: bad cell' in record.traceback


class TestLogOperation:
    """Test the log_operation decorator."""

    def test_success_logs_performance(self, caplog):
        @log_operation('make_cells')
        def make_cells():
            return [1, 2, 3]

        with caplog.at_level(logging.DEBUG):
            assert make_cells() == [1, 2, 3]

        perf = [r.performance for r in caplog.records if getattr(r, 'performance', None)]
        assert perf[-1]['operation'] == 'make_cells'
        assert perf[-1]['cells_processed'] == 3

    def test_failure_logged_and_reraised(self, caplog):
        @log_operation()
        def explode():
            raise RuntimeError("boom")

        with caplog.at_level(logging.DEBUG):
            with pytest.raises(RuntimeError, match="boom"):
                explode()

        failures = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert failures[-1].getMessage() == "Failed explode: boom"
        assert failures[-1].performance['status'] == 'failed'
        assert 'RuntimeError: boom' in failures[-1].traceback

    def test_failure_inside_stage_left_to_stage(self, caplog):
        @log_operation('explode')
        def explode():
            raise RuntimeError("boom")

        ctx = LoggingContext(run_id='run-1')
        with caplog.at_level(logging.DEBUG):
            with pytest.raises(RuntimeError):
                with ctx.pipeline('refine'):
                    with ctx.stage('pass_1'):
                        explode()

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert [r.getMessage() for r in errors] == ["RuntimeError: boom"]
        assert errors[0].context['operation'] == 'stage_pass_1'

        decorator_record = next(r for r in caplog.records if r.getMessage() == "Failed explode: boom")
        assert decorator_record.levelno == logging.DEBUG
        assert not getattr(decorator_record, 'traceback', None)
        assert ctx.get_timings()['pipeline_refine/pass_1']['status'] == 'failed'


class TestLoggingContext:
    """Test pipeline and stage context propagation."""

    def test_run_and_stage_in_records(self, logger_and_records):
        logger, records = logger_and_records
        ctx = LoggingContext(run_id='run-1234')

        with ctx.pipeline('refine'):
            with ctx.stage('pass_1'):
                logger.info("inside")
                assert ctx.current_stage == 'pass_1'
                assert ctx.current_node == 'pipeline_refine/pass_1'
            logger.info("between")

        logger.info("outside")

        inside, between, outside = records[-3:]
        assert inside.context['run_id'] == 'run-1234'
        assert inside.context['stage'] == 'pass_1'
        assert between.context['run_id'] == 'run-1234'
        assert 'stage' not in between.context
        assert 'run_id' not in outside.context

    def test_failed_stage(self, caplog):
        ctx = LoggingContext()

        with caplog.at_level(logging.ERROR):
            with pytest.raises(KeyError):
                with ctx.pipeline('refine'):
                    with ctx.stage('build'):
                        raise KeyError('x')

        timings = ctx.get_timings()
        assert timings['pipeline_refine/build']['status'] == 'failed'
        assert timings['pipeline_refine']['status'] == 'failed'
        assert any(getattr(r, 'context', {}).get('operation') == 'stage_build' for r in caplog.records)
        assert ctx.current_stage is None

    def test_generated_run_id(self):
        assert LoggingContext().run_id != LoggingContext().run_id


class TestFormattersAndSetup:
    """Test output formatting and root logger setup."""

    def _record(self, logger, records, **extra):
        logger.info("formatted %s", 'message', extra=extra or None)
        return records[-1]

    def test_json_formatter(self, logger_and_records):
        logger, records = logger_and_records
        record = self._record(logger, records, context={'cells': 4})

        data = json.loads(JsonFormatter().format(record))
        assert data['message'] == 'formatted message'
        assert data['level'] == 'INFO'
        assert data['context']['cells'] == 4

    def test_human_formatter(self, logger_and_records):
        logger, records = logger_and_records
        with LoggingContext(run_id='abcdef123456').pipeline('refine'):
            record = self._record(logger, records)

        text = HumanFormatter(use_colors=False).format(record)
        assert 'run:abcdef12' in text
        assert text.endswith('formatted message')

    def test_console_handler_no_color_for_pipes(self, tmp_path):
        with open(tmp_path / 'out.txt', 'w') as stream:
            handler = ConsoleHandler(stream=stream)
        assert handler.formatter.use_colors is False

    def test_setup_logging_writes_json(self, tmp_path, restore_root_logging):
        log_file = tmp_path / 'logs' / 'run.log'
        config = {'logging.level': 'INFO'}

        class DictConfig:
            def get(self, key, default=None):
                return config.get(key, default)

        setup_logging(DictConfig(), log_file=log_file, console=False)
        get_logger('quadgrid.tests.setup').info("to file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert any(line['message'] == 'to file' for line in lines)

    def test_setup_simple_logging(self, restore_root_logging):
        setup_simple_logging('WARNING')
        root = logging.getLogger()

        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], ConsoleHandler)

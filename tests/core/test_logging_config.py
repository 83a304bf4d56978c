"""
Unit tests for structured logging.
"""

import json
import logging
import sys

import pytest

from pareto_select.logging_config import (
    HumanFormatter,
    SelectionLogger,
    StructuredFormatter,
    configure_logging,
    get_logger,
)


def make_record(**extra):
    record = logging.LogRecord(
        name="pareto_select.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Generation %d selection complete",
        args=(4,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_loggers():
    names = ["pareto_select", "pareto", "selection"]
    saved = {n: (logging.getLogger(n).level, list(logging.getLogger(n).handlers)) for n in names}
    yield
    for name, (level, handlers) in saved.items():
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.handlers[:] = handlers


class TestStructuredFormatter:
    """Test suite for JSON log output"""

    def test_core_fields(self):
        data = json.loads(StructuredFormatter().format(make_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "pareto_select.engine"
        assert data["message"] == "Generation 4 selection complete"
        assert data["timestamp"].endswith("Z")

    def test_extra_fields(self):
        record = make_record(generation=4, hypervolume=0.31, front_count=2, ignored="x")
        data = json.loads(StructuredFormatter().format(record))
        assert data["generation"] == 4
        assert data["hypervolume"] == 0.31
        assert data["front_count"] == 2
        assert "ignored" not in data

    def test_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()
        data = json.loads(StructuredFormatter().format(record))
        assert "RuntimeError: boom" in data["exception"]


class TestHumanFormatter:
    """Test suite for console log output"""

    def test_plain(self):
        line = HumanFormatter(use_colors=False).format(make_record())
        assert "INFO pareto_select.engine: Generation 4 selection complete" in line
        assert "\033[" not in line

    def test_context(self):
        record = make_record(generation=4, hypervolume=0.3125, duration_ms=12)
        line = HumanFormatter(use_colors=False).format(record)
        assert line.endswith("[gen=4, hv=0.3125, took=12ms]")

    def test_colors(self):
        line = HumanFormatter(use_colors=True).format(make_record())
        assert "\033[32m" in line


class TestSelectionLogger:
    """Test suite for SelectionLogger"""

    def test_context_attached(self, caplog):
        logger = SelectionLogger("pareto_select.test")
        logger.set_context(generation=7)
        with caplog.at_level(logging.DEBUG, logger="pareto_select.test"):
            logger.parents_selected(7, 10)
        record = caplog.records[-1]
        assert record.generation == 7
        assert record.event_type == "parents_selected"

    def test_clear_context(self, caplog):
        logger = SelectionLogger("pareto_select.test")
        logger.set_context(candidate_id="c1")
        logger.clear_context()
        with caplog.at_level(logging.INFO, logger="pareto_select.test"):
            logger.info("plain")
        assert not hasattr(caplog.records[-1], "candidate_id")

    def test_generation_complete(self, caplog):
        logger = get_logger("pareto_select.test")
        with caplog.at_level(logging.INFO, logger="pareto_select.test"):
            logger.generation_complete(3, 0.5, 2, 15)
        record = caplog.records[-1]
        assert record.hypervolume == 0.5
        assert record.front_count == 2
        assert record.duration_ms == 15

    def test_saturation_is_warning(self, caplog):
        logger = get_logger("pareto_select.test")
        with caplog.at_level(logging.WARNING, logger="pareto_select.test"):
            logger.hypervolume_saturated(9, 0.8)
        assert caplog.records[-1].levelno == logging.WARNING


class TestConfigureLogging:
    """Test suite for configure_logging"""

    def test_levels_and_handlers(self, restore_loggers):
        configure_logging(level="debug", use_colors=False)
        root = logging.getLogger("pareto_select")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, HumanFormatter)
        for name in ("pareto", "selection"):
            assert logging.getLogger(name).level == logging.DEBUG
            assert logging.getLogger(name).handlers == root.handlers

    def test_json_output(self, restore_loggers):
        configure_logging(json_output=True)
        root = logging.getLogger("pareto_select")
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)

    def test_log_file(self, restore_loggers, tmp_path):
        log_file = tmp_path / "logs" / "select.log"
        configure_logging(level="INFO", log_file=log_file)
        logging.getLogger("selection.tournament").info("Selected 4 parents")
        for handler in logging.getLogger("pareto_select").handlers:
            handler.flush()
        lines = log_file.read_text().strip().splitlines()
        assert json.loads(lines[-1])["message"] == "Selected 4 parents"

"""Tests for chainops.utils."""

import json
import logging

import pytest

from chainops.errors import ConfigError
from chainops.utils import StructuredFormatter, format_duration, load_document, setup_logging


class TestLoadDocument:

    @pytest.mark.parametrize("filename,content", [
        ("doc.toml", 'name = "x"\n'),
        ("doc.yaml", "name: x\n"),
        ("doc.yml", "name: x\n"),
        ("doc.json", '{"name": "x"}'),
    ])
    def test_formats(self, tmp_path, filename, content):
        path = tmp_path / filename
        path.write_text(content)
        assert load_document(path) == {"name": "x"}

    def test_missing(self, tmp_path):
        with pytest.raises(ConfigError, match="File not found"):
            load_document(tmp_path / "doc.toml")

    def test_unsupported(self, tmp_path):
        path = tmp_path / "doc.ini"
        path.write_text("[x]")
        with pytest.raises(ConfigError, match="Unsupported file format"):
            load_document(path)

    def test_invalid_syntax(self, tmp_path):
        path = tmp_path / "doc.json"
        path.write_text("{")
        with pytest.raises(ConfigError, match="Invalid json syntax"):
            load_document(path)

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "doc.yaml"
        path.write_text("")
        with pytest.raises(ConfigError, match="empty"):
            load_document(path)

    def test_non_table(self, tmp_path):
        path = tmp_path / "doc.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="got list"):
            load_document(path)


class TestFormatDuration:

    @pytest.mark.parametrize("seconds,expected", [
        (0.4, "0s"),
        (45, "45s"),
        (83, "1m 23s"),
        (3725, "1h 2m 5s"),
    ])
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestLogging:

    def test_structured_formatter(self):
        record = logging.LogRecord("chainops.orchestrator", logging.INFO, __file__, 1,
                                   "ok %s", ("001-x",), None)
        record.task = "001-x"
        record.network = "eth"

        data = json.loads(StructuredFormatter().format(record))
        assert data["level"] == "INFO"
        assert data["logger"] == "chainops.orchestrator"
        assert data["message"] == "ok 001-x"
        assert data["task"] == "001-x"
        assert data["network"] == "eth"
        assert data["timestamp"].endswith("Z")

    def test_setup_logging_to_file(self, tmp_path):
        log_file = tmp_path / "logs" / "chainops.log"
        logger = setup_logging(log_file, "DEBUG", "structured", console_output=False)

        logging.getLogger("chainops.test").debug("hello")
        for handler in logger.handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)["message"] == "hello"
        assert logger.level == logging.DEBUG
        logger.handlers = []

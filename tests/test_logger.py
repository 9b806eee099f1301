import io
import json
import logging
import sys

from app.utils.logger import ColoredFormatter, JSONFormatter, configure_logging, get_logger


def _record(msg="hello %s", args=("world",), level=logging.WARNING, exc_info=None):
    return logging.LogRecord("app.test", level, __file__, 10, msg, args, exc_info)


def test_json_formatter_fields():
    data = json.loads(JSONFormatter().format(_record()))

    assert data["message"] == "hello world"
    assert data["level"] == "WARNING"
    assert data["logger"] == "app.test"
    assert "exception" not in data


def test_json_formatter_includes_exception():
    try:
        raise ValueError("broken")
    except ValueError:
        record = _record(exc_info=sys.exc_info())

    data = json.loads(JSONFormatter().format(record))
    assert "ValueError: broken" in data["exception"]


def test_colored_formatter_restores_record():
    record = _record()
    output = ColoredFormatter(fmt="%(levelname)s %(name)s %(message)s").format(record)

    assert "\033[33m" in output
    assert record.levelname == "WARNING"
    assert record.name == "app.test"


def test_configure_logging_replaces_its_handler():
    root = logging.getLogger()
    stream = io.StringIO()
    try:
        first = configure_logging(level="DEBUG", env="prod", stream=stream)
        second = configure_logging(level="INFO", env="prod", stream=stream)

        assert first not in root.handlers
        assert second in root.handlers
        assert root.level == logging.INFO

        get_logger("app.test").info("configured")
        assert json.loads(stream.getvalue().splitlines()[-1])["message"] == "configured"
    finally:
        root.removeHandler(second)

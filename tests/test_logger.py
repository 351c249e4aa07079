import json
import logging

from moomines.core.logger import JsonFormatter, PlainFormatter, get_logger, setup_logger


def _record(**extra):
    record = logging.LogRecord("moo-mines.engine", logging.INFO, __file__, 1, "Cashed out %s", ("53.50",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    line = JsonFormatter().format(_record(wager="50.00"))
    data = json.loads(line)
    assert data["message"] == "Cashed out 53.50"
    assert data["level"] == "INFO"
    assert data["name"] == "moo-mines.engine"
    assert data["wager"] == "50.00"
    assert "args" not in data


def test_plain_formatter():
    line = PlainFormatter().format(_record())
    assert line.endswith("| INFO     | moo-mines.engine | Cashed out 53.50")


def test_child_loggers_share_the_app_logger():
    assert get_logger("economy").name == "moo-mines.economy"
    assert get_logger().name == "moo-mines"


def test_file_logging(tmp_path):
    log_file = tmp_path / "logs" / "app.log"
    logger = setup_logger("moo-mines-test", log_to_file=True, log_file_path=log_file)
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "hello" in log_file.read_text()
    assert len(logger.handlers) == 2

    # Setting up again replaces handlers instead of stacking them
    logger = setup_logger("moo-mines-test")
    assert len(logger.handlers) == 1

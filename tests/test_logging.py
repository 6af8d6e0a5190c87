"""
test_logging.py — Package logger setup
"""

import logging

from giwbridge.utils.logging import TRACE, ColoredFormatter, get_logger, log_trace, setup_logging


def test_child_loggers_hang_off_the_package_logger():
    assert get_logger().name == "giwbridge"
    assert get_logger("ipc.dispatcher").name == "giwbridge.ipc.dispatcher"


def test_host_logger_class_is_left_alone():
    assert logging.getLoggerClass() is logging.Logger


def test_quiet_installs_only_a_null_handler():
    logger = setup_logging(quiet=True)
    assert not logger.propagate
    assert [type(h) for h in logger.handlers] == [logging.NullHandler]


def test_verbose_enables_trace(tmp_path):
    log_file = tmp_path / "giw.log"
    logger = setup_logging(quiet=True, verbose=True, log_file=str(log_file))

    log_trace(get_logger("ipc"), "frame decoded")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == TRACE
    assert "TRACE frame decoded" in log_file.read_text()


def test_colored_formatter_leaves_the_record_plain():
    record = logging.makeLogRecord({"levelno": logging.WARNING, "levelname": "WARNING", "msg": "hi"})
    formatted = ColoredFormatter(fmt="%(levelname)s %(message)s", use_colors=True).format(record)

    assert "\033[" in formatted
    assert record.levelname == "WARNING"

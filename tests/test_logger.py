import io

import pytest

from wettorion_comms.logger import Logger, format_message


def test_format_message_with_arguments():
    assert format_message("main", "WARN", "x=%d", 3) == "[main/WARN]: x=3"


def test_format_message_without_arguments_keeps_text():
    assert format_message("net", "INFO", "100% done") == "[net/INFO]: 100% done"


def test_format_message_truncates_long_message():
    line = format_message("t", "INFO", "a" * 300)
    prefix = "[t/INFO]: "
    assert line.startswith(prefix)
    assert len(line) - len(prefix) == 127


@pytest.mark.parametrize(
    "method, level",
    [("info", "INFO"), ("warn", "WARN"), ("error", "ERROR"), ("fatal", "FATAL"), ("debug", "DEBUG")],
)
def test_levels_write_tagged_lines(method, level):
    stream = io.StringIO()
    logger = Logger(stream)
    getattr(logger, method)("net", "hello %s", "there")
    assert stream.getvalue() == f"[net/{level}]: hello there\n"


def test_debug_suppressed_when_disabled():
    stream = io.StringIO()
    logger = Logger(stream, debug_enabled=False)
    logger.debug("net", "hidden")
    logger.info("net", "shown")
    assert stream.getvalue() == "[net/INFO]: shown\n"


def test_all_output_suppressed_when_disabled():
    stream = io.StringIO()
    logger = Logger(stream, enabled=False)
    logger.error("net", "hidden")
    logger.debug("net", "hidden")
    assert stream.getvalue() == ""


def test_multiple_lines_accumulate():
    stream = io.StringIO()
    logger = Logger(stream)
    logger.info("a", "one")
    logger.warn("b", "two")
    assert stream.getvalue().splitlines() == ["[a/INFO]: one", "[b/WARN]: two"]
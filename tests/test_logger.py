import io

from orderbook.logger import Logger, get_logger


def test_disabled_writes_immediately():
    out, err = io.StringIO(), io.StringIO()
    logger = Logger(out, err, enabled=False)
    try:
        logger.log_out("2,10,100.5")
        logger.log_err("Order not found: 7")
        assert out.getvalue() == "2,10,100.5\n"
        assert err.getvalue() == "Order not found: 7\n"
    finally:
        logger.close()


def test_enabled_writes_after_close_in_order():
    out, err = io.StringIO(), io.StringIO()
    logger = Logger(out, err)
    for i in range(50):
        logger.log_out(f"line {i}")
    logger.log_err("problem")
    logger.close()
    assert out.getvalue().splitlines() == [f"line {i}" for i in range(50)]
    assert err.getvalue() == "problem\n"


def test_context_manager_flushes():
    out, err = io.StringIO(), io.StringIO()
    with Logger(out, err) as logger:
        logger.log_out("3,42")
    assert out.getvalue() == "3,42\n"
    assert err.getvalue() == ""


def test_log_after_close_is_written_directly():
    out, err = io.StringIO(), io.StringIO()
    logger = Logger(out, err)
    logger.close()
    logger.log_out("late")
    assert out.getvalue() == "late\n"


def test_set_streams_redirects():
    first, second = io.StringIO(), io.StringIO()
    logger = Logger(first, first, enabled=False)
    try:
        logger.set_streams(second, second)
        logger.log_out("moved")
        assert first.getvalue() == ""
        assert second.getvalue() == "moved\n"
    finally:
        logger.close()


def test_none_streams_mean_process_streams(capsys):
    logger = Logger(enabled=False)
    try:
        logger.set_streams(None, None)
        logger.log_out("to stdout")
        logger.log_err("to stderr")
    finally:
        logger.close()
    captured = capsys.readouterr()
    assert captured.out == "to stdout\n"
    assert captured.err == "to stderr\n"


def test_set_enabled_switches_to_direct_writes():
    out, err = io.StringIO(), io.StringIO()
    logger = Logger(out, err)
    try:
        logger.set_enabled(False)
        logger.log_out("direct")
        assert out.getvalue() == "direct\n"
    finally:
        logger.close()


def test_get_logger_returns_same_working_instance():
    first = get_logger()
    second = get_logger()
    assert first is second
    out, err = io.StringIO(), io.StringIO()
    first.set_enabled(False)
    first.set_streams(out, err)
    try:
        second.log_out("shared")
        second.log_err("shared error")
    finally:
        first.set_streams(None, None)
        first.set_enabled(True)
    assert out.getvalue() == "shared\n"
    assert err.getvalue() == "shared error\n"
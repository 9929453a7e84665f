import logging

import pytest

from order_scanner.debug_log import configure_logging


@pytest.fixture
def scanner_logger():
    yield
    root = logging.getLogger("order_scanner")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)
    root.propagate = True


def test_records_land_in_debug_file(tmp_path, scanner_logger):
    log_file = tmp_path / "logs" / "debug.log"

    root = configure_logging(log_file)
    logging.getLogger("order_scanner.classifier").debug("scan_commit code=8901234")
    for handler in root.handlers:
        handler.flush()

    assert "scan_commit code=8901234" in log_file.read_text(encoding="utf-8")


def test_reconfiguring_replaces_handlers(tmp_path, scanner_logger):
    configure_logging(tmp_path / "a.log")
    root = configure_logging(tmp_path / "b.log")

    assert len(root.handlers) == 2


def test_without_path_only_console_handler(scanner_logger):
    root = configure_logging(None)

    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0], logging.FileHandler)


def test_unwritable_path_is_skipped(tmp_path, scanner_logger):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    root = configure_logging(blocker / "debug.log")

    assert not any(isinstance(handler, logging.FileHandler) for handler in root.handlers)

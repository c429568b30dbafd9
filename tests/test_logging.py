import logging

from partsbox.logging import get_logger


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.delenv("LOG_FILE", raising=False)
    logger = get_logger("tests.level")
    assert logger.name == "partsbox.tests.level"
    assert logger.level == logging.DEBUG
    assert not logger.propagate


def test_unknown_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    monkeypatch.delenv("LOG_FILE", raising=False)
    assert get_logger("tests.unknown").level == logging.INFO


def test_handlers_attached_once(monkeypatch):
    monkeypatch.delenv("LOG_FILE", raising=False)
    first = get_logger("tests.once")
    count = len(first.handlers)
    assert get_logger("tests.once") is first
    assert len(first.handlers) == count


def test_log_file_mirrors_records(tmp_path, monkeypatch):
    log_file = tmp_path / "partsbox.log"
    monkeypatch.setenv("LOG_FILE", str(log_file))
    logger = get_logger("tests.file")
    logger.info("slot ready")
    for handler in logger.handlers:
        handler.flush()
    assert "[partsbox.tests.file] INFO: slot ready" in log_file.read_text(encoding="utf-8")


def test_unwritable_log_file_keeps_console(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "missing" / "dir" / "x.log"))
    logger = get_logger("tests.badfile")
    assert [type(h) for h in logger.handlers] == [logging.StreamHandler]

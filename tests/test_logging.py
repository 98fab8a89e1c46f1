"""Log file placement and teardown."""

import logging
from pathlib import Path

from scanomatic.utils.logging import flush_logging, setup_logging


def test_json_log_under_env_dir(tmp_path: Path, monkeypatch):
    """Verify $SCANOMATIC_LOG_DIR receives the rotating log."""
    monkeypatch.setenv("SCANOMATIC_LOG_DIR", str(tmp_path / "logs"))
    setup_logging(verbose=True)
    logging.getLogger("scanomatic.test").info("hello from the test")
    flush_logging()

    log_file = tmp_path / "logs" / "scanomatic.log"
    assert "hello from the test" in log_file.read_text()


def test_json_log_under_dataset_root(tmp_path: Path, monkeypatch):
    """Verify the dataset's code/logs folder is used when no env dir is set."""
    monkeypatch.delenv("SCANOMATIC_LOG_DIR", raising=False)
    setup_logging(dataset_root=tmp_path)
    logging.getLogger("scanomatic.test").warning("dataset log")
    flush_logging()

    assert "dataset log" in (tmp_path / "code" / "logs" / "scanomatic.log").read_text()


def test_plain_text_mirror(tmp_path: Path, monkeypatch):
    """Verify --save-logfile mirrors console-level messages."""
    monkeypatch.delenv("SCANOMATIC_LOG_DIR", raising=False)
    mirror = tmp_path / "out" / "run.log"
    setup_logging(extra_text_log=mirror)
    logging.getLogger("scanomatic.test").warning("mirrored")
    flush_logging()

    assert "[WARNING] mirrored" in mirror.read_text()
    assert not (tmp_path / "code").exists()

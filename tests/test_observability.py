"""
Tests for logging setup and the per-artifact log trail.
"""

import logging
import threading

from parcel.core.observability.log_trail import LogTrail, capture_trail
from parcel.core.observability.logging_config import _parse_level, cli_level, hold_level, setup_logging


class TestCliLevel:
    def test_flag_precedence(self):
        assert cli_level(verbose=True, quiet=True, debug=True) == "DEBUG"
        assert cli_level(verbose=True, quiet=False, debug=False) == "INFO"
        assert cli_level(verbose=False, quiet=True, debug=False) == "ERROR"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("PARCEL_LOG_LEVEL", "INFO")
        assert cli_level(verbose=False, quiet=False, debug=False) == "INFO"

    def test_default(self, monkeypatch):
        monkeypatch.delenv("PARCEL_LOG_LEVEL", raising=False)
        assert cli_level(verbose=False, quiet=False, debug=False) == "WARNING"


class TestSetupLogging:
    def test_parse_level(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("nonsense") == logging.WARNING
        assert _parse_level(None) == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "parcel.log"
        root = logging.getLogger()
        saved = list(root.handlers), root.level
        try:
            setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")
            assert root.level == logging.DEBUG
            logging.getLogger("parcel.test").debug("hello file")
            for handler in root.handlers:
                handler.flush()
            assert "hello file" in log_file.read_text()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])


class TestLogTrail:
    def test_capture(self):
        with capture_trail() as trail:
            logging.getLogger("parcel.some.module").warning("watch out")
            logging.getLogger("parcel.some.module").debug("too quiet")
        assert trail.lines == ["[WARNING] watch out"]

    def test_detached_after_block(self):
        with capture_trail() as trail:
            pass
        logging.getLogger("parcel").error("after")
        assert trail.lines == []

    def test_other_loggers_ignored(self):
        with capture_trail() as trail:
            logging.getLogger("elsewhere").error("not ours")
        assert trail.as_text() == ""

    def test_as_text(self):
        trail = LogTrail()
        trail.lines.extend(["a", "b"])
        assert trail.as_text() == "a\nb"

    def test_other_threads_ignored(self):
        with capture_trail() as trail:
            worker = threading.Thread(
                target=lambda: logging.getLogger("parcel.worker").warning("from a worker"),
            )
            worker.start()
            worker.join()
            logging.getLogger("parcel.main").warning("from here")
        assert trail.lines == ["[WARNING] from here"]

    def test_parallel_trails_are_separate(self):
        barrier = threading.Barrier(2)
        trails: dict[str, list[str]] = {}

        def run(name: str) -> None:
            with capture_trail() as trail:
                barrier.wait()
                logging.getLogger("parcel.job").info("working on %s", name)
                barrier.wait()
            trails[name] = trail.lines

        workers = [threading.Thread(target=run, args=(n,)) for n in ("Foo", "Bar")]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert trails["Foo"] == ["[INFO] working on Foo"]
        assert trails["Bar"] == ["[INFO] working on Bar"]


class TestHoldLevel:
    def test_last_holder_restores(self):
        target = logging.getLogger("parcel.holdtest")
        target.setLevel(logging.ERROR)
        try:
            first = hold_level("parcel.holdtest", logging.INFO)
            second = hold_level("parcel.holdtest", logging.DEBUG)
            first.__enter__()
            assert target.level == logging.INFO
            second.__enter__()
            assert target.level == logging.DEBUG
            first.__exit__(None, None, None)
            assert target.level == logging.DEBUG
            second.__exit__(None, None, None)
            assert target.level == logging.ERROR
        finally:
            target.setLevel(logging.NOTSET)

    def test_never_raises_level(self):
        target = logging.getLogger("parcel.holdtest2")
        target.setLevel(logging.DEBUG)
        try:
            with hold_level("parcel.holdtest2", logging.INFO):
                assert target.level == logging.DEBUG
            assert target.level == logging.DEBUG
        finally:
            target.setLevel(logging.NOTSET)


class TestSetupLoggingEnv:
    def test_log_file_from_env(self, tmp_path, monkeypatch):
        log_file = tmp_path / "env.log"
        monkeypatch.setenv("PARCEL_LOG_FILE", str(log_file))
        monkeypatch.setenv("PARCEL_LOG_FILE_LEVEL", "INFO")
        root = logging.getLogger()
        saved = list(root.handlers), root.level
        try:
            setup_logging(level="ERROR")
            assert root.level == logging.INFO
            logging.getLogger("parcel.test").info("from env")
            for handler in root.handlers:
                handler.flush()
            assert "from env" in log_file.read_text()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])

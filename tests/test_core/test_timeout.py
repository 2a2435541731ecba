"""Tests for call_with_timeout."""

from __future__ import annotations

import os
import subprocess
import sys
import threading
import time
from pathlib import Path

import pytest

from backgrounder.core.errors import HandlerError, HandlerTimeout
from backgrounder.core.timeout import call_with_timeout

SRC_DIR = Path(__file__).resolve().parents[2] / "src"


class TestCallWithTimeout:
    def test_returns_result(self):
        assert call_with_timeout(lambda a, b=0: a + b, 2, b=3, timeout=1.0) == 5

    def test_no_timeout_runs_in_calling_thread(self):
        seen = []
        call_with_timeout(lambda: seen.append(threading.current_thread()), timeout=None)
        assert seen == [threading.current_thread()]

    def test_zero_timeout_runs_directly(self):
        seen = []
        call_with_timeout(lambda: seen.append(threading.current_thread()), timeout=0)
        assert seen == [threading.current_thread()]

    def test_exceptions_propagate(self):
        def boom():
            raise ConnectionError("broker down")

        with pytest.raises(ConnectionError, match="broker down"):
            call_with_timeout(boom, timeout=1.0)

    def test_expiry_raises_handler_timeout(self):
        release = threading.Event()
        try:
            with pytest.raises(HandlerTimeout) as excinfo:
                call_with_timeout(release.wait, 5, timeout=0.05, operation="publish to mail")
        finally:
            release.set()

        err = excinfo.value
        assert err.operation == "publish to mail"
        assert err.timeout == 0.05
        assert isinstance(err, TimeoutError)
        assert isinstance(err, HandlerError)
        assert "publish to mail" in str(err)

    def test_worker_is_a_daemon_thread(self):
        seen = []
        call_with_timeout(lambda: seen.append(threading.current_thread().daemon), timeout=1.0)
        assert seen == [True]

    def test_abandoned_call_does_not_delay_interpreter_exit(self, tmp_path):
        script = tmp_path / "hang.py"
        script.write_text(
            "import time\n"
            "from backgrounder.core.errors import HandlerTimeout\n"
            "from backgrounder.core.timeout import call_with_timeout\n"
            "try:\n"
            "    call_with_timeout(time.sleep, 30, timeout=0.1, operation='publish')\n"
            "except HandlerTimeout:\n"
            "    print('timed out')\n"
        )
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))

        started = time.monotonic()
        result = subprocess.run(
            [sys.executable, str(script)], capture_output=True, text=True, env=env, timeout=20
        )

        assert result.returncode == 0, result.stderr
        assert result.stdout.strip() == "timed out"
        assert time.monotonic() - started < 10

"""Best-effort upstream error reporting."""

from __future__ import annotations

import logging
import os
import platform
import sys
import threading
import traceback
from concurrent.futures import Future, wait
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping

import requests

from smithy import __version__
from smithy.domain.errors import SmithyError, SmithyPluginError

ERROR_REPORT_URL_ENV = "SMITHY_ERROR_REPORT_URL"
REQUEST_TIMEOUT = (3.05, 10)

log = logging.getLogger("smithy.core.reporter")


@dataclass(frozen=True)
class ReporterConfig:
    enabled: bool = False
    verbose: bool = False
    config_path: Path | None = None
    endpoint: str | None = None

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> "ReporterConfig":
        env = os.environ if environ is None else environ
        return cls(endpoint=env.get(ERROR_REPORT_URL_ENV) or None)


class ErrorReporter:
    """Sends unexpected errors to a collector.

    Reports are posted on daemon threads; :meth:`close` waits for them up to
    a deadline. Nothing here raises into the caller.
    """

    def __init__(self, config: ReporterConfig | None = None, session: requests.Session | None = None) -> None:
        self.config = config or ReporterConfig()
        self._session = session or requests.Session()
        self._pending: List[Future[None]] = []

    def reconfigure(self, **changes: Any) -> "ErrorReporter":
        reporter = ErrorReporter(replace(self.config, **changes), self._session)
        reporter._pending = self._pending
        return reporter

    def should_report(self, error: BaseException) -> bool:
        if not self.config.enabled or not self.config.endpoint:
            return False
        if isinstance(error, SmithyError):
            return error.descriptor.should_be_reported
        if isinstance(error, SmithyPluginError):
            return False
        return True

    def report_error(self, error: BaseException) -> bool:
        if not self.should_report(error):
            if self.config.verbose:
                log.debug("Not reporting error: %s", type(error).__name__)
            return False

        payload = self._payload(error)
        future: Future[None] = Future()

        def _worker() -> None:
            future.set_running_or_notify_cancel()
            try:
                response = self._session.post(self.config.endpoint, json=payload, timeout=REQUEST_TIMEOUT)
                log.debug("Error report sent, status %s", response.status_code)
            except requests.RequestException as exc:
                log.debug("Couldn't send error report: %s", exc)
            finally:
                future.set_result(None)

        threading.Thread(target=_worker, name="smithy-error-report", daemon=True).start()
        self._pending.append(future)
        return True

    def close(self, timeout: float) -> bool:
        if not self._pending:
            return True
        _, not_done = wait(self._pending, timeout=timeout)
        if not_done:
            log.debug("%d error report(s) still in flight after %.1fs", len(not_done), timeout)
        return not not_done

    def _payload(self, error: BaseException) -> Dict[str, Any]:
        frames = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return {
            "type": type(error).__name__,
            "message": _anonymize(str(error), self.config.config_path),
            "traceback": _anonymize(frames, self.config.config_path),
            "code": error.code if isinstance(error, SmithyError) else None,
            "cli_version": __version__,
            "python_version": platform.python_version(),
            "platform": sys.platform,
        }


def _anonymize(text: str, config_path: Path | None) -> str:
    if config_path is not None:
        text = text.replace(str(config_path.parent), "<project>")
    home = str(Path.home())
    if home and home != "/":
        text = text.replace(home, "~")
    return text


__all__ = ["ERROR_REPORT_URL_ENV", "ErrorReporter", "ReporterConfig"]

"""Anonymous usage analytics.

A "task hit" is posted on a daemon thread so it never delays the task it
describes. :meth:`Analytics.send_task_hit` hands back two handles: an abort
callable for the fast path and a :class:`~concurrent.futures.Future` the
dispatcher joins only when the task ran long enough to hide the latency.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
import threading
import uuid
from concurrent.futures import Future
from typing import Any, Callable, Dict, Mapping, Tuple

import requests

from smithy import __version__
from smithy.settings import RuntimeSettings
from smithy.utils.ci import is_running_on_ci_server
from smithy.utils.execution_mode import is_source_checkout
from smithy.utils.global_state import get_analytics_client_id

ANALYTICS_URL_ENV = "SMITHY_ANALYTICS_URL"
REQUEST_TIMEOUT = (3.05, 10)

log = logging.getLogger("smithy.core.analytics")

AbortHandle = Callable[[], None]


def _completed() -> "Future[None]":
    future: Future[None] = Future()
    future.set_result(None)
    return future


class Analytics:
    def __init__(
        self,
        *,
        enabled: bool,
        endpoint: str | None = None,
        client_id: str | None = None,
        session: requests.Session | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._enabled = enabled and bool(endpoint)
        self._environ = os.environ if environ is None else environ
        self._endpoint = endpoint
        self._client_id = client_id or str(uuid.uuid4())
        self._session_id = str(uuid.uuid4())
        self._session = session or requests.Session()

    @classmethod
    def create(
        cls,
        settings: RuntimeSettings,
        telemetry_consent: bool | None,
        *,
        environ: Mapping[str, str] | None = None,
        session: requests.Session | None = None,
    ) -> "Analytics":
        env = os.environ if environ is None else environ
        endpoint = env.get(ANALYTICS_URL_ENV) or None
        enabled = (
            telemetry_consent is True
            and endpoint is not None
            and not is_running_on_ci_server(env)
            and not is_source_checkout()
        )
        client_id = get_analytics_client_id(settings) if enabled else None
        return cls(enabled=enabled, endpoint=endpoint, client_id=client_id, session=session, environ=env)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def send_task_hit(self) -> Tuple[AbortHandle, "Future[None]"]:
        if not self._enabled:
            return (lambda: None), _completed()

        payload = self._task_hit_payload()
        aborted = threading.Event()
        future: Future[None] = Future()

        def _worker() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                self._post(payload, aborted)
            except Exception as exc:  # noqa: BLE001
                log.debug("Analytics hit crashed: %s", exc)
            finally:
                future.set_result(None)

        def _abort() -> None:
            aborted.set()
            future.cancel()

        thread = threading.Thread(target=_worker, name="smithy-analytics", daemon=True)
        thread.start()
        return _abort, future

    def _task_hit_payload(self) -> Dict[str, Any]:
        return {
            "client_id": self._client_id,
            "events": [
                {
                    "name": "task",
                    "params": {"session_id": self._session_id, "engagement_time_msec": "10000"},
                }
            ],
            "user_properties": {
                "cli_version": __version__,
                "python_version": platform.python_version(),
                "platform": sys.platform,
                "user_type": "CI" if is_running_on_ci_server(self._environ) else "Developer",
            },
        }

    def _post(self, payload: Dict[str, Any], aborted: threading.Event) -> None:
        if aborted.is_set():
            return
        try:
            response = self._session.post(self._endpoint, json=payload, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            log.debug("Analytics hit failed: %s", exc)
            return
        if not aborted.is_set():
            log.debug("Analytics hit sent, status %s", response.status_code)


__all__ = ["ANALYTICS_URL_ENV", "AbortHandle", "Analytics"]

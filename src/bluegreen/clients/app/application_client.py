"""HTTP client for a blue-green compliant application's dbfreeze and discovery REST api.

The application answers with a lock error while another request holds its
freeze lock, so every request is retried a few times.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import requests
from pydantic import ValidationError
from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from bluegreen.core.exceptions import ExternalServiceError
from bluegreen.core.protocols import ISleeper
from bluegreen.models.discovery import DiscoveryResult
from bluegreen.models.environment import Application
from bluegreen.models.freeze import DbFreezeProgress

logger = logging.getLogger(__name__)

POST_LOGIN = "login"
GET_DB_FREEZE_PROGRESS = "dbFreezeProgress"
PUT_ENTER_DB_FREEZE = "enterDbFreeze"
PUT_EXIT_DB_FREEZE = "exitDbFreeze"
PUT_DISCOVER_DB = "discoverDb"

# Any response model carrying a lock_error flag.
R = TypeVar("R", DbFreezeProgress, DiscoveryResult)


class ApplicationSession:
    """Cookie-authenticated session with one application. Implements IApplicationSession."""

    def __init__(self, client: ApplicationClient, application: Application,
                 http_session: requests.Session) -> None:
        self._client = client
        self._application = application
        self._http = http_session

    def get_db_freeze_progress(self, outer_try_num: int | None = None) -> DbFreezeProgress | None:
        return self._client.request_with_retry(self, "GET", GET_DB_FREEZE_PROGRESS, outer_try_num)

    def put_request_transition(
        self, transition_method_path: str, outer_try_num: int | None = None
    ) -> DbFreezeProgress | None:
        return self._client.request_with_retry(self, "PUT", transition_method_path, outer_try_num)

    def put_discover_db(self) -> DiscoveryResult | None:
        return self._client.request_with_retry(self, "PUT", PUT_DISCOVER_DB, response_type=DiscoveryResult)

    def uri(self, method_path: str) -> str:
        return f"{self._application.make_hostname_uri()}/{method_path}"

    def execute(self, method: str, uri: str, timeout_s: int) -> requests.Response:
        return self._http.request(method, uri, timeout=timeout_s)


class ApplicationClient:
    """Authenticates against applications and makes retried dbfreeze requests."""

    def __init__(self, username: str, password: str, sleeper: ISleeper, *,
                 request_timeout_s: int = 30, max_num_tries: int = 3, retry_delay_ms: int = 5000,
                 session_factory: Callable[[], requests.Session] = requests.Session) -> None:
        self._username = username
        self._password = password
        self._sleeper = sleeper
        self._timeout_s = request_timeout_s
        self._max_num_tries = max_num_tries
        self._retry_delay_ms = retry_delay_ms
        self._session_factory = session_factory

    def authenticate(self, application: Application) -> ApplicationSession:
        """Post credentials to the login page and keep the returned session cookie."""
        http = self._session_factory()
        uri = f"{application.make_hostname_uri()}/{POST_LOGIN}"
        try:
            resp = http.post(uri, data={"username": self._username, "password": self._password},
                             timeout=self._timeout_s, allow_redirects=False)
        except requests.RequestException as exc:
            raise ExternalServiceError(f"Login request to {uri} failed: {exc}") from exc
        if not (200 <= resp.status_code < 400) or not http.cookies:
            raise ExternalServiceError(
                f"Failed to obtain response cookie from uri {uri}, statusCode: {resp.status_code}, "
                f"body: {resp.text}"
            )
        return ApplicationSession(self, application, http)

    def request_with_retry(self, session: ApplicationSession, method: str, method_path: str,
                           outer_try_num: int | None = None,
                           response_type: type[R] = DbFreezeProgress) -> R | None:
        """Try up to ``max_num_tries`` times to get a response without a lock error."""
        uri = session.uri(method_path)
        retrying = Retrying(
            retry=retry_if_result(_needs_retry),
            stop=stop_after_attempt(self._max_num_tries),
            wait=wait_fixed(self._retry_delay_ms / 1000),
            sleep=self._sleep_seconds,
            before_sleep=lambda _state: logger.debug("Going to sleep, will try again"),
            retry_error_callback=_last_result,
        )
        response: R | None = None
        for attempt in retrying:
            with attempt:
                try_num = attempt.retry_state.attempt_number - 1
                response = self._try_request(session, method, uri, try_num, outer_try_num, response_type)
            if not attempt.retry_state.outcome.failed:
                attempt.retry_state.set_result(response)
        if _needs_retry(response):
            logger.error("Request failed after %d tries, final response: %s", self._max_num_tries, response)
        return response

    def _sleep_seconds(self, seconds: float) -> None:
        self._sleeper.sleep(round(seconds * 1000))

    def _try_request(self, session: ApplicationSession, method: str, uri: str, try_num: int,
                     outer_try_num: int | None, response_type: type[R]) -> R | None:
        label = _try_label(try_num, outer_try_num)
        logger.debug("%s %s %s", label, method, uri)
        try:
            resp = session.execute(method, uri, self._timeout_s)
        except requests.RequestException as exc:
            logger.warning("%s %s %s failed: %s", label, method, uri, exc)
            return None
        logger.debug("Response: %s", resp.text)
        if resp.status_code >= 400:
            logger.warning("%s %s %s returned http %d: %s", label, method, uri, resp.status_code, resp.text)
            return None
        parsed = _parse_response(resp, response_type)
        if parsed is None:
            logger.warning("%s null response parsed from %s %s (raw response content: %s)",
                           label, method, uri, resp.text)
        elif parsed.lock_error:
            logger.info("%s received lock error from %s %s", label, method, uri)
        return parsed


def _parse_response(resp: requests.Response, response_type: type[R]) -> R | None:
    try:
        body: Any = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    try:
        return response_type.model_validate(body)
    except ValidationError:
        return None


def _try_label(try_num: int, outer_try_num: int | None) -> str:
    if outer_try_num is not None:
        return f"Try #{outer_try_num}.{try_num}"
    return f"Try #{try_num}"


def _needs_retry(response: DbFreezeProgress | DiscoveryResult | None) -> bool:
    return response is None or response.lock_error


def _last_result(retry_state: RetryCallState) -> Any:
    return retry_state.outcome.result()

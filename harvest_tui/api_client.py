"""HTTP client for the Harvest API v2."""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, List, Optional, Type, TypeVar
from urllib.parse import urljoin

import requests
from pydantic import ValidationError

from .log import get_logger
from .schemas import (CreateTimeEntryRequest, Page, Project, ProjectsPage,
                      TaskAssignment, TaskAssignmentsPage, TimeEntriesPage,
                      TimeEntry, UpdateTimeEntryRequest, User)

DEFAULT_BASE_URL = "https://api.harvestapp.com"
USER_AGENT = "harvest-tui"

logger = get_logger(__name__)

PageT = TypeVar("PageT", bound=Page)
ItemT = TypeVar("ItemT")


class ApiError(RuntimeError):
    """Error while talking to the Harvest API."""

    def __init__(self, message: str, *, response: Optional[requests.Response] = None) -> None:
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


class AuthenticationFailed(ApiError):
    """Credentials were rejected (401/403)."""


class RateLimited(ApiError):
    """The API asked us to slow down (429)."""

    def __init__(self, message: str, *, response: Optional[requests.Response] = None,
                 retry_after: Optional[int] = None) -> None:
        super().__init__(message, response=response)
        self.retry_after = retry_after


class NetworkOrTimeout(ApiError):
    """The request never produced an HTTP response."""


class MalformedResponse(ApiError):
    """The response body could not be decoded into the expected shape."""


class RemoteRejected(ApiError):
    """A business error reported by the API, e.g. a locked entry."""


class NotFound(ApiError):
    """The addressed resource does not exist (404)."""


class HarvestClient:
    """Wraps the Harvest endpoints used by the terminal client."""

    def __init__(self, account_id: str, access_token: str, *, base_url: str = DEFAULT_BASE_URL,
                 timeout: float = 30, session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.account_id = account_id
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.user_id: Optional[int] = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _headers(self, has_body: bool) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Harvest-Account-Id": self.account_id,
            "Authorization": f"Bearer {self.access_token}",
            "User-Agent": USER_AGENT,
        }
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = urljoin(self.base_url, path.lstrip("/"))
        kwargs.setdefault("timeout", self.timeout)
        headers = kwargs.setdefault("headers", {})
        headers.update(self._headers("json" in kwargs))
        logger.debug("%s %s params=%s", method, path, kwargs.get("params"))
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkOrTimeout(f"Network error: {exc}") from exc

        if response.status_code >= 400:
            error = self._error_for(response)
            logger.warning("%s %s -> %s", method, path, error)
            raise error

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse("Response is not valid JSON", response=response) from exc

    @staticmethod
    def _error_for(response: requests.Response) -> ApiError:
        status = response.status_code
        detail = _error_detail(response)
        if status in (401, 403):
            return AuthenticationFailed(f"Authentication failed ({status}){detail}", response=response)
        if status == 404:
            return NotFound(f"Not found{detail}", response=response)
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            return RateLimited(
                f"Rate limited by Harvest{detail}",
                response=response,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        if status < 500:
            return RemoteRejected(f"Rejected ({status}){detail}", response=response)
        return ApiError(f"Harvest API error {status}{detail}", response=response)

    @staticmethod
    def _parse(model: Type[ItemT], data: Any) -> ItemT:
        try:
            return model.model_validate(data)  # type: ignore[attr-defined]
        except ValidationError as exc:
            raise MalformedResponse(f"Unexpected response shape: {exc.error_count()} error(s)") from exc

    def _paginate(self, path: str, params: dict[str, Any], page_model: Type[PageT],
                  items: Callable[[PageT], List[ItemT]]) -> List[ItemT]:
        collected: List[ItemT] = []
        page: Optional[int] = 1
        while page is not None:
            data = self._request("GET", path, params={**params, "page": page})
            parsed = self._parse(page_model, data or {})
            collected.extend(items(parsed))
            page = parsed.next_page
        return collected

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def validate_credentials(self) -> User:
        """Fetch the authenticated user and remember its id for entry queries."""

        user = self._parse(User, self._request("GET", "/v2/users/me"))
        self.user_id = user.id
        return user

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------
    def fetch_projects(self) -> List[Project]:
        return self._paginate("/v2/projects", {"is_active": "true"}, ProjectsPage,
                              lambda page: page.projects)

    def fetch_task_assignments(self) -> List[TaskAssignment]:
        return self._paginate("/v2/task_assignments", {"is_active": "true"}, TaskAssignmentsPage,
                              lambda page: page.task_assignments)

    # ------------------------------------------------------------------
    # Time entries
    # ------------------------------------------------------------------
    def fetch_entries(self, day: dt.date) -> List[TimeEntry]:
        params: dict[str, Any] = {"from": day.isoformat(), "to": day.isoformat()}
        if self.user_id is not None:
            params["user_id"] = self.user_id
        return self._paginate("/v2/time_entries", params, TimeEntriesPage,
                              lambda page: page.time_entries)

    def create_entry(self, request: CreateTimeEntryRequest) -> TimeEntry:
        data = self._request("POST", "/v2/time_entries", json=request.payload())
        return self._parse(TimeEntry, data)

    def update_entry(self, entry_id: int, request: UpdateTimeEntryRequest) -> TimeEntry:
        data = self._request("PATCH", f"/v2/time_entries/{entry_id}", json=request.payload())
        return self._parse(TimeEntry, data)

    def delete_entry(self, entry_id: int) -> None:
        self._request("DELETE", f"/v2/time_entries/{entry_id}")

    def start_timer(self, entry_id: int) -> TimeEntry:
        return self._parse(TimeEntry, self._request("PATCH", f"/v2/time_entries/{entry_id}/restart"))

    def stop_timer(self, entry_id: int) -> TimeEntry:
        return self._parse(TimeEntry, self._request("PATCH", f"/v2/time_entries/{entry_id}/stop"))


def _error_detail(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return ""
    if isinstance(data, dict):
        message = data.get("message") or data.get("error_description") or data.get("error")
        if message:
            return f": {message}"
    return ""


__all__ = [
    "ApiError",
    "AuthenticationFailed",
    "HarvestClient",
    "MalformedResponse",
    "NetworkOrTimeout",
    "NotFound",
    "RateLimited",
    "RemoteRejected",
]

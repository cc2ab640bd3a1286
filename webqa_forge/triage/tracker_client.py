import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

import requests

from webqa_forge.data import TicketRequest, TrackerConfig, TrackerResponse
from webqa_forge.exceptions import ConfigurationError, ExternalCallError
from webqa_forge.triage.validation import validate_tracker_config
from webqa_forge.utils.id_generator import Clock, utc_now

JIRA_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


class BaseTrackerClient(ABC):
    """Issue tracker sink. Every failure surfaces as ExternalCallError."""

    @abstractmethod
    def create_issue(self, request: TicketRequest) -> TrackerResponse:
        pass

    @abstractmethod
    def get_issue(self, key: str) -> TrackerResponse:
        pass

    @abstractmethod
    def update_issue(self, key: str, fields: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def test_connection(self) -> bool:
        pass


class JiraTrackerClient(BaseTrackerClient):
    """Jira REST v2 client authenticated with email + API token."""

    def __init__(
        self,
        config: TrackerConfig,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        clock: Clock = utc_now,
    ):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.auth = (config.email, config.api_token)
        self.session.headers.update({"Accept": "application/json", "Content-Type": "application/json"})
        self.timeout = timeout
        self.clock = clock

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ExternalCallError(f"Jira request {method} {url} failed: {e}", cause=e) from e
        if not response.ok:
            raise ExternalCallError(f"Jira request {method} {url} returned {response.status_code}: {response.text[:200]}")
        return response

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise ExternalCallError(f"Jira returned a non-JSON body: {response.text[:200]}", cause=e) from e

    def browse_url(self, key: str) -> str:
        return f"{self.base_url}/browse/{key}"

    def create_issue(self, request: TicketRequest) -> TrackerResponse:
        payload = {
            "fields": {
                "project": {"key": request.project_key},
                "summary": request.summary,
                "description": request.body,
                "issuetype": {"name": request.issue_type},
                "priority": {"name": request.priority},
                "labels": list(request.labels),
            }
        }
        data = self._json(self._request("POST", "/rest/api/2/issue", json=payload))
        key = data.get("key")
        if not key:
            raise ExternalCallError(f"Jira did not return an issue key: {data}")
        logging.debug(f"Jira issue created: {key}")
        # Jira's create response carries no status/timestamp; new issues start Open
        return TrackerResponse(external_key=key, status="Open", created_at=self.clock(), url=self.browse_url(key))

    def get_issue(self, key: str) -> TrackerResponse:
        data = self._json(self._request("GET", f"/rest/api/2/issue/{key}"))
        fields = data.get("fields", {})
        created_raw = fields.get("created")
        try:
            created_at = datetime.strptime(created_raw, JIRA_DATE_FORMAT) if created_raw else self.clock()
        except ValueError:
            logging.warning(f"Unparseable Jira timestamp for {key}: {created_raw}")
            created_at = self.clock()
        return TrackerResponse(
            external_key=data.get("key", key),
            status=(fields.get("status") or {}).get("name", "Unknown"),
            created_at=created_at,
            url=self.browse_url(data.get("key", key)),
        )

    def update_issue(self, key: str, fields: Dict[str, Any]) -> None:
        jira_fields: Dict[str, Any] = {}
        for name, value in fields.items():
            if name == "body":
                jira_fields["description"] = value
            elif name == "priority":
                jira_fields["priority"] = {"name": value}
            elif name in ("summary", "labels"):
                jira_fields[name] = value
            else:
                logging.warning(f"Ignoring unsupported Jira field update '{name}' for {key}")
        self._request("PUT", f"/rest/api/2/issue/{key}", json={"fields": jira_fields})

    def test_connection(self) -> bool:
        errors = validate_tracker_config(self.config)
        if errors:
            logging.error(f"Jira connection test skipped, configuration invalid: {errors}")
            return False
        try:
            self._request("GET", "/rest/api/2/myself")
            return True
        except ExternalCallError as e:
            logging.error(f"Jira connection test failed: {e}")
            return False


class InMemoryTrackerClient(BaseTrackerClient):
    """Offline tracker with sequential keys (``<PROJECT>-1``, ``<PROJECT>-2`` ...)."""

    def __init__(self, config: TrackerConfig, clock: Clock = utc_now):
        self.config = config
        self.clock = clock
        self.issues: Dict[str, Dict[str, Any]] = {}

    def create_issue(self, request: TicketRequest) -> TrackerResponse:
        key = f"{request.project_key}-{len(self.issues) + 1}"
        response = TrackerResponse(
            external_key=key,
            status="Open",
            created_at=self.clock(),
            url=f"{self.config.base_url.rstrip('/')}/browse/{key}",
        )
        self.issues[key] = {"request": request, "response": response}
        return response

    def get_issue(self, key: str) -> TrackerResponse:
        if key not in self.issues:
            raise ExternalCallError(f"Issue {key} does not exist")
        return self.issues[key]["response"]

    def update_issue(self, key: str, fields: Dict[str, Any]) -> None:
        if key not in self.issues:
            raise ExternalCallError(f"Issue {key} does not exist")
        request = self.issues[key]["request"]
        self.issues[key]["request"] = request.model_copy(update=fields)

    def test_connection(self) -> bool:
        return not validate_tracker_config(self.config)


def build_tracker_client(config: TrackerConfig, offline: bool = False) -> BaseTrackerClient:
    errors = validate_tracker_config(config)
    if errors:
        raise ConfigurationError(errors)
    return InMemoryTrackerClient(config) if offline else JiraTrackerClient(config)

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import requests
from pydantic import BaseModel, ValidationError

from gsdsync.exceptions import IntegrationError, RateLimitError, RecordNotFoundError
from gsdsync.models.items import InboxItem, Project, TaskItem
from gsdsync.models.patches import FieldPatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collection:
    path: str
    model: type[BaseModel]


# Stamped on fetched actions that arrive without created_at.
UNKNOWN_CREATED_AT = "1970-01-01T00:00:00Z"

NEXT_ACTIONS = Collection("next-actions", TaskItem)
PROJECTS = Collection("projects", Project)
INBOX = Collection("inbox", InboxItem)


def _handle_response(resp: requests.Response, collection: Collection) -> object:
    if resp.status_code == 429:
        raise RateLimitError(f"Remote store rate limit hit on /{collection.path}. Try again shortly.")
    if resp.status_code == 404:
        raise RecordNotFoundError(f"Record not found in /{collection.path}.")
    if resp.status_code >= 400:
        raise IntegrationError(
            f"Remote store error on /{collection.path} ({resp.status_code}): {resp.text[:200]}"
        )
    if resp.status_code == 204 or not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as e:
        raise IntegrationError(f"Remote store sent invalid JSON for /{collection.path}") from e


def _parse_record(data: object, collection: Collection) -> BaseModel:
    if not isinstance(data, dict):
        raise IntegrationError(f"Malformed record from /{collection.path}: {data!r:.200}")
    try:
        return collection.model.model_validate(data)
    except ValidationError as e:
        raise IntegrationError(f"Malformed record from /{collection.path}: {e}") from e


class RemoteStore:
    """Blocking client for the four calls the remote store exposes per collection."""

    def __init__(self, base_url: str, session: requests.Session, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout = timeout

    def _url(self, collection: Collection, item_id: str | None = None) -> str:
        url = f"{self.base_url}/{collection.path}"
        return url if item_id is None else f"{url}/{item_id}"

    def _request(self, method: str, collection: Collection, item_id: str | None = None, **kwargs) -> object:
        try:
            resp = self.session.request(
                method, self._url(collection, item_id), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise IntegrationError(f"{method} /{collection.path} failed: {e}") from e
        return _handle_response(resp, collection)

    def fetch_all(self, collection: Collection) -> list:
        """Every canonical record of a collection. A non-list answer counts as empty."""
        data = self._request("GET", collection)
        if not isinstance(data, list):
            logger.warning("Expected a list from /%s, got %s; treating as empty", collection.path, type(data).__name__)
            return []
        records = []
        for raw in data:
            if isinstance(raw, dict) and collection is NEXT_ACTIONS and not raw.get("created_at"):
                logger.warning("Missing created_at for action %s", raw.get("id"))
                raw = {**raw, "created_at": UNKNOWN_CREATED_AT}
            try:
                records.append(_parse_record(raw, collection))
            except IntegrationError as e:
                logger.warning("Skipping record: %s", e)
        return records

    def create(self, collection: Collection, draft: BaseModel) -> BaseModel:
        data = self._request("POST", collection, json=draft.model_dump(mode="json", exclude_none=True))
        return _parse_record(data, collection)

    def patch(self, collection: Collection, item_id: str, patch: FieldPatch) -> BaseModel:
        data = self._request("PATCH", collection, item_id, json=patch.to_payload())
        return _parse_record(data, collection)

    def delete(self, collection: Collection, item_id: str) -> None:
        self._request("DELETE", collection, item_id)


def utc_now() -> str:
    """Current time in the store's timestamp format (RFC 3339, UTC, seconds)."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

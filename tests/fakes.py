from __future__ import annotations

import asyncio
import copy

from gsdsync.exceptions import IntegrationError, RecordNotFoundError
from gsdsync.services.remote import INBOX, NEXT_ACTIONS, PROJECTS


class FakeRemoteStore:
    """
    In-memory stand-in for RemoteStore.

    Behaves like the real store: create echoes the stored record, patch
    returns the full updated record, delete of an unknown id is a 404.
    ``fail_on`` makes the next call of a given method raise instead.
    Ids in ``failing_patch_ids`` fail every patch.
    """

    def __init__(self, actions=(), projects=(), inbox=()):
        self.tables = {
            NEXT_ACTIONS.path: {r["id"]: dict(r) for r in actions},
            PROJECTS.path: {r["id"]: dict(r) for r in projects},
            INBOX.path: {r["id"]: dict(r) for r in inbox},
        }
        self.calls: list[tuple] = []
        self.failures: dict[str, Exception] = {}
        self.create_overrides: dict = {}
        self.failing_patch_ids: set[str] = set()

    def fail_on(self, method: str, exc: Exception | None = None) -> None:
        self.failures[method] = exc or IntegrationError(f"{method} failed")

    def _maybe_fail(self, method: str) -> None:
        exc = self.failures.pop(method, None)
        if exc is not None:
            raise exc

    def fetch_all(self, collection):
        self.calls.append(("fetch_all", collection.path))
        self._maybe_fail("fetch_all")
        return [collection.model.model_validate(copy.deepcopy(r)) for r in self.tables[collection.path].values()]

    def create(self, collection, draft):
        self.calls.append(("create", collection.path, draft.id))
        self._maybe_fail("create")
        record = {**draft.model_dump(mode="json", exclude_none=True), **self.create_overrides}
        self.tables[collection.path][record["id"]] = record
        return collection.model.model_validate(copy.deepcopy(record))

    def patch(self, collection, item_id, patch):
        self.calls.append(("patch", collection.path, item_id, patch.to_payload()))
        self._maybe_fail("patch")
        if item_id in self.failing_patch_ids:
            raise IntegrationError(f"patch of {item_id} failed")
        table = self.tables[collection.path]
        if item_id not in table:
            raise RecordNotFoundError(f"Record not found in /{collection.path}.")
        table[item_id].update(patch.to_payload())
        return collection.model.model_validate(copy.deepcopy(table[item_id]))

    def delete(self, collection, item_id):
        self.calls.append(("delete", collection.path, item_id))
        self._maybe_fail("delete")
        if self.tables[collection.path].pop(item_id, None) is None:
            raise RecordNotFoundError(f"Record not found in /{collection.path}.")


class FakeConnection:
    """Push connection fed by the test; ``drop()`` ends it like a lost socket."""

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def push(self, message: str) -> None:
        self.queue.put_nowait(message)

    def drop(self) -> None:
        self.queue.put_nowait(None)

    def fail(self, exc: Exception) -> None:
        self.queue.put_nowait(exc)

    async def close(self) -> None:
        self.closed = True
        self.queue.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self):
        message = await self.queue.get()
        if message is None:
            raise StopAsyncIteration
        if isinstance(message, Exception):
            raise message
        return message


class FakeConnector:
    """Callable used in place of websockets' connect(); hands out FakeConnections."""

    def __init__(self, failures: int = 0, error: type[Exception] = OSError):
        self.failures = failures
        self.error = error
        self.attempts = 0
        self.connections: list[FakeConnection] = []

    async def __call__(self, url: str):
        self.attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise self.error("connection refused")
        conn = FakeConnection()
        self.connections.append(conn)
        return conn

    @property
    def current(self) -> FakeConnection:
        return self.connections[-1]

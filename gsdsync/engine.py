"""Ordered collection engine.

Holds the local copy of next actions, projects and inbox items, keeps it in
step with the remote store, and serves the sorted/filtered view. All methods
run on one event loop; blocking HTTP calls go to worker threads and their
results are applied back on the loop in the order they arrive.
"""

import asyncio
import logging
import uuid

from gsdsync.exceptions import IntegrationError, PositionExhaustedError
from gsdsync.models.events import INBOX_ITEM_CREATED, PushEnvelope
from gsdsync.models.items import InboxItem, Project, TaskItem
from gsdsync.models.patches import (
    TASK_PATCHES,
    CompletionPatch,
    DeadlinePatch,
    FieldPatch,
    PositionPatch,
    ProjectPositionPatch,
)
from gsdsync.models.view import FilterKey, SortKey, ViewState
from gsdsync.repository import Repository
from gsdsync.services.live import LiveChannel
from gsdsync.services.positions import DEFAULT_EPSILON, allocate_position, renormalize
from gsdsync.services.remote import INBOX, NEXT_ACTIONS, PROJECTS, Collection, RemoteStore, utc_now
from gsdsync.services.views import project_order, project_state_view

logger = logging.getLogger(__name__)


class SyncEngine:
    def __init__(
        self,
        remote: RemoteStore,
        *,
        position_epsilon: float = DEFAULT_EPSILON,
    ):
        self.remote = remote
        self.live: LiveChannel | None = None
        self.position_epsilon = position_epsilon
        self.actions: Repository[TaskItem] = Repository()
        self.projects: Repository[Project] = Repository()
        self.inbox: Repository[InboxItem] = Repository()
        self.view = ViewState()
        self.pending_ids: set[str] = set()

    # --- Loading ---

    async def refresh(self) -> None:
        """Reload next actions and projects, fetching both at once."""
        try:
            actions, projects = await asyncio.gather(
                asyncio.to_thread(self.remote.fetch_all, NEXT_ACTIONS),
                asyncio.to_thread(self.remote.fetch_all, PROJECTS),
            )
        except IntegrationError as e:
            logger.error("Failed to fetch next actions and projects: %s", e)
            raise
        self.actions.replace_all(actions)
        self.projects.replace_all(projects)
        self.pending_ids.clear()

    async def refresh_inbox(self) -> None:
        try:
            items = await asyncio.to_thread(self.remote.fetch_all, INBOX)
        except IntegrationError as e:
            logger.error("Failed to fetch inbox items: %s", e)
            raise
        self.inbox.replace_all(items)

    # --- Views ---

    @property
    def visible_actions(self) -> list[TaskItem]:
        return project_state_view(self.actions.all(), self.view)

    @property
    def ordered_projects(self) -> list[Project]:
        return project_order(self.projects.all())

    @property
    def inbox_count(self) -> int:
        return len(self.inbox)

    def toggle_sort(self, key: SortKey) -> None:
        self.view.toggle_sort(key)

    def set_filter(self, filter_by: FilterKey) -> None:
        self.view.filter_by = filter_by

    def project_name(self, project_id: str | None) -> str:
        project = self.projects.find(project_id) if project_id else None
        return project.name if project else ""

    # --- Shared write paths ---

    async def _create(self, repo: Repository, collection: Collection, draft):
        """Insert the draft now, then swap in whatever the store echoes back."""
        repo.upsert(draft)
        self.pending_ids.add(draft.id)
        try:
            stored = await asyncio.to_thread(self.remote.create, collection, draft)
        except IntegrationError as e:
            logger.error("Failed to create %s record %s: %s", collection.path, draft.id, e)
            repo.remove(draft.id)
            raise
        finally:
            self.pending_ids.discard(draft.id)
        if stored.id != draft.id:
            repo.remove(draft.id)
        repo.upsert(stored)
        return stored

    async def _patch(self, repo: Repository, collection: Collection, item_id: str, patch: FieldPatch):
        try:
            stored = await asyncio.to_thread(self.remote.patch, collection, item_id, patch)
        except IntegrationError as e:
            logger.error("Failed to update %s on %s %s: %s", type(patch).__name__, collection.path, item_id, e)
            raise
        repo.upsert(stored)
        return stored

    async def _delete(self, repo: Repository, collection: Collection, item_id: str) -> None:
        try:
            await asyncio.to_thread(self.remote.delete, collection, item_id)
        except IntegrationError as e:
            logger.error("Failed to delete %s %s: %s", collection.path, item_id, e)
            raise
        repo.remove(item_id)

    async def _renormalize(self, repo: Repository, collection: Collection, patch_type: type[PositionPatch]) -> None:
        changes = renormalize(repo.all())
        logger.info("Renormalizing %d positions in %s", len(changes), collection.path)
        calls = [
            self._renumber(collection, item_id, patch_type(position=position))
            for item_id, position in changes.items()
        ]
        errors = []
        for next_done in asyncio.as_completed(calls):
            item_id, result = await next_done
            if isinstance(result, IntegrationError):
                logger.error("Renumbering %s %s failed: %s", collection.path, item_id, result)
                errors.append(result)
            else:
                repo.upsert(result)
        if errors:
            logger.error("Renormalizing %s left %d of %d records unchanged", collection.path, len(errors), len(calls))
            raise errors[0]

    async def _renumber(self, collection: Collection, item_id: str, patch: FieldPatch):
        # Failures come back as values so the remaining echoes still get applied.
        try:
            return item_id, await asyncio.to_thread(self.remote.patch, collection, item_id, patch)
        except IntegrationError as e:
            return item_id, e

    # --- Next actions ---

    async def add_next_action(self, text: str) -> TaskItem | None:
        if text.strip() == "":
            return None
        draft = TaskItem(
            id=str(uuid.uuid4()),
            action=text,
            position=max(0.0, self.actions.max_position()) + 1,
            created_at=utc_now(),
        )
        return await self._create(self.actions, NEXT_ACTIONS, draft)

    async def move_action(self, item_id: str, new_index: int) -> TaskItem | None:
        """Persist a drag of ``item_id`` to ``new_index`` of the visible list.

        Only meaningful while sorted by position; under any other sort key the
        request is ignored and None is returned.
        """
        if self.view.sort_by != "position":
            logger.debug("Ignoring move of %s while sorted by %s", item_id, self.view.sort_by)
            return None
        if item_id not in self.actions:
            raise KeyError(item_id)

        try:
            position = self._allocate_action_position(item_id, new_index)
        except PositionExhaustedError as e:
            logger.warning("%s", e)
            await self._renormalize(self.actions, NEXT_ACTIONS, PositionPatch)
            position = self._allocate_action_position(item_id, new_index)
        return await self._patch(self.actions, NEXT_ACTIONS, item_id, PositionPatch(position=position))

    def _allocate_action_position(self, item_id: str, new_index: int) -> float:
        return allocate_position(
            self.visible_actions,
            item_id,
            new_index,
            direction=self.view.sort_direction,
            max_position=self.actions.max_position(),
            epsilon=self.position_epsilon,
        )

    async def toggle_complete(self, item_id: str) -> TaskItem:
        action = self.actions.find(item_id)
        if action is None:
            raise KeyError(item_id)
        patch = CompletionPatch(completed_at=None if action.is_completed else utc_now())
        return await self._patch(self.actions, NEXT_ACTIONS, item_id, patch)

    async def update_action(self, item_id: str, patch: FieldPatch) -> TaskItem:
        if not isinstance(patch, TASK_PATCHES):
            raise TypeError(f"{type(patch).__name__} does not apply to next actions")
        return await self._patch(self.actions, NEXT_ACTIONS, item_id, patch)

    async def delete_action(self, item_id: str) -> None:
        await self._delete(self.actions, NEXT_ACTIONS, item_id)

    # --- Projects ---

    async def add_project(self, name: str, deadline: str | None = None) -> Project | None:
        if name.strip() == "":
            return None
        draft = Project(
            id=str(uuid.uuid4()),
            name=name,
            position=max(0.0, self.projects.max_position()) + 1,
            created_at=utc_now(),
            deadline=deadline,
        )
        return await self._create(self.projects, PROJECTS, draft)

    async def move_project(self, project_id: str, new_index: int) -> Project:
        if project_id not in self.projects:
            raise KeyError(project_id)
        try:
            position = allocate_position(self.ordered_projects, project_id, new_index, epsilon=self.position_epsilon)
        except PositionExhaustedError as e:
            logger.warning("%s", e)
            await self._renormalize(self.projects, PROJECTS, ProjectPositionPatch)
            position = allocate_position(self.ordered_projects, project_id, new_index, epsilon=self.position_epsilon)
        return await self._patch(self.projects, PROJECTS, project_id, ProjectPositionPatch(position=position))

    async def set_project_deadline(self, project_id: str, deadline: str | None) -> Project:
        return await self._patch(self.projects, PROJECTS, project_id, DeadlinePatch(deadline=deadline))

    async def delete_project(self, project_id: str) -> None:
        await self._delete(self.projects, PROJECTS, project_id)

    # --- Inbox ---

    async def add_inbox_item(self, description: str, url: str | None = None) -> InboxItem | None:
        if description.strip() == "":
            return None
        draft = InboxItem(id=str(uuid.uuid4()), description=description, url=url, created_at=utc_now())
        return await self._create(self.inbox, INBOX, draft)

    # --- Push channel ---

    def apply_push(self, envelope: PushEnvelope) -> None:
        if envelope.type == INBOX_ITEM_CREATED:
            item = InboxItem.model_validate(envelope.data)
            self.inbox.upsert(item)
            logger.info("Inbox item %s pushed", item.id)
        else:
            logger.debug("Ignoring push event of type %s", envelope.type)

    def attach_live(self, channel: LiveChannel) -> None:
        """Use ``channel`` for push updates; it should deliver to ``apply_push``."""
        self.live = channel

    def start_live(self) -> None:
        if self.live is not None:
            self.live.start()

    async def stop_live(self) -> None:
        if self.live is not None:
            await self.live.close()

"""Extract metadata actions.

There are six actions a resource update can request:

- refresh: (re)extracts metadata from files
- refresh_map_add: (re)extracts metadata and maps it to property values (adding to existing values)
- refresh_map_replace: (re)extracts metadata and maps it to property values (replacing existing values)
- map_add: maps stored metadata to property values (adding to existing values)
- map_replace: maps stored metadata to property values (replacing existing values)
- delete: deletes stored metadata, leaving mapped values alone

Anything else is a no-op. Refreshing requires the original file to be
locally addressable.
"""

import logging
from dataclasses import dataclass, field

from metadata_engine.mapper import CrosswalkMapper
from metadata_engine.orchestrator import MetadataOrchestrator
from metadata_engine.resources import FileStore, PropertyValue, Resource
from metadata_engine.schemas import ACTION_LABELS, Action, MetadataRecord
from metadata_engine.store import MetadataStore

logger = logging.getLogger(__name__)

REFRESH_ACTIONS = {Action.REFRESH, Action.REFRESH_MAP_ADD, Action.REFRESH_MAP_REPLACE}
MAP_ACTIONS = {Action.MAP_ADD, Action.MAP_REPLACE}

# Replace override applied by each mapping action
_REPLACE_OVERRIDE = {
    Action.REFRESH_MAP_ADD: False,
    Action.REFRESH_MAP_REPLACE: True,
    Action.MAP_ADD: False,
    Action.MAP_REPLACE: True,
}


def parse_action(token: str | None) -> Action:
    """Parse an action token; unknown tokens become the no-op default."""
    try:
        return Action(token)
    except ValueError:
        return Action.DEFAULT


def available_actions(file_store: FileStore) -> list[Action]:
    """Actions that can be offered for the configured file storage."""
    actions = [Action.MAP_ADD, Action.MAP_REPLACE, Action.DELETE]
    if file_store.is_local:
        # Files must be stored locally to refresh extracted metadata
        actions = [Action.REFRESH, Action.REFRESH_MAP_ADD, Action.REFRESH_MAP_REPLACE] + actions
    return actions


@dataclass
class ActionResult:
    """What an action did."""

    action: Action
    media_ids: list[int] = field(default_factory=list)
    records: list[MetadataRecord] = field(default_factory=list)
    values_added: list[PropertyValue] = field(default_factory=list)
    deleted: int = 0


class ActionDispatcher:
    """Sequence extraction, storage and mapping for one requested action."""

    def __init__(
        self,
        orchestrator: MetadataOrchestrator,
        store: MetadataStore,
        mapper: CrosswalkMapper,
        file_store: FileStore,
    ):
        self.orchestrator = orchestrator
        self.store = store
        self.mapper = mapper
        self.file_store = file_store

    def perform(self, resource: Resource, token: str | None) -> ActionResult:
        """Perform an action on a media, or on every media of an item."""
        action = parse_action(token)
        result = ActionResult(action=action)
        if action == Action.DEFAULT:
            return result

        media_list = [resource] if resource.is_media else list(resource.media)
        for media in media_list:
            self._perform_on_media(media, action, result)

        if result.media_ids:
            logger.info(f"{ACTION_LABELS[action]}: media {result.media_ids}")
        return result

    def _perform_on_media(self, media: Resource, action: Action, result: ActionResult) -> None:
        if action in REFRESH_ACTIONS:
            file_path = self.file_store.local_path(media)
            if file_path is None or not media.media_type:
                logger.debug(f"Cannot refresh media {media.id}: file is not stored locally")
                return
            record = self.orchestrator.extract(str(file_path), media.media_type, media)
            if record is None:
                return
            result.media_ids.append(media.id)
            result.records.append(record)
            if action in _REPLACE_OVERRIDE:
                result.values_added.extend(
                    self.mapper.map(media, [record], replace=_REPLACE_OVERRIDE[action])
                )

        elif action in MAP_ACTIONS:
            records = self.store.find_all(media.id)
            if not records:
                return
            result.media_ids.append(media.id)
            result.records.extend(records)
            result.values_added.extend(
                self.mapper.map(media, records, replace=_REPLACE_OVERRIDE[action])
            )

        elif action == Action.DELETE:
            if self.store.delete(media.id):
                result.media_ids.append(media.id)
                result.deleted += 1

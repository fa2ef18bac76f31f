"""Map extracted metadata to media/item values using JSON Pointer.

See https://datatracker.ietf.org/doc/html/rfc6901 for the pointer format.

Each crosswalk rule reads one string from a record payload and adds it as
a literal value of a property on the media or on its parent item. Rules
with replace semantics first clear the values that existed before the
mapping pass, so two replacing rules targeting the same property keep
both new values.
"""

import logging
from collections import defaultdict
from typing import Any

from jsonpointer import JsonPointer, JsonPointerException

from metadata_engine.resources import Property, PropertyCatalog, PropertyValue, Resource
from metadata_engine.schemas import CrosswalkRule, MetadataRecord, TargetResource

logger = logging.getLogger(__name__)


def resolve_pointer(document: Any, pointer: str) -> Any | None:
    """Resolve a JSON Pointer, returning None instead of raising.

    Resolution only descends through objects and arrays; a pointer that
    continues past a scalar does not resolve.
    """
    try:
        json_pointer = JsonPointer(pointer)
        for part in json_pointer.parts:
            if not isinstance(document, (dict, list)):
                return None
            document = json_pointer.walk(document, part)
    except (JsonPointerException, TypeError) as e:
        logger.debug(f"Pointer {pointer!r} did not resolve: {e}")
        return None
    return document


class CrosswalkMapper:
    """Apply crosswalk rules to a media and its item.

    Args:
        rules: Rules in declaration order
        catalog: Property lookup by term
    """

    def __init__(self, rules: list[CrosswalkRule], catalog: PropertyCatalog):
        self.rules = list(rules)
        self.catalog = catalog

    def _source_payload(self, rule: CrosswalkRule, records: list[MetadataRecord]) -> dict[str, Any] | None:
        metadata_type = rule.metadata_type
        if metadata_type is None:
            return None
        for record in records:
            if metadata_type not in record.payload:
                continue
            if rule.extractor is not None and record.extractors.get(metadata_type) != rule.extractor:
                continue
            return record.payload
        return None

    def map(
        self,
        media: Resource,
        records: list[MetadataRecord],
        replace: bool | None = None,
    ) -> list[PropertyValue]:
        """Map metadata records onto property values.

        Args:
            media: Media the records were extracted for
            records: Metadata records of the media
            replace: Override every rule's replace flag (None keeps each rule's own)

        Returns:
            Values added during this pass, in rule order
        """
        targets: dict[TargetResource, Resource | None] = {
            TargetResource.MEDIA: media,
            TargetResource.ITEM: media.parent_item(),
        }
        resources: dict[int, Resource] = {}
        values_to_add: defaultdict[int, list[PropertyValue]] = defaultdict(list)
        properties_to_clear: defaultdict[int, list[Property]] = defaultdict(list)
        added: list[PropertyValue] = []

        for rule in self.rules:
            target = targets.get(rule.resource)
            if target is None:
                logger.debug(f"No {rule.resource} to map {rule.pointer} to")
                continue

            payload = self._source_payload(rule, records)
            if payload is None:
                # The metadata type was not extracted
                continue

            prop = self.catalog.find_by_term(rule.term)
            if prop is None:
                logger.debug(f"Property {rule.term!r} does not exist")
                continue

            value_string = resolve_pointer(payload, rule.pointer)
            if not isinstance(value_string, str):
                # The pointer did not resolve to a string
                continue

            value = PropertyValue(resource_id=target.id, property=prop, value=value_string)
            resources[target.id] = target
            values_to_add[target.id].append(value)
            added.append(value)

            effective_replace = rule.replace if replace is None else replace
            if effective_replace:
                if prop not in properties_to_clear[target.id]:
                    properties_to_clear[target.id].append(prop)

        for resource_id, resource in resources.items():
            clear = properties_to_clear.get(resource_id, [])
            # Values created in this pass are not in resource.values yet
            with resource.lock:
                values_to_remove = [v for v in resource.values if v.property in clear]
                resource.apply_value_changes(values_to_remove, values_to_add[resource_id])
            logger.debug(
                f"Mapped {len(values_to_add[resource_id])} value(s) to {resource.kind} {resource_id}, "
                f"removed {len(values_to_remove)}"
            )

        return added

# catalog_dedupe/matching/merge.py
"""
Tag merge for a confirmed duplicate.

Policy (append + fill-empty, never clobber):
  - key absent from existing          -> add it          (new_tags_added += 1)
  - existing value is None or ""      -> fill it         (tags_overwritten += 1)
  - existing value is non-empty       -> keep existing, always

Curator-entered values must never be replaced by import data, even when
the proposed value looks "better". Computes the merge only; writing it
back is the tag writer's job (catalog_dedupe/db/tag_writer.py).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from catalog_dedupe.models import EntityKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagMergeResult:
    new_tags_added: int = 0
    tags_overwritten: int = 0
    merged_tags: dict[str, Any] = field(default_factory=dict)

    @property
    def total_tags(self) -> int:
        return len(self.merged_tags)

    @property
    def has_changes(self) -> bool:
        return self.new_tags_added > 0 or self.tags_overwritten > 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "newTagsAdded": self.new_tags_added,
            "tagsOverwritten": self.tags_overwritten,
            "totalTags": self.total_tags,
            "mergedTags": dict(self.merged_tags),
        }


def _is_empty(value: Any) -> bool:
    """Only None and the empty string count as empty; 0 and False are data."""
    return value is None or value == ""


def merge_tags(
    entity_kind: EntityKind,
    existing: Mapping[str, Any] | None,
    proposed: Mapping[str, Any] | None,
) -> TagMergeResult:
    current = dict(existing or {})
    merged = dict(current)
    added = 0
    filled = 0

    for key, value in (proposed or {}).items():
        if key not in current:
            merged[key] = value
            added += 1
        elif _is_empty(current[key]):
            merged[key] = value
            filled += 1
        # else: existing non-empty value wins

    if added or filled:
        logger.info(
            "tag merge %s: +%d new, %d filled, %d total",
            EntityKind(entity_kind).value, added, filled, len(merged),
        )

    return TagMergeResult(new_tags_added=added, tags_overwritten=filled, merged_tags=merged)

# catalog_dedupe/db/tag_writer.py
"""
Tag persistence for confirmed duplicates.

The merge itself is computed by catalog_dedupe.matching.merge (pure);
this module only reads the current tags and writes mergedTags back.

Reads fail closed: if the stored tags cannot be parsed we refuse to
merge, because writing a merge built on an empty map would wipe the
curator's data. Structured rows keep their envelope keys (version,
lastModified) on write; only the inner "tags" map is replaced.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from postgrest.exceptions import APIError
from supabase import Client

from catalog_dedupe.errors import RecordNotFoundError, TagPayloadError
from catalog_dedupe.matching.merge import TagMergeResult, merge_tags
from catalog_dedupe.matching.tags import parse_tags
from catalog_dedupe.models import EntityKind

from .candidates import ARTIST_TABLE, ARTWORK_TABLE, execute_with_retry

logger = logging.getLogger(__name__)


def table_for(entity_kind: EntityKind) -> str:
    return ARTIST_TABLE if EntityKind(entity_kind) == EntityKind.ARTIST else ARTWORK_TABLE


def _extract_postgrest_error(e: APIError) -> dict[str, Any]:
    """
    Normalize PostgREST APIError across versions.
    We try to recover the dict that contains: message, code, details, hint.
    """
    if getattr(e, "args", None) and len(e.args) >= 1 and isinstance(e.args[0], dict):
        return e.args[0]
    return {"message": str(e)}


@dataclass(frozen=True)
class StoredTags:
    """
    Tags as read from the row. envelope holds the other keys of a
    structured payload ({"version": ..., "lastModified": ..., "tags": {...}})
    so a write can put them back; None when the row stores a flat map.
    """

    tags: dict[str, Any] = field(default_factory=dict)
    envelope: Optional[dict[str, Any]] = None


def serialize_tags(
    merged_tags: Mapping[str, Any],
    envelope: Optional[Mapping[str, Any]] = None,
) -> str:
    if envelope is None:
        return json.dumps(dict(merged_tags))
    payload = dict(envelope)
    payload["tags"] = dict(merged_tags)
    if "lastModified" in payload:
        payload["lastModified"] = datetime.now(timezone.utc).isoformat()
    return json.dumps(payload)


def fetch_existing_tags(
    supabase: Client,
    entity_kind: EntityKind,
    entity_id: str,
) -> StoredTags:
    rows = (
        execute_with_retry(
            supabase.table(table_for(entity_kind))
            .select("id,tags")
            .eq("id", str(entity_id))
            .limit(1)
        ).data
        or []
    )
    if not rows:
        raise RecordNotFoundError(EntityKind(entity_kind).value, str(entity_id))

    parsed = parse_tags(rows[0].get("tags"))
    if not parsed.ok:
        raise TagPayloadError(
            f"Stored tags for {EntityKind(entity_kind).value} {entity_id} are unreadable: {parsed.error}",
            {"entity_id": str(entity_id)},
        )
    return StoredTags(tags=parsed.tags, envelope=parsed.envelope)


def write_merged_tags(
    supabase: Client,
    entity_kind: EntityKind,
    entity_id: str,
    result: TagMergeResult,
    *,
    dry_run: bool,
    envelope: Optional[Mapping[str, Any]] = None,
) -> bool:
    """
    Persist result.merged_tags, inside `envelope` when the row uses the
    structured format. Returns True if a write happened.
    No-op when nothing changed or in dry run.
    """
    if not result.has_changes or dry_run:
        return False

    try:
        execute_with_retry(
            supabase.table(table_for(entity_kind))
            .update(
                {
                    "tags": serialize_tags(result.merged_tags, envelope),
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                }
            )
            .eq("id", str(entity_id))
        )
    except APIError as e:
        err = _extract_postgrest_error(e)
        logger.error(
            "tag write failed for %s %s: code=%s message=%s",
            EntityKind(entity_kind).value, entity_id, err.get("code"), err.get("message"),
        )
        raise

    logger.info(
        "updated %s %s tags: +%d new, %d filled",
        EntityKind(entity_kind).value, entity_id, result.new_tags_added, result.tags_overwritten,
    )
    return True


def merge_tags_into_existing(
    supabase: Client,
    entity_kind: EntityKind,
    entity_id: str,
    new_tags: Mapping[str, Any],
    *,
    dry_run: bool = True,
) -> TagMergeResult:
    stored = fetch_existing_tags(supabase, entity_kind, entity_id)
    result = merge_tags(entity_kind, stored.tags, new_tags)
    write_merged_tags(
        supabase, entity_kind, entity_id, result, dry_run=dry_run, envelope=stored.envelope
    )
    return result

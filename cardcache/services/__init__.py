"""
cardcache services.

Fetching, deduplication and reconciliation logic for the card sync job.
"""

from cardcache.services.deduplicator import MergeStrategy, deduplicate, to_canonical
from cardcache.services.derived_fields import build_search_uri, flatten_colors, normalize_name
from cardcache.services.fetcher import create_client, fetch_document
from cardcache.services.reconciler import (
    FieldMismatchPolicy,
    NeverUpdatePolicy,
    ReconcileResult,
    UpdatePolicy,
    load_existing_keys,
    reconcile,
    update_policy_for,
)
from cardcache.services.scheduling import Clock, SystemClock, wait_for

__all__ = [
    "Clock",
    "FieldMismatchPolicy",
    "MergeStrategy",
    "NeverUpdatePolicy",
    "ReconcileResult",
    "SystemClock",
    "UpdatePolicy",
    "build_search_uri",
    "create_client",
    "deduplicate",
    "fetch_document",
    "flatten_colors",
    "load_existing_keys",
    "normalize_name",
    "reconcile",
    "to_canonical",
    "update_policy_for",
    "wait_for",
]

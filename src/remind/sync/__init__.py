"""Offline-first client sync: local store plus reconciler."""

from remind.sync.reconciler import DEFAULT_BATCH_SIZE, SyncReconciler, SyncResult, SyncStatus
from remind.sync.store import OfflineStore, PendingChange

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "OfflineStore",
    "PendingChange",
    "SyncReconciler",
    "SyncResult",
    "SyncStatus",
]

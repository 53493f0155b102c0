"""
Bulk Job Status

Progress records for background bulk matching runs and the stores that
hold them. Records are plain dicts keyed in camelCase, exactly as returned
to API clients.

- CacheBulkJobStore: Django cache backed, shared across web and worker
  processes when the cache is Redis
- InMemoryBulkJobStore: process-local, for tests and single-process runs
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional, Set

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


# ============================================================================
# Status Record
# ============================================================================

class BulkJobType:
    REGENERATE_MATRICES = 'regenerate-matrices'
    RERUN_MATCHING = 'rerun-matching'
    REGENERATE_AND_MATCH = 'regenerate-and-match'
    MATCH_JOB = 'match-job'

    # Types that can be started from the bulk operations endpoint
    PUBLIC = (REGENERATE_MATRICES, RERUN_MATCHING, REGENERATE_AND_MATCH)
    ALL = PUBLIC + (MATCH_JOB,)


class BulkJobState:
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'

    FINAL = (COMPLETED, FAILED, CANCELLED)


# Per-job error list is capped so a pathological run cannot grow the record
MAX_RECORDED_ERRORS = 500


def _now() -> str:
    return timezone.now().isoformat()


@dataclass
class BatchStatus:
    id: str
    type: str
    status: str = BulkJobState.RUNNING
    total: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    currentCandidate: Optional[str] = None
    startedAt: str = field(default_factory=_now)
    completedAt: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BatchStatus':
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def is_running(self) -> bool:
        return self.status == BulkJobState.RUNNING

    def record_error(self, candidate_id=None, name: str = '', error: str = '', job_id=None):
        entry = {
            'candidateId': str(candidate_id) if candidate_id is not None else None,
            'name': name,
            'error': error,
        }
        if job_id is not None:
            entry['jobId'] = str(job_id)
        if len(self.errors) < MAX_RECORDED_ERRORS:
            self.errors.append(entry)

    def finish(self, status: str):
        self.status = status
        self.currentCandidate = None
        self.completedAt = _now()


# ============================================================================
# Stores
# ============================================================================

class BulkJobStore(ABC):
    """Storage for bulk job status records."""

    @abstractmethod
    def get(self, job_id: str) -> Optional[BatchStatus]:
        """Return the record for job_id, or None."""

    @abstractmethod
    def set(self, status: BatchStatus) -> None:
        """Create or replace a record."""

    @abstractmethod
    def list(self, limit: int = 10) -> List[BatchStatus]:
        """Most recently started records first."""

    @abstractmethod
    def request_cancel(self, job_id: str) -> None:
        """
        Raise the cancellation flag of a job.

        The flag is kept apart from the record, which the running worker
        rewrites after every item.
        """

    @abstractmethod
    def is_cancel_requested(self, job_id: str) -> bool:
        """Whether cancellation was requested for job_id."""


class InMemoryBulkJobStore(BulkJobStore):
    """Process-local store."""

    def __init__(self):
        self._records: Dict[str, Dict[str, Any]] = {}
        self._cancelled: Set[str] = set()
        self._lock = threading.Lock()

    def get(self, job_id: str) -> Optional[BatchStatus]:
        with self._lock:
            data = self._records.get(str(job_id))
        return BatchStatus.from_dict(data) if data else None

    def set(self, status: BatchStatus) -> None:
        with self._lock:
            self._records[status.id] = status.to_dict()

    def list(self, limit: int = 10) -> List[BatchStatus]:
        with self._lock:
            records = list(self._records.values())
        records.sort(key=lambda r: r['startedAt'], reverse=True)
        return [BatchStatus.from_dict(r) for r in records[:limit]]

    def request_cancel(self, job_id: str) -> None:
        with self._lock:
            self._cancelled.add(str(job_id))

    def is_cancel_requested(self, job_id: str) -> bool:
        with self._lock:
            return str(job_id) in self._cancelled

    def clear(self):
        with self._lock:
            self._records.clear()
            self._cancelled.clear()


class CacheBulkJobStore(BulkJobStore):
    """
    Store backed by the Django cache.

    Records expire after MATCHING_BULK_JOB_TTL seconds. An index key keeps
    the ids of recent jobs for listing.
    """

    KEY_PREFIX = 'matching:bulk_job:'
    CANCEL_KEY_PREFIX = 'matching:bulk_job_cancel:'
    INDEX_KEY = 'matching:bulk_job_index'
    INDEX_SIZE = 100

    def __init__(self, timeout: Optional[int] = None):
        self.timeout = timeout or getattr(settings, 'MATCHING_BULK_JOB_TTL', 7 * 24 * 3600)

    def _key(self, job_id) -> str:
        return f"{self.KEY_PREFIX}{job_id}"

    def get(self, job_id: str) -> Optional[BatchStatus]:
        data = cache.get(self._key(job_id))
        return BatchStatus.from_dict(data) if data else None

    def set(self, status: BatchStatus) -> None:
        cache.set(self._key(status.id), status.to_dict(), self.timeout)

        index = cache.get(self.INDEX_KEY) or []
        if status.id not in index:
            index = [status.id] + index[:self.INDEX_SIZE - 1]
            cache.set(self.INDEX_KEY, index, self.timeout)

    def list(self, limit: int = 10) -> List[BatchStatus]:
        records = []
        for job_id in cache.get(self.INDEX_KEY) or []:
            status = self.get(job_id)
            if status is not None:
                records.append(status)
        records.sort(key=lambda s: s.startedAt, reverse=True)
        return records[:limit]

    def request_cancel(self, job_id: str) -> None:
        cache.set(f"{self.CANCEL_KEY_PREFIX}{job_id}", True, self.timeout)

    def is_cancel_requested(self, job_id: str) -> bool:
        return bool(cache.get(f"{self.CANCEL_KEY_PREFIX}{job_id}"))


@lru_cache(maxsize=None)
def get_bulk_job_store() -> BulkJobStore:
    """Return the configured store (MATCHING_BULK_JOB_STORE)."""
    path = getattr(settings, 'MATCHING_BULK_JOB_STORE', 'matching.bulk_status.CacheBulkJobStore')
    store_class = import_string(path)
    logger.debug(f"Using bulk job store {path}")
    return store_class()

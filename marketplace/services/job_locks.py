"""Per-job locks serializing state changes inside one API process."""

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class _JobLock:
    """Lock wrapper; plain lock objects are not guaranteed to be weak-referenceable."""

    def __init__(self):
        self.lock = threading.Lock()


class JobLockRegistry:
    """Hands out one lock per job ID.

    Locks are held in a WeakValueDictionary so jobs nobody is working on
    do not pin a lock forever; a caller inside hold() keeps its lock alive.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, _JobLock]" = weakref.WeakValueDictionary()
        self._registry_lock = threading.Lock()

    def _lock_for(self, job_id: str) -> _JobLock:
        with self._registry_lock:
            job_lock = self._locks.get(job_id)
            if job_lock is None:
                job_lock = _JobLock()
                self._locks[job_id] = job_lock
            return job_lock

    @contextmanager
    def hold(self, job_id: str) -> Iterator[None]:
        """Block until the job's lock is free, then hold it for the with-block."""
        job_lock = self._lock_for(job_id)
        with job_lock.lock:
            yield

# app/quotations/drafts.py
"""Process-local registry of quotation drafts being edited.

Drafts live only in memory, keyed by user and a per-tab draft key, and are
dropped on discard, after a successful submit, or once nobody has touched
them for ``ttl`` seconds (a tab closed without saving never says goodbye).
Two tabs editing the same quotation hold independent drafts; whichever
submits last wins at the backend.

Each draft has its own lock. Editor views hold it through ``checkout`` for
the whole mutate, recompute and render sequence, so two requests on the
same draft never interleave.
"""

import logging
import threading
import time
import uuid
from contextlib import contextmanager

from app.errors import QuotationError


class _Entry:
    __slots__ = ('draft', 'lock', 'touched')

    def __init__(self, draft, now):
        self.draft = draft
        self.lock = threading.Lock()
        self.touched = now


class DraftStore:
    def __init__(self, ttl=None, clock=time.monotonic) -> None:
        self._drafts = {}
        self.lock = threading.Lock()
        self.ttl = ttl
        self.clock = clock

    def create(self, user_id, draft) -> str:
        key = uuid.uuid4().hex
        with self.lock:
            now = self.clock()
            self._evict_idle(now)
            self._drafts[(user_id, key)] = _Entry(draft, now)
        return key

    def _entry(self, user_id, key) -> _Entry:
        with self.lock:
            now = self.clock()
            self._evict_idle(now)
            entry = self._drafts.get((user_id, key))
            if entry is not None:
                entry.touched = now
        if entry is None:
            raise QuotationError('Draft not found or already closed')
        return entry

    def get(self, user_id, key):
        return self._entry(user_id, key).draft

    @contextmanager
    def checkout(self, user_id, key):
        """Hold the draft's lock for the duration of one editor action."""
        entry = self._entry(user_id, key)
        with entry.lock:
            yield entry.draft

    def discard(self, user_id, key) -> None:
        with self.lock:
            self._drafts.pop((user_id, key), None)

    def discard_user(self, user_id) -> None:
        """Drop every draft of a user, e.g. on logout."""
        with self.lock:
            for k in [k for k in self._drafts if k[0] == user_id]:
                del self._drafts[k]

    def _evict_idle(self, now) -> None:
        # caller holds self.lock
        if not self.ttl:
            return
        idle = [k for k, e in self._drafts.items() if now - e.touched > self.ttl]
        for k in idle:
            del self._drafts[k]
        if idle:
            logging.info("evicted %d idle quotation drafts", len(idle))

    def __len__(self) -> int:
        with self.lock:
            return len(self._drafts)

"""
Editor Store
============

Live version editors, one per opened editor page (so one per browser tab).
Each entry is keyed by a random token handed to the page and dropped after
EDITOR_SESSION_TTL seconds without activity.
"""

import secrets
import threading
import time
from contextlib import contextmanager


class EditorNotFound(KeyError):
    """Unknown, expired or foreign editor token"""


class _Entry:
    __slots__ = ('editor', 'owner', 'touched', 'lock')

    def __init__(self, editor, owner, now):
        self.editor = editor
        self.owner = owner
        self.touched = now
        self.lock = threading.Lock()


class EditorStore:

    def __init__(self, ttl=3600, clock=time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def open(self, editor, owner=None) -> str:
        """Register an editor and return its token"""
        token = secrets.token_urlsafe(16)
        with self._lock:
            self._purge_expired()
            self._entries[token] = _Entry(editor, owner, self._clock())
        return token

    def _lookup(self, token, owner):
        with self._lock:
            self._purge_expired()
            entry = self._entries.get(token)
            if entry is None or entry.owner != owner:
                raise EditorNotFound(token)
            entry.touched = self._clock()
            return entry

    def get(self, token, owner=None):
        return self._lookup(token, owner).editor

    @contextmanager
    def checkout(self, token, owner=None):
        """Hold the editor exclusively while a request mutates it"""
        entry = self._lookup(token, owner)
        with entry.lock:
            yield entry.editor

    def close(self, token) -> bool:
        with self._lock:
            return self._entries.pop(token, None) is not None

    def _purge_expired(self):
        now = self._clock()
        expired = [token for token, entry in self._entries.items() if now - entry.touched > self.ttl]
        for token in expired:
            del self._entries[token]


def get_editor_store():
    """The app-wide store, created on first use"""
    from flask import current_app

    store = current_app.extensions.get('learncenter_editors')
    if store is None:
        store = EditorStore(ttl=int(current_app.config.get('EDITOR_SESSION_TTL', 3600)))
        current_app.extensions['learncenter_editors'] = store
    return store

"""
Realtime store.

In-process key/value tree addressed by slash-separated paths
(``games/AB12CD/players/p1``). It offers the primitives the browser clients used to
get from the hosted realtime database:

- ``get(path)``           point read (deep copy, ``None`` when absent)
- ``set(path, value)``    full write (``None`` removes the node)
- ``update(path, dict)``  multi-path partial update (keys may contain ``/``)
- ``remove(path)``
- ``transaction(path, fn)`` atomic read-modify-write under the store lock
- ``subscribe(path, cb)`` push-style change notifications

Every subscriber whose path overlaps a written path receives the full sub-tree of
its own path after the write (or ``None`` once the node disappears). Empty
dictionaries are pruned so that "no children" and "absent" are the same thing.

When a file path is given, the whole tree is flushed to disk (orjson) after each
write and reloaded on start.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Tuple

from .io_utils import read_json, write_json

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]
PathParts = Tuple[str, ...]


def split_path(path: str) -> PathParts:
    return tuple(part for part in (path or "").split("/") if part)


def _overlaps(a: PathParts, b: PathParts) -> bool:
    shortest = min(len(a), len(b))
    return a[:shortest] == b[:shortest]


@dataclass(eq=False)
class Subscription:
    path: str
    callback: Callback
    store: "RealtimeStore" = field(repr=False)
    active: bool = True

    @property
    def parts(self) -> PathParts:
        return split_path(self.path)

    def cancel(self) -> None:
        self.store.unsubscribe(self)


class RealtimeStore:
    """Arbre partagé + abonnements (thread-safe)."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._lock = RLock()
        self._root: Dict[str, Any] = {}
        self._subscriptions: List[Subscription] = []
        self.path = path
        self.load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Reload the tree from disk (no-op without a file path)."""
        if self.path is None:
            return
        with self._lock:
            raw = read_json(self.path)
            self._root = raw if isinstance(raw, dict) else {}

    def _flush(self) -> None:
        if self.path is not None:
            write_json(self.path, self._root)

    # ------------------------------------------------------------------
    # Tree helpers (lock held by callers)
    # ------------------------------------------------------------------
    def _read_nolock(self, parts: PathParts) -> Any:
        node: Any = self._root
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def _write_nolock(self, parts: PathParts, value: Any) -> None:
        if not parts:
            self._root = copy.deepcopy(value) if isinstance(value, dict) else {}
            return
        if value is None:
            self._remove_nolock(parts)
            return
        node = self._root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)

    def _remove_nolock(self, parts: PathParts) -> None:
        trail: List[Tuple[Dict[str, Any], str]] = []
        node: Any = self._root
        for part in parts[:-1]:
            if not isinstance(node, dict) or part not in node:
                return
            trail.append((node, part))
            node = node[part]
        if not isinstance(node, dict):
            return
        node.pop(parts[-1], None)
        # prune empty parents
        for parent, key in reversed(trail):
            if parent[key]:
                break
            del parent[key]

    def _notify_nolock(self, changed: List[PathParts]) -> None:
        for sub in list(self._subscriptions):
            if not sub.active:
                continue
            sub_parts = sub.parts
            if not any(_overlaps(sub_parts, parts) for parts in changed):
                continue
            snapshot = copy.deepcopy(self._read_nolock(sub_parts))
            try:
                sub.callback(snapshot)
            except Exception:
                logger.exception("Store subscriber failed", extra={"store_path": sub.path})

    def _commit_nolock(self, changed: List[PathParts]) -> None:
        self._flush()
        self._notify_nolock(changed)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get(self, path: str = "") -> Any:
        with self._lock:
            return copy.deepcopy(self._read_nolock(split_path(path)))

    def exists(self, path: str) -> bool:
        with self._lock:
            return self._read_nolock(split_path(path)) is not None

    def keys(self, path: str = "") -> List[str]:
        with self._lock:
            node = self._read_nolock(split_path(path))
            return list(node.keys()) if isinstance(node, dict) else []

    def set(self, path: str, value: Any) -> None:
        parts = split_path(path)
        with self._lock:
            self._write_nolock(parts, value)
            self._commit_nolock([parts])

    def update(self, path: str, values: Dict[str, Any]) -> None:
        """Partial update: each key is written relative to ``path`` (``None`` removes)."""
        base = split_path(path)
        with self._lock:
            changed: List[PathParts] = []
            for key, value in values.items():
                parts = base + split_path(key)
                self._write_nolock(parts, value)
                changed.append(parts)
            if changed:
                self._commit_nolock(changed)

    def remove(self, path: str) -> None:
        self.set(path, None)

    def transaction(self, path: str, fn: Callable[[Any], Any]) -> Any:
        """
        Atomic read-modify-write: ``fn`` receives a copy of the current value and
        returns the new one. Raising inside ``fn`` aborts without writing.
        """
        parts = split_path(path)
        with self._lock:
            current = copy.deepcopy(self._read_nolock(parts))
            new_value = fn(current)
            self._write_nolock(parts, new_value)
            self._commit_nolock([parts])
            return copy.deepcopy(new_value)

    def clear(self) -> None:
        with self._lock:
            changed = [(key,) for key in self._root.keys()]
            self._root = {}
            self._commit_nolock(changed or [()])

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, path: str, callback: Callback, immediate: bool = True) -> Subscription:
        """
        Register ``callback`` for changes under/above ``path``.
        With ``immediate`` the callback first receives the current value.
        """
        sub = Subscription(path=path, callback=callback, store=self)
        with self._lock:
            self._subscriptions.append(sub)
            if immediate:
                snapshot = copy.deepcopy(self._read_nolock(sub.parts))
                try:
                    callback(snapshot)
                except Exception:
                    logger.exception("Store subscriber failed", extra={"store_path": path})
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            sub.active = False
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    def subscriber_count(self, path: Optional[str] = None) -> int:
        with self._lock:
            if path is None:
                return len(self._subscriptions)
            return sum(1 for sub in self._subscriptions if sub.path == path)

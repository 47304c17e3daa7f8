"""
Service: timers.py
Rôle:
- Timers de manche (comptes à rebours, délais de suspense) sous forme de tâches asyncio.
- Chaque machine d'état possède son propre `RoundTimers`; le fermer annule toutes ses
  tâches en attente. Une machine abandonnée ne peut donc plus recevoir de callback tardif.

API:
- later(delay, cb)      → exécute `cb()` une fois après `delay` secondes
- every(interval, cb)   → exécute `cb()` toutes les `interval` secondes tant que `cb` ne renvoie pas False
- cancel_all()          → annule les tâches en cours (l'objet reste utilisable)
- close()               → annule et refuse toute nouvelle planification

Les callbacks sont synchrones; une exception est journalisée et arrête la tâche concernée.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Set

logger = logging.getLogger(__name__)


class RoundTimers:
    def __init__(self, label: str = "round") -> None:
        self.label = label
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def _spawn(self, coro) -> Optional[asyncio.Task]:
        if self._closed:
            coro.close()
            return None
        loop = asyncio.get_running_loop()
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def later(self, delay: float, callback: Callable[[], object]) -> Optional[asyncio.Task]:
        async def _runner():
            try:
                await asyncio.sleep(max(0.0, delay))
                callback()
            except asyncio.CancelledError:
                return
            except Exception:
                logger.exception("Round timer callback failed", extra={"timer_label": self.label})

        return self._spawn(_runner())

    def every(self, interval: float, callback: Callable[[], object]) -> Optional[asyncio.Task]:
        async def _runner():
            try:
                while True:
                    await asyncio.sleep(interval)
                    if callback() is False:
                        return
            except asyncio.CancelledError:
                return
            except Exception:
                logger.exception("Round ticker failed", extra={"timer_label": self.label})

        return self._spawn(_runner())

    def cancel_all(self) -> int:
        """Annule les tâches en attente; renvoie le nombre de tâches annulées."""
        current = None
        try:
            current = asyncio.current_task()
        except RuntimeError:
            pass
        cancelled = 0
        for task in list(self._tasks):
            if task.done():
                continue
            # la tâche qui s'annule elle-même se termine au prochain `await`
            task.cancel()
            if task is not current:
                cancelled += 1
        if cancelled:
            logger.debug("Round timers cancelled", extra={"timer_label": self.label, "cancelled": cancelled})
        return cancelled

    def close(self) -> int:
        self._closed = True
        return self.cancel_all()

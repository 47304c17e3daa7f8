"""
Service: round_engine.py
Rôle:
- Orchestrer la manche courante d'une session: machines d'état vivantes, timers, issues.
- Seul écrivain des sous-états de manche (`redLight`, `tugOfWar`, `glassBridge`, `play/{id}`).

Cycle:
- `advance_round()` passe à la manche suivante et jette toutes les machines (timers fermés).
- `start()` crée la machine partagée (red light, variantes équipe) ou la machine solo du joueur.
- Les actions (`red_light_move`, `tug_pull`, ...) vérifient: session en jeu, bon jeu,
  joueur connu et vivant. Elles appliquent la transition puis publient la vue publique.
- Les issues (player_id, survived) deviennent `eliminate` ou `reward(REWARD)`.

Timers:
- ROUND_TIMERS_ENABLED=True  → comptes à rebours via `RoundTimers.every`, suspense via `later`;
- ROUND_TIMERS_ENABLED=False → horloge manuelle (`tick(count)`), suspense résolu immédiatement.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Optional

from squidparty.config.settings import settings
from squidparty.games import glass_bridge, honeycomb, marbles, red_light, squid_game, tug_of_war
from squidparty.games.base import PHASE_FINISHED, GameActionError, Outcome
from squidparty.games.catalog import CATALOG, GameEntry
from squidparty.utils.team_utils import turn_order
from .session_state import STATUS_PLAYING, GameSession
from .timers import RoundTimers

logger = logging.getLogger(__name__)

MODE_SHARED = "shared"
MODE_TEAM = "team"
MODE_SOLO = "solo"

# clé du sous-état partagé dans `games/{code}`
SHARED_KEYS = {
    red_light.GAME_ID: "redLight",
    tug_of_war.GAME_ID: "tugOfWar",
    glass_bridge.GAME_ID: "glassBridge",
}

VIEWS: Dict[tuple, Callable[[Any], dict]] = {
    (red_light.GAME_ID, MODE_SHARED): red_light.public_view,
    (honeycomb.GAME_ID, MODE_SOLO): honeycomb.public_view,
    (tug_of_war.GAME_ID, MODE_TEAM): tug_of_war.team_view,
    (tug_of_war.GAME_ID, MODE_SOLO): tug_of_war.solo_view,
    (marbles.GAME_ID, MODE_SOLO): marbles.public_view,
    (glass_bridge.GAME_ID, MODE_TEAM): glass_bridge.team_view,
    (glass_bridge.GAME_ID, MODE_SOLO): glass_bridge.solo_view,
    (squid_game.GAME_ID, MODE_SOLO): squid_game.public_view,
}

# (période en secondes, transition) des jeux à compte à rebours
TICKERS: Dict[tuple, tuple] = {
    (red_light.GAME_ID, MODE_SHARED): (red_light.TICK_SECONDS, lambda s, rng: red_light.tick(s, rng)),
    (honeycomb.GAME_ID, MODE_SOLO): (honeycomb.TICK_SECONDS, lambda s, rng: honeycomb.tick(s)),
    (tug_of_war.GAME_ID, MODE_TEAM): (tug_of_war.TEAM_TICK_SECONDS, lambda s, rng: tug_of_war.tick_team(s)),
    (tug_of_war.GAME_ID, MODE_SOLO): (tug_of_war.SOLO_TICK_SECONDS, lambda s, rng: tug_of_war.tick_solo(s)),
}


class RoundNotActive(RuntimeError):
    """Aucune manche jouable (lobby, session terminée, machine pas encore démarrée)."""


@dataclass(eq=False)
class _Slot:
    """Machine d'état vivante + ses timers (une partagée, ou une par joueur)."""
    game_id: str
    mode: str
    state: Any
    timers: RoundTimers
    player_id: Optional[str] = None
    settled: bool = False
    token: int = 0

    @property
    def key(self) -> tuple:
        return (self.game_id, self.mode)


def _solo_survived(game_id: str, state: Any) -> bool:
    if game_id == honeycomb.GAME_ID:
        return bool(state.survived)
    if game_id == marbles.GAME_ID:
        return bool(state.correct)
    return bool(state.won)


class RoundEngine:
    def __init__(
        self,
        session: GameSession,
        rng: Optional[random.Random] = None,
        timers_enabled: Optional[bool] = None,
        auto_advance: Optional[bool] = None,
        bridge_timeout: Optional[float] = None,
    ) -> None:
        self.session = session
        self.rng = rng or random.Random()
        self.timers_enabled = settings.ROUND_TIMERS_ENABLED if timers_enabled is None else timers_enabled
        self.auto_advance = settings.AUTO_ADVANCE_TEAM_ROUNDS if auto_advance is None else auto_advance
        self.bridge_timeout = settings.BRIDGE_TURN_TIMEOUT_SECONDS if bridge_timeout is None else bridge_timeout
        self._lock = RLock()
        self._round: Optional[int] = None
        self._shared: Optional[_Slot] = None
        self._solo: Dict[str, _Slot] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Cycle de vie
    # ------------------------------------------------------------------
    def _slots(self) -> List[_Slot]:
        slots = list(self._solo.values())
        if self._shared is not None:
            slots.insert(0, self._shared)
        return slots

    def _discard(self) -> None:
        for slot in self._slots():
            slot.timers.close()
        self._shared = None
        self._solo = {}

    def _sync(self, snapshot: Dict[str, Any]) -> None:
        """Jette les machines d'une manche qui n'est plus la manche courante."""
        current = int(snapshot.get("currentRound", 0))
        if self._round != current:
            self._discard()
            self._round = current

    def advance_round(self) -> int:
        with self._lock:
            self._discard()
            self._round = self.session.advance_round()
            return self._round

    def shutdown(self) -> None:
        with self._lock:
            self._discard()
            self._closed = True

    def _entry(self) -> tuple:
        """(GameEntry, mode) de la manche courante, sinon RoundNotActive."""
        snap = self.session.require()
        self._sync(snap)
        entry = CATALOG.for_round(int(snap.get("currentRound", 0)))
        if snap.get("status") != STATUS_PLAYING or entry is None:
            raise RoundNotActive("round_not_active")
        return entry, entry.resolve_mode(snap.get("options"))

    def _prepare(self, game_id: str, player_id: Optional[str]) -> tuple:
        entry, mode = self._entry()
        if entry.game_id != game_id:
            raise GameActionError(f"wrong_game:{entry.game_id}")
        self.session.require_active_player(player_id)
        return entry, mode

    # ------------------------------------------------------------------
    # Publication & issues
    # ------------------------------------------------------------------
    def _publish(self, slot: _Slot) -> None:
        view = VIEWS[slot.key](slot.state)
        if slot.player_id is None:
            self.session.write_round_state(SHARED_KEYS[slot.game_id], view)
        else:
            self.session.write_player_round(slot.player_id, view)

    def _apply(self, outcomes: Iterable[Outcome], entry: GameEntry) -> None:
        for outcome in outcomes:
            if outcome.survived:
                self.session.reward(outcome.player_id, entry.reward, entry.round)
            else:
                self.session.eliminate(outcome.player_id, reason=entry.game_id)
            logger.info(
                "Round outcome",
                extra={
                    "session_code": self.session.code,
                    "game_id": entry.game_id,
                    "player_id": outcome.player_id,
                    "survived": outcome.survived,
                },
            )

    def _outcomes(self, slot: _Slot, before: Any, after: Any) -> List[Outcome]:
        if slot.key == (red_light.GAME_ID, MODE_SHARED):
            return red_light.resolved_between(before, after)
        if slot.key == (glass_bridge.GAME_ID, MODE_TEAM):
            return glass_bridge.team_outcomes_between(before, after)
        if slot.settled or after.phase != PHASE_FINISHED:
            return []
        slot.settled = True
        if slot.key == (tug_of_war.GAME_ID, MODE_TEAM):
            return tug_of_war.team_outcomes(after)
        return [Outcome(slot.player_id, _solo_survived(slot.game_id, after))]

    def _is_current(self, slot: _Slot) -> bool:
        if slot.timers.closed:
            return False
        if slot.player_id is None:
            return slot is self._shared
        return self._solo.get(slot.player_id) is slot

    def _transition(self, slot: _Slot, fn: Callable[[Any], Any]) -> Any:
        """Applique `fn` à l'état du slot, publie la vue, applique les issues."""
        with self._lock:
            if not self._is_current(slot):
                return slot.state
            before = slot.state
            after = fn(before)
            slot.state = after
            self._publish(slot)
            entry = CATALOG.get(slot.game_id)
            self._apply(self._outcomes(slot, before, after), entry)
            if (
                self.auto_advance
                and slot.mode == MODE_TEAM
                and before.phase != PHASE_FINISHED
                and after.phase == PHASE_FINISHED
            ):
                logger.info("Team round finished, advancing", extra={"session_code": self.session.code})
                self.advance_round()
            return after

    # ------------------------------------------------------------------
    # Horloge
    # ------------------------------------------------------------------
    def _arm_ticker(self, slot: _Slot) -> None:
        ticker = TICKERS.get(slot.key)
        if ticker is None or not self.timers_enabled:
            return
        interval, step = ticker

        def _on_tick():
            state = self._transition(slot, lambda s: step(s, self.rng))
            return self._is_current(slot) and state.phase != PHASE_FINISHED

        slot.timers.every(interval, _on_tick)

    def _after(self, slot: _Slot, delay: float, fn: Callable[[Any], Any], then: Optional[Callable[[], None]] = None) -> None:
        """Suspense: `fn` appliqué après `delay` (immédiatement si les timers sont coupés)."""

        def _fire():
            self._transition(slot, fn)
            if then is not None:
                with self._lock:
                    if self._is_current(slot):
                        then()

        if self.timers_enabled:
            slot.timers.later(delay, _fire)
        else:
            _fire()

    def tick(self, count: int = 1) -> Dict[str, Any]:
        """Avance manuellement toutes les horloges vivantes de `count` ticks."""
        with self._lock:
            self._sync(self.session.require())
            for _ in range(max(0, int(count))):
                for slot in self._slots():
                    ticker = TICKERS.get(slot.key)
                    if ticker is None or slot.state.phase == PHASE_FINISHED:
                        continue
                    _, step = ticker
                    self._transition(slot, lambda s, step=step: step(s, self.rng))
            return self.status()

    # ------------------------------------------------------------------
    # Démarrage
    # ------------------------------------------------------------------
    def _new_slot(self, game_id: str, mode: str, state: Any, player_id: Optional[str] = None) -> _Slot:
        label = f"{self.session.code}:{game_id}:{player_id or mode}"
        return _Slot(game_id=game_id, mode=mode, state=state, timers=RoundTimers(label), player_id=player_id)

    def _start_shared(self, entry: GameEntry, mode: str) -> None:
        if self._shared is not None:
            raise GameActionError("already_started")
        alive = self.session.alive_player_ids()
        if entry.game_id == red_light.GAME_ID:
            slot = self._new_slot(entry.game_id, mode, red_light.RedLightState())
            start = lambda s: red_light.start(s, alive, self.rng)
        elif entry.game_id == tug_of_war.GAME_ID:
            slot = self._new_slot(entry.game_id, mode, tug_of_war.TeamTugState())
            start = lambda s: tug_of_war.start_team(s, alive, self.rng)
        else:
            slot = self._new_slot(entry.game_id, mode, glass_bridge.TeamBridgeState())
            order = turn_order(alive, self.rng)
            start = lambda s: glass_bridge.start_team(s, order, self.rng)
        self._shared = slot
        self._transition(slot, start)
        self._arm_ticker(slot)
        if entry.game_id == glass_bridge.GAME_ID:
            self._arm_bridge_timeout(slot)
        self.session.log_event("round_started", {"game": entry.game_id, "mode": mode, "players": alive}, scope="round")
        logger.info("Round started", extra={"session_code": self.session.code, "game_id": entry.game_id})

    def _start_solo(self, entry: GameEntry, player_id: str) -> None:
        if player_id in self._solo:
            raise GameActionError("already_started")
        game_id = entry.game_id
        if game_id == honeycomb.GAME_ID:
            slot = self._new_slot(game_id, MODE_SOLO, honeycomb.HoneycombState(), player_id)
            start = lambda s: honeycomb.start(s, self.rng)
        elif game_id == tug_of_war.GAME_ID:
            slot = self._new_slot(game_id, MODE_SOLO, tug_of_war.SoloTugState(), player_id)
            start = tug_of_war.start_solo
        elif game_id == marbles.GAME_ID:
            slot = self._new_slot(game_id, MODE_SOLO, marbles.MarblesState(), player_id)
            start = lambda s: marbles.start(s, self.rng)
        elif game_id == glass_bridge.GAME_ID:
            slot = self._new_slot(game_id, MODE_SOLO, glass_bridge.SoloBridgeState(), player_id)
            start = lambda s: glass_bridge.start_solo(s, self.rng)
        else:
            slot = self._new_slot(game_id, MODE_SOLO, squid_game.CombatState(), player_id)
            start = squid_game.start
        self._solo[player_id] = slot
        self._transition(slot, start)
        self._arm_ticker(slot)
        self.session.log_event("round_started", {"game": game_id, "mode": MODE_SOLO, "player_id": player_id}, scope="round")

    def start(self, player_id: Optional[str] = None, admin: bool = False) -> Dict[str, Any]:
        """
        Démarre la manche courante.
        - partagé / équipe: l'admin ou le premier joueur vivant; un second appel → already_started;
        - solo: la machine du joueur; l'admin sans player_id démarre celles de tous les vivants.
        """
        with self._lock:
            entry, mode = self._entry()
            if not admin:
                self.session.require_active_player(player_id)
            if mode in (MODE_SHARED, MODE_TEAM):
                self._start_shared(entry, mode)
            elif player_id:
                if admin:
                    self.session.require_active_player(player_id)
                self._start_solo(entry, player_id)
            else:
                for pid in self.session.alive_player_ids():
                    if pid not in self._solo:
                        self._start_solo(entry, pid)
            return self.status(player_id)

    # ------------------------------------------------------------------
    # Accès aux machines
    # ------------------------------------------------------------------
    def _shared_slot(self) -> _Slot:
        if self._shared is None:
            raise RoundNotActive("round_not_started")
        return self._shared

    def _solo_slot(self, player_id: str) -> _Slot:
        slot = self._solo.get(player_id)
        if slot is None:
            raise RoundNotActive("round_not_started")
        return slot

    def _slot_for(self, mode: str, player_id: str) -> _Slot:
        return self._solo_slot(player_id) if mode == MODE_SOLO else self._shared_slot()

    # ------------------------------------------------------------------
    # Actions joueurs
    # ------------------------------------------------------------------
    def red_light_move(self, player_id: str, moving: bool) -> Dict[str, Any]:
        with self._lock:
            self._prepare(red_light.GAME_ID, player_id)
            slot = self._shared_slot()
            self._transition(slot, lambda s: red_light.move(s, player_id, moving))
            return self.status(player_id)

    def honeycomb_begin_stroke(self, player_id: str, point) -> Dict[str, Any]:
        with self._lock:
            self._prepare(honeycomb.GAME_ID, player_id)
            slot = self._solo_slot(player_id)
            self._transition(slot, lambda s: honeycomb.begin_stroke(s, point))
            return self.status(player_id)

    def honeycomb_extend_stroke(self, player_id: str, points) -> Dict[str, Any]:
        with self._lock:
            self._prepare(honeycomb.GAME_ID, player_id)
            slot = self._solo_slot(player_id)
            self._transition(slot, lambda s: honeycomb.extend_stroke(s, points))
            return self.status(player_id)

    def honeycomb_submit(self, player_id: str) -> Dict[str, Any]:
        with self._lock:
            self._prepare(honeycomb.GAME_ID, player_id)
            slot = self._solo_slot(player_id)
            self._transition(slot, honeycomb.submit)
            return self.status(player_id)

    def tug_pull(self, player_id: str) -> Dict[str, Any]:
        with self._lock:
            _, mode = self._prepare(tug_of_war.GAME_ID, player_id)
            slot = self._slot_for(mode, player_id)
            if mode == MODE_TEAM:
                self._transition(slot, lambda s: tug_of_war.pull_team(s, player_id))
            else:
                self._transition(slot, tug_of_war.pull_solo)
            return self.status(player_id)

    def marbles_guess(self, player_id: str, choice: str) -> Dict[str, Any]:
        with self._lock:
            self._prepare(marbles.GAME_ID, player_id)
            slot = self._solo_slot(player_id)
            self._transition(slot, lambda s: marbles.guess(s, choice))
            self._after(slot, marbles.REVEAL_DELAY, marbles.reveal)
            return self.status(player_id)

    def bridge_choose(self, player_id: str, panel: str) -> Dict[str, Any]:
        with self._lock:
            _, mode = self._prepare(glass_bridge.GAME_ID, player_id)
            slot = self._slot_for(mode, player_id)
            if mode == MODE_TEAM:
                self._transition(slot, lambda s: glass_bridge.choose_team(s, player_id, panel))
                slot.token += 1
                self._after(
                    slot,
                    glass_bridge.STEP_DELAY,
                    glass_bridge.resolve_team,
                    then=lambda: self._arm_bridge_timeout(slot),
                )
            else:
                self._transition(slot, lambda s: glass_bridge.choose_solo(s, panel))
                self._after(slot, glass_bridge.STEP_DELAY, glass_bridge.resolve_solo)
            return self.status(player_id)

    def combat_choose(self, player_id: str, action: str) -> Dict[str, Any]:
        with self._lock:
            self._prepare(squid_game.GAME_ID, player_id)
            slot = self._solo_slot(player_id)
            self._transition(slot, lambda s: squid_game.choose(s, action, self.rng))
            self._after(slot, squid_game.RESOLVE_DELAY, lambda s: squid_game.resolve(s, self.rng))
            return self.status(player_id)

    # ------------------------------------------------------------------
    # Pont de verre: forfait du joueur courant
    # ------------------------------------------------------------------
    def bridge_skip_turn(self) -> Dict[str, Any]:
        """Fait passer le tour du joueur courant (compte comme une chute)."""
        with self._lock:
            entry, mode = self._entry()
            if entry.game_id != glass_bridge.GAME_ID or mode != MODE_TEAM:
                raise GameActionError("no_bridge_turns")
            slot = self._shared_slot()
            skipped = glass_bridge.current_player(slot.state)
            self._transition(slot, glass_bridge.skip_turn)
            self.session.log_event("bridge_turn_skipped", {"player_id": skipped}, scope="admin")
            self._arm_bridge_timeout(slot)
            return self.status()

    def _arm_bridge_timeout(self, slot: _Slot) -> None:
        slot.token += 1
        if not self.timers_enabled or self.bridge_timeout <= 0 or slot.state.phase == PHASE_FINISHED:
            return
        token = slot.token

        def _expire():
            with self._lock:
                if not self._is_current(slot) or slot.token != token or slot.state.pending_panel is not None:
                    return
                logger.info(
                    "Bridge turn timed out",
                    extra={"session_code": self.session.code, "player_id": glass_bridge.current_player(slot.state)},
                )
                self._transition(slot, glass_bridge.skip_turn)
                self._arm_bridge_timeout(slot)

        slot.timers.later(self.bridge_timeout, _expire)

    # ------------------------------------------------------------------
    # Lecture
    # ------------------------------------------------------------------
    def status(self, player_id: Optional[str] = None) -> Dict[str, Any]:
        """Jeu courant, vue partagée et vue solo du joueur (si fourni)."""
        with self._lock:
            snap = self.session.require()
            self._sync(snap)
            round_number = int(snap.get("currentRound", 0))
            entry = CATALOG.for_round(round_number)
            mode = entry.resolve_mode(snap.get("options")) if entry else None
            solo = self._solo.get(player_id) if player_id else None
            return {
                "code": self.session.code,
                "round": round_number,
                "status": snap.get("status"),
                "game": entry.game_id if entry else None,
                "view": entry.view if entry else None,
                "mode": mode,
                "started": self._shared is not None or bool(self._solo),
                "shared": VIEWS[self._shared.key](self._shared.state) if self._shared else None,
                "solo": VIEWS[solo.key](solo.state) if solo else None,
            }

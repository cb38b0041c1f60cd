import logging
import math
import random
import threading
import time
import uuid
from typing import Callable, Dict, List, Optional

from .errors import AlreadyJoined, AlreadyPicked, InvalidPick, NoActiveRound, NoResolvedRound, NotJoined
from .round_state import MAX_PICK, MIN_PICK, Round, RoundStatus, compute_winners


def draw_winning_number() -> int:
    return random.SystemRandom().randint(MIN_PICK, MAX_PICK)


def validate_pick(value) -> int:
    # bool is an int subclass; True must not count as a pick of 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPick()
    if value < MIN_PICK or value > MAX_PICK:
        raise InvalidPick()
    return value


class SessionEngine:
    """Owns the current round and drives open -> resolving -> cooldown -> open.

    Every mutation, including the timer-driven close and restart, runs under
    ``self._lock``. Timers carry the round id they were scheduled for and
    abort when the engine has moved on, so each round closes exactly once
    and restarts exactly once.

    Collaborators (win credit, history sink, transition listeners) are
    called after the lock is released, through ``scheduler.spawn``.
    """

    def __init__(self, scheduler, duration_sec: float = 20, cooldown_sec: float = 10,
                 on_winner: Optional[Callable[[str, str], None]] = None,
                 history_sink: Optional[Callable[[dict], None]] = None,
                 credit_attempts: int = 3,
                 draw: Callable[[], int] = draw_winning_number,
                 wall_clock: Callable[[], float] = time.time,
                 logger=None):
        self.scheduler = scheduler
        self.duration_sec = duration_sec
        self.cooldown_sec = cooldown_sec
        self.on_winner = on_winner
        self.history_sink = history_sink
        self.credit_attempts = max(1, int(credit_attempts))
        self.draw = draw
        self._wall_clock = wall_clock
        self._logger = logger or logging.getLogger(__name__)
        self._listeners: List[Callable[[dict], None]] = []
        self._lock = threading.Lock()
        self._current: Optional[Round] = None
        self._resolved: Optional[Round] = None
        self._next_open_at: Optional[float] = None
        self._stopped = False

    # ---- lifecycle ----

    @property
    def state(self) -> RoundStatus:
        with self._lock:
            return self._current.status if self._current else RoundStatus.PENDING

    def add_listener(self, listener: Callable[[dict], None]) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        """Open the first round. Calling it again is a no-op."""
        with self._lock:
            if self._stopped or self._current is not None:
                return
            event = self._open_round()
        self._notify(event)

    def stop(self) -> None:
        with self._lock:
            self._stopped = True
        self.scheduler.shutdown()

    def _open_round(self) -> dict:
        # caller holds self._lock
        now = self._wall_clock()
        rnd = Round(
            round_id=uuid.uuid4().hex,
            opened_at=now,
            closes_at=now + self.duration_sec,
            deadline=self.scheduler.now() + self.duration_sec,
        )
        self._current = rnd
        self._next_open_at = None
        self._logger.info(f"[round-open] round={rnd.round_id} duration={self.duration_sec}s")
        self.scheduler.call_later(self.duration_sec, self._fire_close, rnd.round_id,
                                  label=f"close round={rnd.round_id}")
        return self._event(rnd)

    def _fire_close(self, round_id: str) -> None:
        with self._lock:
            rnd = self._current
            if self._stopped or rnd is None or rnd.round_id != round_id or not rnd.is_open:
                self._logger.info(f"[timer-abort] close round={round_id} no longer open")
                return
            rnd.status = RoundStatus.RESOLVING
            rnd.freeze()
            rnd.winning_number = self.draw()
            rnd.winners = compute_winners(rnd.players, rnd.winning_number)
            rnd.closed_at = self._wall_clock()
            self._logger.info(
                f"[round-close] round={round_id} winning_number={rnd.winning_number} "
                f"players={len(rnd.players)} winners={len(rnd.winners)}"
            )
            rnd.status = RoundStatus.COOLDOWN
            self._resolved = rnd
            self._next_open_at = rnd.closed_at + self.cooldown_sec
            self.scheduler.call_later(self.cooldown_sec, self._fire_open, round_id,
                                      label=f"restart after round={round_id}")
            record = rnd.to_record()
            event = self._event(rnd)
        self.scheduler.spawn(self._settle, record)
        self._notify(event)

    def _fire_open(self, previous_round_id: str) -> None:
        with self._lock:
            rnd = self._current
            if (self._stopped or rnd is None or rnd.round_id != previous_round_id
                    or rnd.status != RoundStatus.COOLDOWN):
                self._logger.info(f"[timer-abort] restart after round={previous_round_id} out of date")
                return
            event = self._open_round()
        self._notify(event)

    def _settle(self, record: dict) -> None:
        """Credit winners and persist the round. Failures are logged only."""
        round_id = record['round_id']
        if self.on_winner is not None:
            for username in record['winners']:
                self._credit(username, round_id)
        if self.history_sink is not None:
            try:
                self.history_sink(record)
            except Exception:
                self._logger.error(f"[history-fail] round={round_id}", exc_info=True)

    def _credit(self, username: str, round_id: str) -> None:
        for attempt in range(1, self.credit_attempts + 1):
            try:
                self.on_winner(username, round_id)
                return
            except Exception:
                self._logger.error(
                    f"[credit-fail] round={round_id} user={username} attempt={attempt}/{self.credit_attempts}",
                    exc_info=True,
                )

    def _event(self, rnd: Round) -> dict:
        return {'roundId': rnd.round_id, 'status': rnd.status.value, 'winningNumber': rnd.winning_number}

    def _notify(self, event: dict) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                self._logger.error(f"[notify-fail] round={event.get('roundId')}", exc_info=True)

    # ---- player operations ----

    def _require_open(self) -> Round:
        rnd = self._current
        if rnd is None or not rnd.is_open:
            raise NoActiveRound()
        return rnd

    def join(self, identity: str) -> None:
        with self._lock:
            rnd = self._require_open()
            if identity in rnd.players:
                raise AlreadyJoined()
            rnd.players[identity] = None

    def pick(self, identity: str, value) -> int:
        with self._lock:
            rnd = self._require_open()
            value = validate_pick(value)
            if identity not in rnd.players:
                raise NotJoined()
            if rnd.players[identity] is not None:
                raise AlreadyPicked()
            rnd.players[identity] = value
            return value

    def leave(self, identity: str) -> None:
        with self._lock:
            rnd = self._current
            if rnd is None or not rnd.is_open:
                return
            rnd.players.pop(identity, None)

    # ---- reads ----

    def _time_left(self, rnd: Optional[Round]) -> int:
        if rnd is None or not rnd.is_open:
            return 0
        return max(0, math.floor(rnd.deadline - self.scheduler.now()))

    def status(self, identity: Optional[str] = None) -> Dict[str, object]:
        with self._lock:
            rnd = self._current
            is_open = rnd is not None and rnd.is_open
            players = rnd.players if is_open else {}
            payload = {
                'isActive': is_open,
                'timeLeft': self._time_left(rnd),
                'playersCount': len(players),
                'players': list(players),
                'roundId': rnd.round_id if rnd else None,
                'closesAt': rnd.closes_at if is_open else None,
                'nextSessionStart': self._next_open_at if not is_open else None,
            }
            if identity is not None:
                pick = players.get(identity)
                payload.update({
                    'hasJoined': identity in players,
                    'hasPicked': pick is not None,
                    'pick': pick,
                })
            return payload

    def current_results(self) -> Dict[str, object]:
        """Results view of the round in progress; only available while open."""
        with self._lock:
            return self._require_open().results()

    def results(self) -> Dict[str, object]:
        """Results of the most recently resolved round."""
        with self._lock:
            if self._resolved is None:
                raise NoResolvedRound()
            return self._resolved.results()

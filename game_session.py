"""
Level-by-level play-through of one mini-game.

Each game screen moves through the same phases::

    INSTRUCTION --begin--> SHOWING --tick x N--> PLAYING --answer/timeout--> RESULT
    RESULT --continue--> INSTRUCTION (next level or retry) | PLAYING (next round) | COMPLETE

Timed phases advance only through ``tick()``, one transition per call. A
``Ticker`` turns that into wall-clock time with a single re-armed timer.
Puzzle content (sequences, equations, paths) lives in the front end; the
session only learns whether an answer was right.
"""
import logging
import threading
import uuid
from enum import Enum

import games_config
from models import GameId

logger = logging.getLogger(__name__)

TICK_SECONDS = 0.1


class Phase(str, Enum):
    INSTRUCTION = "instruction"
    SHOWING = "showing"
    PLAYING = "playing"
    RESULT = "result"
    COMPLETE = "complete"


class SessionStateError(ValueError):
    """An action was requested in a phase that does not accept it."""


class LevelSession:
    def __init__(self, game_id, ledger, session_id=None):
        self.game = games_config.get_game(game_id)
        self.game_id = GameId(game_id)
        self.ledger = ledger
        self.session_id = session_id or uuid.uuid4().hex
        self.level = 1
        self.phase = Phase.INSTRUCTION
        self.total_score = 0
        self.rounds_completed = 0
        self.reveal_index = None
        self.last_correct = None
        self.timed_out = False
        self._ticks_left = None
        # bumped by every player action; ticks scheduled before it are stale
        self.epoch = 0
        self._lock = threading.RLock()

    @property
    def reveal_length(self) -> int:
        return games_config.reveal_length(self.game_id, self.level)

    @property
    def time_remaining(self):
        if self._ticks_left is None:
            return None
        return round(self._ticks_left * TICK_SECONDS, 1)

    def _require(self, *phases):
        if self.phase not in phases:
            raise SessionStateError(
                f"cannot do that while {self.phase.value}, expected {'/'.join(p.value for p in phases)}"
            )

    def next_delay(self):
        """Seconds until the next tick is due, or None when nothing is timed."""
        with self._lock:
            if self.phase == Phase.SHOWING:
                return self.game["reveal"]["interval"]
            if self.phase == Phase.PLAYING and self._ticks_left is not None:
                return TICK_SECONDS
            return None

    def next_tick(self):
        """``(delay, epoch)`` for the next tick, read in one step."""
        with self._lock:
            return self.next_delay(), self.epoch

    def begin(self):
        with self._lock:
            self._require(Phase.INSTRUCTION)
            self.epoch += 1
            if self.reveal_length:
                self.phase = Phase.SHOWING
                self.reveal_index = 0
            else:
                self._start_round()

    def _start_round(self):
        self.phase = Phase.PLAYING
        self.reveal_index = None
        self.last_correct = None
        self.timed_out = False
        seconds = games_config.answer_seconds(self.game_id, self.level)
        self._ticks_left = None if seconds is None else int(round(seconds / TICK_SECONDS))

    def tick(self, epoch=None) -> bool:
        """Advance one step. Returns False when the current phase is not timed,
        or when ``epoch`` is given and a player action has happened since."""
        with self._lock:
            if epoch is not None and epoch != self.epoch:
                return False
            if self.phase == Phase.SHOWING:
                if self.reveal_index + 1 < self.reveal_length:
                    self.reveal_index += 1
                else:
                    self._start_round()
                return True
            if self.phase == Phase.PLAYING and self._ticks_left is not None:
                self._ticks_left -= 1
                if self._ticks_left <= 0:
                    self._ticks_left = 0
                    self.last_correct = False
                    self.timed_out = True
                    self.phase = Phase.RESULT
                return True
            return False

    def answer(self, correct: bool):
        with self._lock:
            self._require(Phase.PLAYING)
            self.epoch += 1
            self.last_correct = bool(correct)
            if self.last_correct:
                self.rounds_completed += 1
                self.total_score += self.level * self.game["round_bonus"]
            self.phase = Phase.RESULT

    def continue_(self):
        with self._lock:
            self._require(Phase.RESULT)
            self.epoch += 1
            if self.last_correct and self.rounds_completed >= self.game["rounds_per_level"]:
                self._complete_level()
            elif self.last_correct:
                self._start_round()
            elif self.game["fail_ends_first_level"] and self.level == 1:
                self.phase = Phase.COMPLETE
            elif self.game["rounds_per_level"] > 1:
                self._start_round()
            else:
                self.phase = Phase.INSTRUCTION

    def _complete_level(self):
        points = games_config.level_score(self.game_id, self.level)
        self.total_score += points
        self.ledger.record_score(self.game_id, points)
        self.ledger.grant_reward(self.game["reward"])
        logger.info("%s level %d complete, +%d", self.game_id.value, self.level, points)
        self.rounds_completed = 0
        self._ticks_left = None
        if self.level < self.game["max_level"]:
            self.level += 1
            self.phase = Phase.INSTRUCTION
        else:
            self.phase = Phase.COMPLETE

    def to_dict(self):
        with self._lock:
            return {
                "id": self.session_id,
                "game": self.game_id.value,
                "level": self.level,
                "max_level": self.game["max_level"],
                "phase": self.phase.value,
                "score": self.total_score,
                "rounds_completed": self.rounds_completed,
                "rounds_per_level": self.game["rounds_per_level"],
                "reveal_index": self.reveal_index,
                "reveal_length": self.reveal_length,
                "time_remaining": self.time_remaining,
                "last_correct": self.last_correct,
                "timed_out": self.timed_out,
            }


class Ticker:
    """Calls ``session.tick()`` on schedule, one ``threading.Timer`` at a time."""

    def __init__(self, session):
        self.session = session
        self._timer = None
        self._generation = 0
        self._lock = threading.Lock()

    def arm(self):
        """(Re)schedule the next tick for the session's current phase."""
        with self._lock:
            self._cancel_locked()
            delay, epoch = self.session.next_tick()
            if delay is None:
                return
            self._timer = threading.Timer(delay, self._fire, args=(self._generation, epoch))
            self._timer.daemon = True
            self._timer.start()

    def _fire(self, generation, epoch):
        with self._lock:
            # superseded by a later arm() or cancel()
            if generation != self._generation:
                return
            self._timer = None
            if not self.session.tick(epoch):
                return
        self.arm()

    def _cancel_locked(self):
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel(self):
        with self._lock:
            self._cancel_locked()

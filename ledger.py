import logging
import threading
from datetime import datetime

from models import GameId, RewardId

logger = logging.getLogger(__name__)


class ScoreLedger:
    """Scores per game, earned rewards and the onboarding flag for one app session.

    Pass the ``db`` module (or anything with the same functions) as ``store``
    to load previous progress and write every change through to it.
    Observers registered with ``subscribe`` are called as
    ``callback(event, ledger)`` after each mutation.
    """

    def __init__(self, store=None):
        self._store = store
        self._lock = threading.RLock()
        self._scores = {}
        self._rewards = set()
        self._onboarding_completed = False
        self._observers = []
        if store is not None:
            self._load()

    def _load(self):
        for row in self._store.get_scores():
            self._scores.setdefault(GameId(row["game"]), []).append(row["value"])
        self._rewards = {RewardId(row["reward"]) for row in self._store.get_rewards()}
        self._onboarding_completed = self._store.get_flag(self._store.ONBOARDING_KEY)
        logger.info(
            "Loaded %d scores and %d rewards from store",
            sum(len(v) for v in self._scores.values()), len(self._rewards)
        )

    def subscribe(self, callback):
        self._observers.append(callback)

    def unsubscribe(self, callback):
        self._observers.remove(callback)

    def _notify(self, event):
        for callback in list(self._observers):
            callback(event, self)

    def record_score(self, game_id, points):
        game_id = GameId(game_id)
        if isinstance(points, bool) or not isinstance(points, int) or points < 0:
            raise ValueError(f"points must be a non-negative integer, got {points!r}")
        with self._lock:
            if self._store is not None:
                self._store.add_score(game_id.value, points, datetime.utcnow().isoformat())
            self._scores.setdefault(game_id, []).append(points)
            logger.debug("Recorded %d for %s: %s", points, game_id.value, self._scores[game_id])
            self._notify("score")

    def grant_reward(self, reward_id):
        reward_id = RewardId(reward_id)
        with self._lock:
            if reward_id in self._rewards:
                return
            if self._store is not None:
                self._store.add_reward(reward_id.value, datetime.utcnow().isoformat())
            self._rewards.add(reward_id)
            logger.debug("Granted reward %s", reward_id.value)
            self._notify("reward")

    def scores_for(self, game_id):
        with self._lock:
            return tuple(self._scores.get(GameId(game_id), ()))

    @property
    def earned_rewards(self):
        with self._lock:
            return frozenset(self._rewards)

    @property
    def has_completed_onboarding(self):
        return self._onboarding_completed

    def average_score(self, game_id) -> float:
        scores = self.scores_for(game_id)
        if not scores:
            return 0.0
        return sum(scores) / len(scores)

    def overall_average_score(self) -> float:
        with self._lock:
            all_scores = [s for scores in self._scores.values() for s in scores]
        if not all_scores:
            return 0.0
        return sum(all_scores) / len(all_scores)

    def reset_progress(self):
        """Clear scores and rewards. The onboarding flag survives a reset."""
        with self._lock:
            if self._store is not None:
                self._store.clear_progress()
            self._scores = {}
            self._rewards = set()
            logger.info("Progress reset")
            self._notify("reset")

    def set_onboarding_completed(self):
        with self._lock:
            if self._onboarding_completed:
                return
            if self._store is not None:
                self._store.set_flag(self._store.ONBOARDING_KEY, True)
            self._onboarding_completed = True
            self._notify("onboarding")

    def snapshot(self):
        """Everything the statistics screen shows, in one consistent read."""
        with self._lock:
            return {
                "overall_average": self.overall_average_score(),
                "games": {g.value: self.average_score(g) for g in GameId},
                "rewards": {r.value: r in self._rewards for r in RewardId},
            }

"""
Process-wide cache of goals and gamification profiles keyed by owner id.

Change events never trigger a full refetch: they only mark the affected
entity stale, and the next read re-fetches that one entity from the store.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from app.schemas.gamification import GamificationProfile
from app.schemas.goal import Goal
from app.services.change_feed import ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)

GOALS_TABLE = "personal_goals"
GAMIFICATION_TABLE = "user_gamification"


@dataclass
class _OwnerEntry:
    goals: Dict[int, Goal] = field(default_factory=dict)
    goals_loaded: bool = False
    stale_goal_ids: Set[int] = field(default_factory=set)
    gamification: Optional[GamificationProfile] = None
    gamification_stale: bool = True


class GoalCache:
    def __init__(self):
        self._entries: Dict[int, _OwnerEntry] = {}
        self._lock = threading.RLock()
        self._unsubscribe = []

    def attach(self, feed: ChangeFeed):
        self._unsubscribe.append(feed.subscribe(self.handle_change, table=GOALS_TABLE))
        self._unsubscribe.append(feed.subscribe(self.handle_change, table=GAMIFICATION_TABLE))

    def detach(self):
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

    def _entry(self, owner_id: int) -> _OwnerEntry:
        return self._entries.setdefault(owner_id, _OwnerEntry())

    # --- reads ---

    def get_goals(self, owner_id: int, store) -> List[Goal]:
        with self._lock:
            entry = self._entry(owner_id)
            if not entry.goals_loaded:
                self.load(owner_id, store)
            elif entry.stale_goal_ids:
                self._refetch_goals(entry, store)
            return sorted(entry.goals.values(), key=lambda g: g.id or 0, reverse=True)

    def get_gamification(self, owner_id: int, store) -> GamificationProfile:
        with self._lock:
            entry = self._entry(owner_id)
            if entry.gamification is None or entry.gamification_stale:
                entry.gamification = store.get_or_create_gamification(owner_id)
                entry.gamification_stale = False
            return entry.gamification

    # --- explicit lifecycle ---

    def load(self, owner_id: int, store):
        with self._lock:
            entry = self._entry(owner_id)
            entry.goals = {g.id: g for g in store.fetch_goals_by_owner(owner_id)}
            entry.goals_loaded = True
            entry.stale_goal_ids.clear()
            logger.debug(f"Loaded {len(entry.goals)} goals for owner {owner_id}")

    def refresh(self, owner_id: int, store):
        with self._lock:
            self.load(owner_id, store)
            self._entry(owner_id).gamification_stale = True

    def invalidate(self, owner_id: Optional[int] = None):
        with self._lock:
            if owner_id is None:
                self._entries.clear()
            else:
                self._entries.pop(owner_id, None)

    def merge(self, owner_id: int, goals: Iterable[Goal] = (), gamification: Optional[GamificationProfile] = None):
        """Folds records confirmed by a committed write into the cache."""
        with self._lock:
            entry = self._entry(owner_id)
            for goal in goals:
                if entry.goals_loaded:
                    entry.goals[goal.id] = goal
                entry.stale_goal_ids.discard(goal.id)
            if gamification is not None:
                entry.gamification = gamification
                entry.gamification_stale = False

    # --- change events ---

    def handle_change(self, event: ChangeEvent):
        if event.owner_id is None:
            return
        with self._lock:
            entry = self._entries.get(event.owner_id)
            if entry is None:
                return
            if event.table == GOALS_TABLE and entry.goals_loaded:
                entry.stale_goal_ids.add(event.entity_id)
            elif event.table == GAMIFICATION_TABLE:
                entry.gamification_stale = True

    def _refetch_goals(self, entry: _OwnerEntry, store):
        for goal_id in sorted(entry.stale_goal_ids):
            goal = store.find_goal(goal_id)
            if goal is None:
                entry.goals.pop(goal_id, None)
            else:
                entry.goals[goal_id] = goal
        entry.stale_goal_ids.clear()

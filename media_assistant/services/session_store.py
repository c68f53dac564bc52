from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Dict, Mapping, Optional

from ..config import get_settings
from .slot_values import ABSENT, SlotName, SlotValue, is_present

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class SessionState:
    """Latest known slot values of one conversation."""

    slots: Dict[SlotName, SlotValue] = field(default_factory=dict)
    created_at: float = 0.0
    last_seen_at: float = 0.0


@dataclass(frozen=True)
class SessionExpiryPolicy:
    """Idle-session eviction. A missing or non-positive TTL disables expiry."""

    idle_ttl_seconds: Optional[float] = None

    @property
    def enabled(self) -> bool:
        return bool(self.idle_ttl_seconds and self.idle_ttl_seconds > 0)

    def is_expired(self, state: SessionState, now: float) -> bool:
        if not self.enabled:
            return False
        return now - state.last_seen_at > float(self.idle_ttl_seconds)


def _present_updates(new_slots: Mapping[SlotName, SlotValue]) -> Dict[SlotName, SlotValue]:
    updates: Dict[SlotName, SlotValue] = {}
    for name, value in (new_slots or {}).items():
        try:
            slot = SlotName(name)
        except ValueError:
            logger.debug("Ignoring unrecognized slot name=%s", name)
            continue
        if is_present(value):
            updates[slot] = value
    return updates


class SessionStore:
    """In-memory slot memory keyed by session id."""

    def __init__(
        self,
        expiry_policy: SessionExpiryPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._states: Dict[str, SessionState] = {}
        self._lock = Lock()
        self._expiry_policy = expiry_policy or SessionExpiryPolicy()
        self._clock = clock or time.monotonic

    def merge(self, session_id: str, new_slots: Mapping[SlotName, SlotValue]) -> Dict[SlotName, SlotValue]:
        """
        Fold the slots of a new turn into the session.

        A new session starts with every slot absent. A slot is overwritten only
        by a present value, so absent or empty values keep what was said earlier.
        Names outside SlotName are ignored.
        """

        if not session_id:
            raise ValueError("session_id is required to merge slots")
        updates = _present_updates(new_slots)
        now = self._clock()
        with self._lock:
            state = self._live_state(session_id, now)
            if state is None:
                slots: Dict[SlotName, SlotValue] = {name: ABSENT for name in SlotName}
                state = SessionState(slots=slots, created_at=now, last_seen_at=now)
                self._states[session_id] = state
                logger.debug("Session created session_id=%s", session_id)
            state.slots.update(updates)
            state.last_seen_at = now
            return dict(state.slots)

    def get(self, session_id: str, slot: SlotName) -> SlotValue:
        if not session_id:
            return ABSENT
        with self._lock:
            state = self._live_state(session_id, self._clock())
            if state is None:
                return ABSENT
            return state.slots.get(slot, ABSENT)

    def snapshot(self, session_id: str) -> Dict[SlotName, SlotValue]:
        if not session_id:
            return {}
        with self._lock:
            state = self._live_state(session_id, self._clock())
            if state is None:
                return {}
            return dict(state.slots)

    def reset(self, session_id: str) -> None:
        if not session_id:
            return
        with self._lock:
            removed = self._states.pop(session_id, None)
        if removed is not None:
            logger.debug("Session reset session_id=%s", session_id)

    def evict_expired(self) -> int:
        """Drop idle sessions and return how many were removed."""

        if not self._expiry_policy.enabled:
            return 0
        now = self._clock()
        with self._lock:
            expired = [
                session_id
                for session_id, state in self._states.items()
                if self._expiry_policy.is_expired(state, now)
            ]
            for session_id in expired:
                del self._states[session_id]
        if expired:
            logger.info("Evicted %d idle sessions", len(expired))
        return len(expired)

    def session_count(self) -> int:
        with self._lock:
            return len(self._states)

    def _live_state(self, session_id: str, now: float) -> SessionState | None:
        # Caller must hold the lock.
        state = self._states.get(session_id)
        if state is not None and self._expiry_policy.is_expired(state, now):
            del self._states[session_id]
            return None
        return state


_session_store: SessionStore | None = None
_session_store_lock = Lock()


def get_session_store() -> SessionStore:
    global _session_store
    with _session_store_lock:
        if _session_store is None:
            settings = get_settings()
            _session_store = SessionStore(
                expiry_policy=SessionExpiryPolicy(settings.session_idle_ttl_seconds),
            )
        return _session_store

# utils/session_window.py
"""
Join-window rules for scheduled class sessions.

Everything here is pure: callers pass "now" explicitly or give the
evaluator a clock callable. Naive datetimes are read as UTC, which is how
SQLite hands back the timestamps we store.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

JOIN_WINDOW = timedelta(minutes=10)


class InvalidSessionWindow(ValueError):
    pass


class SessionState(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    STARTING_SOON = "starting_soon"
    UPCOMING = "upcoming"
    ENDED = "ended"


JOINABLE_STATES = frozenset({SessionState.IN_PROGRESS, SessionState.STARTING_SOON})


def as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def check_window(start_time: datetime, end_time: datetime) -> None:
    if start_time is None or end_time is None:
        raise InvalidSessionWindow("session needs both start_time and end_time")
    if as_utc(end_time) <= as_utc(start_time):
        raise InvalidSessionWindow(
            f"end_time {end_time.isoformat()} must be after start_time {start_time.isoformat()}"
        )


@dataclass(frozen=True)
class SessionWindow:
    start_time: datetime
    end_time: datetime

    def __post_init__(self):
        check_window(self.start_time, self.end_time)


def classify(now: datetime, start_time: datetime, end_time: datetime,
             join_window: timedelta = JOIN_WINDOW) -> SessionState:
    now, start_time, end_time = as_utc(now), as_utc(start_time), as_utc(end_time)
    if start_time <= now <= end_time:
        return SessionState.IN_PROGRESS
    if now < start_time:
        if start_time - now <= join_window:
            return SessionState.STARTING_SOON
        return SessionState.UPCOMING
    return SessionState.ENDED


def has_meeting_link(meeting_link: Optional[str]) -> bool:
    return bool(meeting_link and meeting_link.strip())


def can_join(state: SessionState, meeting_link: Optional[str]) -> bool:
    return state in JOINABLE_STATES and has_meeting_link(meeting_link)


def time_until_label(now: datetime, start_time: datetime) -> str:
    remaining = as_utc(start_time) - as_utc(now)
    if remaining <= timedelta(0):
        return "In progress"

    minutes = int(remaining.total_seconds() // 60)
    if minutes < 60:
        return f"Starts in {minutes} min"

    hours = minutes // 60
    if hours < 24:
        return f"Starts in {hours} hr"

    days = hours // 24
    return f"Starts in {days} day{'s' if days > 1 else ''}"


def countdown(now: datetime, start_time: datetime) -> str:
    """MM:SS until start, clamped to 00:00 once the session has started."""
    remaining = int((as_utc(start_time) - as_utc(now)).total_seconds())
    if remaining <= 0:
        return "00:00"
    minutes, seconds = divmod(remaining, 60)
    return f"{minutes:02d}:{seconds:02d}"


@dataclass(frozen=True)
class SessionView:
    state: SessionState
    label: str
    countdown: str
    can_join: bool
    seconds_until_start: int
    seconds_until_change: Optional[int]

    def to_dict(self):
        return {
            "state": self.state.value,
            "label": self.label,
            "countdown": self.countdown,
            "can_join": self.can_join,
            "seconds_until_start": self.seconds_until_start,
            "seconds_until_change": self.seconds_until_change,
        }


class SessionWindowEvaluator:
    """Binds the join-window rules to a clock and a window length."""

    def __init__(self, clock: Callable[[], datetime], join_window: timedelta = JOIN_WINDOW):
        if join_window < timedelta(0):
            raise ValueError("join_window must not be negative")
        self.clock = clock
        self.join_window = join_window

    def now(self) -> datetime:
        return as_utc(self.clock())

    def classify(self, start_time: datetime, end_time: datetime, now: Optional[datetime] = None) -> SessionState:
        return classify(now or self.now(), start_time, end_time, self.join_window)

    def can_join(self, start_time, end_time, meeting_link, now=None) -> bool:
        return can_join(self.classify(start_time, end_time, now), meeting_link)

    def evaluate(self, start_time: datetime, end_time: datetime,
                 meeting_link: Optional[str], now: Optional[datetime] = None) -> SessionView:
        now = as_utc(now) if now else self.now()
        start_time, end_time = as_utc(start_time), as_utc(end_time)
        state = classify(now, start_time, end_time, self.join_window)
        return SessionView(
            state=state,
            label=time_until_label(now, start_time),
            countdown=countdown(now, start_time),
            can_join=can_join(state, meeting_link),
            seconds_until_start=max(0, int((start_time - now).total_seconds())),
            seconds_until_change=self._seconds_until_change(state, now, start_time, end_time),
        )

    def _seconds_until_change(self, state, now, start_time, end_time):
        if state is SessionState.UPCOMING:
            boundary = start_time - self.join_window
        elif state is SessionState.STARTING_SOON:
            boundary = start_time
        elif state is SessionState.IN_PROGRESS:
            # ENDED begins strictly after end_time
            boundary = end_time + timedelta(seconds=1)
        else:
            return None
        return max(1, int((boundary - now).total_seconds()))

"""
SURYATRACK Yoga Service - Sequence Tracker

Advances through the Surya Namaskar A sequence one confirmed posture at a time
and counts completed rounds.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .pose_classifier import Posture


SURYA_NAMASKAR_A: Tuple[Posture, ...] = (
    Posture.STANDING,
    Posture.ARMS_RAISED,
    Posture.FORWARD_FOLD,
    Posture.HALF_FORWARD_FOLD,
    Posture.PLANK,
    Posture.UPWARD_DOG,
    Posture.DOWNWARD_DOG,
    Posture.HALF_FORWARD_FOLD,
    Posture.FORWARD_FOLD,
    Posture.ARMS_RAISED,
    Posture.STANDING,
)

DEFAULT_CONFIRMATION_FRAMES = 10
DEFAULT_HISTORY_LIMIT = 10


@dataclass(frozen=True)
class HistoryEntry:
    """A recognized posture and whether it was the one expected at the time."""
    posture: Posture
    timestamp: float
    matched_expected: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "posture": self.posture.value,
            "timestamp": self.timestamp,
            "matched_expected": self.matched_expected,
        }


@dataclass(frozen=True)
class TrackerState:
    """Progress through the sequence for one practice session."""
    cursor: int = 0
    repetition_count: int = 0
    current_label: Posture = Posture.UNKNOWN
    confirmation_progress: int = 0
    history: Tuple[HistoryEntry, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cursor": self.cursor,
            "repetition_count": self.repetition_count,
            "current_label": self.current_label.value,
            "confirmation_progress": self.confirmation_progress,
            "history": [entry.to_dict() for entry in self.history],
        }


@dataclass(frozen=True)
class TrackerUpdate:
    """Result of feeding one classified frame to the tracker."""
    state: TrackerState
    matched: bool = False
    advanced: bool = False
    cycle_completed: bool = False


class SequenceTracker:
    """
    Debounced sequence progression.

    A posture only counts once it has been classified as the expected posture
    on `confirmation_frames` consecutive observations. Any other observation,
    Unknown included, restarts the streak.
    """

    def __init__(
        self,
        sequence: Tuple[Posture, ...] = SURYA_NAMASKAR_A,
        confirmation_frames: int = DEFAULT_CONFIRMATION_FRAMES,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        if not sequence:
            raise ValueError("sequence must contain at least one posture")
        if confirmation_frames < 1:
            raise ValueError("confirmation_frames must be positive")
        if history_limit < 1:
            raise ValueError("history_limit must be positive")

        self.sequence = tuple(sequence)
        self.confirmation_frames = confirmation_frames
        self.history_limit = history_limit

    def initial_state(self) -> TrackerState:
        return TrackerState()

    def expected_posture(self, state: TrackerState) -> Posture:
        return self.sequence[state.cursor]

    def next_posture(self, state: TrackerState) -> Posture:
        return self.sequence[(state.cursor + 1) % len(self.sequence)]

    def observe(self, state: TrackerState, label: Posture, now: float) -> TrackerUpdate:
        """
        Feed one classified frame.

        Args:
            state: Current tracker state (left untouched)
            label: Posture classified for this frame
            now: Frame timestamp recorded in the history

        Returns:
            TrackerUpdate carrying the new state
        """
        if label == Posture.UNKNOWN:
            return TrackerUpdate(
                state=replace(state, current_label=label, confirmation_progress=0)
            )

        matched = label == self.expected_posture(state)
        history = (state.history + (HistoryEntry(label, now, matched),))[-self.history_limit:]

        if not matched:
            return TrackerUpdate(
                state=replace(
                    state,
                    current_label=label,
                    confirmation_progress=0,
                    history=history,
                ),
            )

        progress = state.confirmation_progress + 1
        if progress < self.confirmation_frames:
            return TrackerUpdate(
                state=replace(
                    state,
                    current_label=label,
                    confirmation_progress=progress,
                    history=history,
                ),
                matched=True,
            )

        cycle_completed = state.cursor == len(self.sequence) - 1
        if cycle_completed:
            cursor = 0
            repetition_count = state.repetition_count + 1
        else:
            cursor = state.cursor + 1
            repetition_count = state.repetition_count

        return TrackerUpdate(
            state=TrackerState(
                cursor=cursor,
                repetition_count=repetition_count,
                current_label=label,
                confirmation_progress=0,
                history=history,
            ),
            matched=True,
            advanced=True,
            cycle_completed=cycle_completed,
        )

    def describe(self, state: TrackerState) -> Dict[str, Any]:
        """JSON-ready view of the state for the renderer."""
        data = state.to_dict()
        data.update({
            "expected_posture": self.expected_posture(state).value,
            "next_posture": self.next_posture(state).value,
            "sequence_length": len(self.sequence),
            "confirmation_frames": self.confirmation_frames,
        })
        return data


def sequence_names(sequence: Optional[Sequence[Posture]] = None) -> List[str]:
    return [posture.value for posture in (sequence or SURYA_NAMASKAR_A)]

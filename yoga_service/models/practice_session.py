"""
SURYATRACK Yoga Service - Practice Session Handler

Manages Surya Namaskar practice sessions: one sequence tracker state per
session, fed by per-frame posture classification.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime
from enum import Enum
import logging
import time
import uuid

from .pose_classifier import PostureClassifier, Posture, get_posture_classifier
from .sequence_tracker import SequenceTracker, TrackerState
from .translations import translate_posture

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Practice session states."""
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass
class PracticeSession:
    """Complete practice session data."""
    session_id: str
    user_id: str
    tracker: TrackerState = field(default_factory=TrackerState)
    state: SessionState = SessionState.IDLE

    # Configuration
    target_rounds: Optional[int] = None

    # Timing
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    last_frame_time: float = 0.0
    last_round_time: Optional[float] = None

    # Metrics
    frames_processed: int = 0
    frames_recognized: int = 0
    round_durations: List[float] = field(default_factory=list)

    @property
    def rounds_completed(self) -> int:
        return self.tracker.repetition_count

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "state": self.state.value,
            "target_rounds": self.target_rounds,
            "rounds_completed": self.rounds_completed,
            "frames_processed": self.frames_processed,
            "frames_recognized": self.frames_recognized,
            "duration_seconds": (self.end_time or time.time()) - (self.start_time or time.time()),
            "tracker": self.tracker.to_dict(),
        }


class PracticeSessionHandler:
    """
    Manages practice sessions with real-time posture tracking.

    Features:
    - Posture classification per landmark frame
    - Debounced progression through Surya Namaskar A
    - Round counting with optional target
    - Pause/resume and full restart
    - Session summary generation
    """

    def __init__(
        self,
        classifier: Optional[PostureClassifier] = None,
        tracker: Optional[SequenceTracker] = None,
        max_sessions: Optional[int] = None,
    ):
        """
        Initialize session handler.

        Args:
            classifier: PostureClassifier instance (uses global if None)
            tracker: SequenceTracker instance (built from settings if None)
            max_sessions: Upper bound on concurrently held sessions
        """
        from core.config import settings

        self.classifier = classifier or get_posture_classifier()
        self.tracker = tracker or SequenceTracker(
            confirmation_frames=settings.CONFIRMATION_FRAMES,
            history_limit=settings.HISTORY_LIMIT,
        )
        self.max_sessions = max_sessions or settings.MAX_ACTIVE_SESSIONS
        self.active_sessions: Dict[str, PracticeSession] = {}

    @property
    def active_session_count(self) -> int:
        """Sessions that still hold a slot (anything not completed)."""
        return sum(
            1 for s in self.active_sessions.values()
            if s.state != SessionState.COMPLETED
        )

    def _evict_completed(self):
        """Drop finished sessions once the registry is full."""
        finished = [
            sid for sid, s in self.active_sessions.items()
            if s.state == SessionState.COMPLETED
        ]
        for sid in finished:
            del self.active_sessions[sid]
        if finished:
            logger.info(f"🧹 Evicted {len(finished)} completed sessions")

    def create_session(self, user_id: str, target_rounds: Optional[int] = None) -> PracticeSession:
        """
        Create a new practice session.

        Args:
            user_id: User ID
            target_rounds: Rounds after which the session completes itself

        Returns:
            New PracticeSession

        Raises:
            RuntimeError: when the session limit is reached
        """
        if len(self.active_sessions) >= self.max_sessions:
            self._evict_completed()
        if self.active_session_count >= self.max_sessions:
            raise RuntimeError("Maximum active sessions reached")

        session_id = str(uuid.uuid4())[:8]

        session = PracticeSession(
            session_id=session_id,
            user_id=user_id,
            tracker=self.tracker.initial_state(),
            target_rounds=target_rounds,
        )

        self.active_sessions[session_id] = session
        logger.info(f"Created practice session {session_id} for user {user_id}")

        return session

    def start_session(self, session_id: str) -> Dict[str, Any]:
        """
        Start a practice session.

        Returns status dict.
        """
        session = self.active_sessions.get(session_id)
        if not session:
            return {"error": "Session not found", "session_id": session_id}

        session.state = SessionState.ACTIVE
        session.start_time = time.time()
        session.last_round_time = None

        return {
            "status": "started",
            "session_id": session_id,
            "target_rounds": session.target_rounds,
            "expected_posture": self.tracker.expected_posture(session.tracker).value,
        }

    def process_frame(
        self,
        session_id: str,
        landmarks: Optional[Sequence[Any]],
        width: Optional[int] = None,
        height: Optional[int] = None,
        timestamp: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Classify one landmark frame and advance the session's sequence.

        Args:
            session_id: Active session ID
            landmarks: Pose landmarks for the frame (MediaPipe index order)
            width, height: Source frame size in pixels
            timestamp: Frame time in seconds (defaults to now)

        Returns:
            Real-time feedback dict
        """
        session = self.active_sessions.get(session_id)
        if not session:
            return {"error": "Session not found"}

        if session.state != SessionState.ACTIVE:
            return {"status": session.state.value, "message": "Session not active"}

        now = timestamp if timestamp is not None else time.time()
        # Round durations are measured on the frame clock, which may be the client's
        if session.last_round_time is None:
            session.last_round_time = now

        classification = self.classifier.classify_with_details(landmarks, width, height)
        update = self.tracker.observe(session.tracker, classification.posture, now)
        session.tracker = update.state

        session.frames_processed += 1
        if classification.posture != Posture.UNKNOWN:
            session.frames_recognized += 1
        session.last_frame_time = now

        response = {
            "session_id": session_id,
            "state": session.state.value,
            "posture": classification.posture.value,
            "posture_names": translate_posture(classification.posture).to_dict(),
            "joint_angles": classification.angles.to_dict(),
            "is_profile_view": classification.is_profile_view,
            "matched": update.matched,
            "advanced": update.advanced,
            "cycle_completed": update.cycle_completed,
            "session_completed": False,
            **self.tracker.describe(session.tracker),
        }

        if update.advanced:
            logger.debug(
                f"Session {session_id}: confirmed {classification.posture.value}, "
                f"cursor -> {session.tracker.cursor}"
            )

        if update.cycle_completed:
            session.round_durations.append(now - session.last_round_time)
            session.last_round_time = now
            logger.info(f"🙏 Session {session_id}: round {session.rounds_completed} completed")

            if session.target_rounds and session.rounds_completed >= session.target_rounds:
                response["summary"] = self.complete_session(session_id)
                response["state"] = session.state.value
                response["session_completed"] = True

        return response

    def pause_session(self, session_id: str) -> Dict[str, Any]:
        """Pause an active session."""
        session = self.active_sessions.get(session_id)
        if not session:
            return {"error": "Session not found"}

        if session.state != SessionState.ACTIVE:
            return {"error": "Session not active"}

        session.state = SessionState.PAUSED
        return {"status": "paused", "session_id": session_id}

    def resume_session(self, session_id: str) -> Dict[str, Any]:
        """Resume a paused session."""
        session = self.active_sessions.get(session_id)
        if not session:
            return {"error": "Session not found"}

        if session.state == SessionState.PAUSED:
            session.state = SessionState.ACTIVE
            return {"status": "resumed", "session_id": session_id}

        return {"error": "Session not paused"}

    def reset_session(self, session_id: str) -> Dict[str, Any]:
        """Restart a session from the first posture with a fresh tracker."""
        session = self.active_sessions.get(session_id)
        if not session:
            return {"error": "Session not found"}

        session.tracker = self.tracker.initial_state()
        session.state = SessionState.ACTIVE
        session.start_time = time.time()
        session.end_time = None
        session.last_round_time = None
        session.frames_processed = 0
        session.frames_recognized = 0
        session.round_durations = []

        logger.info(f"Session {session_id} restarted")

        return {
            "status": "reset",
            "session_id": session_id,
            "expected_posture": self.tracker.expected_posture(session.tracker).value,
        }

    def complete_session(self, session_id: str) -> Dict[str, Any]:
        """
        Complete a practice session and generate summary.

        Returns complete session summary.
        """
        session = self.active_sessions.get(session_id)
        if not session:
            return {"error": "Session not found"}

        session.state = SessionState.COMPLETED
        session.end_time = time.time()

        return self._generate_summary(session)

    def _generate_summary(self, session: PracticeSession) -> Dict[str, Any]:
        """Generate session summary."""
        duration = (session.end_time or time.time()) - (session.start_time or time.time())

        recognition_rate = (
            session.frames_recognized / session.frames_processed * 100
            if session.frames_processed > 0 else 0
        )
        avg_round = (
            sum(session.round_durations) / len(session.round_durations)
            if session.round_durations else 0
        )

        if session.target_rounds:
            completion_rate = min(100.0, session.rounds_completed / session.target_rounds * 100)
        else:
            completion_rate = None

        return {
            "status": "completed",
            "session_id": session.session_id,
            "user_id": session.user_id,
            "summary": {
                "rounds_completed": session.rounds_completed,
                "target_rounds": session.target_rounds,
                "completion_rate": round(completion_rate, 1) if completion_rate is not None else None,
                "frames_processed": session.frames_processed,
                "recognition_rate": round(recognition_rate, 1),
                "avg_round_seconds": round(avg_round, 1),
                "duration_seconds": round(duration, 1),
                "last_expected_posture": self.tracker.expected_posture(session.tracker).value,
            },
            "history": [entry.to_dict() for entry in session.tracker.history],
            "completed_at": datetime.now().isoformat(),
        }

    def get_session(self, session_id: str) -> Optional[PracticeSession]:
        """Get session by ID."""
        return self.active_sessions.get(session_id)

    def get_session_status(self, session_id: str) -> Dict[str, Any]:
        """Get current session status."""
        session = self.active_sessions.get(session_id)
        if not session:
            return {"error": "Session not found"}

        status = session.to_dict()
        status["tracker"] = self.tracker.describe(session.tracker)
        return status

    def cleanup_session(self, session_id: str):
        """Remove session from active sessions."""
        if session_id in self.active_sessions:
            del self.active_sessions[session_id]
            logger.info(f"Session {session_id} discarded")


# ═══════════════════════════════════════════════════════════════════════════════
# MODULE-LEVEL SINGLETON
# ═══════════════════════════════════════════════════════════════════════════════

_handler_instance: Optional[PracticeSessionHandler] = None

def get_session_handler() -> PracticeSessionHandler:
    """Get or create the global session handler instance."""
    global _handler_instance
    if _handler_instance is None:
        _handler_instance = PracticeSessionHandler()
    return _handler_instance

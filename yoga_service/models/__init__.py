"""
SURYATRACK Yoga Service Models

Rule-based posture classification and Surya Namaskar A sequence tracking.
"""

from .pose_classifier import (
    PostureClassifier,
    PostureClassification,
    PostureRule,
    AngleWindow,
    PoseFeatures,
    Landmark,
    JointType,
    JointAngles,
    Posture,
    POSTURE_RULES,
    compute_angle,
    classify,
    get_posture_classifier
)

from .sequence_tracker import (
    SequenceTracker,
    TrackerState,
    TrackerUpdate,
    HistoryEntry,
    SURYA_NAMASKAR_A,
    sequence_names
)

from .translations import (
    PostureNames,
    POSTURE_TRANSLATIONS,
    translate_posture
)

from .practice_session import (
    PracticeSession,
    PracticeSessionHandler,
    SessionState,
    get_session_handler
)

__all__ = [
    # Posture Classifier
    "PostureClassifier",
    "PostureClassification",
    "PostureRule",
    "AngleWindow",
    "PoseFeatures",
    "Landmark",
    "JointType",
    "JointAngles",
    "Posture",
    "POSTURE_RULES",
    "compute_angle",
    "classify",
    "get_posture_classifier",
    # Sequence Tracker
    "SequenceTracker",
    "TrackerState",
    "TrackerUpdate",
    "HistoryEntry",
    "SURYA_NAMASKAR_A",
    "sequence_names",
    # Translations
    "PostureNames",
    "POSTURE_TRANSLATIONS",
    "translate_posture",
    # Practice Session
    "PracticeSession",
    "PracticeSessionHandler",
    "SessionState",
    "get_session_handler",
]

"""
SURYATRACK Yoga Service - Posture Classifier

Rule-based Surya Namaskar A posture recognition from MediaPipe pose landmarks.
Joint angles are measured in the image plane and matched against an ordered
decision list of tolerance windows (NOT deep learning).
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS AND DATA CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class JointType(Enum):
    """MediaPipe Pose landmark indices."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


class Posture(Enum):
    """Recognizable Surya Namaskar A postures, keyed by Sanskrit name."""
    STANDING = "Tadasana"
    ARMS_RAISED = "Urdhva Hastasana"
    FORWARD_FOLD = "Uttanasana"
    HALF_FORWARD_FOLD = "Ardha Uttanasana"
    PLANK = "Chaturanga"
    UPWARD_DOG = "Urdhva Mukha Svanasana"
    DOWNWARD_DOG = "Adho Mukha Svanasana"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Landmark:
    """A single pose landmark in normalized image coordinates."""
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None

    def to_numpy(self) -> np.ndarray:
        return np.array([self.x, self.y])

    @classmethod
    def from_mapping(cls, data: Any) -> "Landmark":
        """Build from a dict or any object with x/y/z/visibility attributes."""
        if isinstance(data, Mapping):
            get = data.get
        else:
            # e.g. MediaPipe NormalizedLandmark
            def get(key, default=None):
                return getattr(data, key, default)

        x, y = get("x"), get("y")
        if x is None or y is None:
            raise KeyError("landmark needs x and y")

        visibility = get("visibility")
        return cls(
            x=float(x),
            y=float(y),
            z=float(get("z", 0.0) or 0.0),
            visibility=float(visibility) if visibility is not None else None,
        )


@dataclass
class JointAngles:
    """The eight joint angles used by the posture rules (degrees)."""
    left_elbow: float = 0.0
    right_elbow: float = 0.0
    left_shoulder: float = 0.0
    right_shoulder: float = 0.0
    left_hip: float = 0.0
    right_hip: float = 0.0
    left_knee: float = 0.0
    right_knee: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "left_elbow": round(self.left_elbow, 1),
            "right_elbow": round(self.right_elbow, 1),
            "left_shoulder": round(self.left_shoulder, 1),
            "right_shoulder": round(self.right_shoulder, 1),
            "left_hip": round(self.left_hip, 1),
            "right_hip": round(self.right_hip, 1),
            "left_knee": round(self.left_knee, 1),
            "right_knee": round(self.right_knee, 1),
        }


@dataclass
class PoseFeatures:
    """Everything a posture rule may look at for one frame."""
    angles: JointAngles
    is_profile_view: bool
    points: Dict[JointType, Optional[Landmark]] = field(default_factory=dict)

    def point(self, joint: JointType) -> Optional[Landmark]:
        return self.points.get(joint)


@dataclass
class PostureClassification:
    """Classification result with the geometry that produced it."""
    posture: Posture
    angles: JointAngles
    is_profile_view: bool
    frame_width: Optional[int] = None
    frame_height: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "posture": self.posture.value,
            "joint_angles": self.angles.to_dict(),
            "is_profile_view": self.is_profile_view,
            "frame": {"width": self.frame_width, "height": self.frame_height},
        }


# ═══════════════════════════════════════════════════════════════════════════════
# JOINT ANGLE CALCULATIONS
# ═══════════════════════════════════════════════════════════════════════════════

def compute_angle(
    a: Optional[Landmark],
    b: Optional[Landmark],
    c: Optional[Landmark],
) -> float:
    """
    Calculate the angle at vertex b formed by rays b->a and b->c.

    Uses the difference of the two rays' polar angles, folded into [0, 180].
    A missing point, or a ray of zero length, yields 0 degrees.

    Returns:
        Angle in degrees (0-180)
    """
    if a is None or b is None or c is None:
        return 0.0

    ba = a.to_numpy() - b.to_numpy()
    bc = c.to_numpy() - b.to_numpy()
    if not ba.any() or not bc.any():
        return 0.0

    radians = np.arctan2(bc[1], bc[0]) - np.arctan2(ba[1], ba[0])
    angle = abs(float(np.degrees(radians)))
    if not math.isfinite(angle):
        return 0.0
    if angle > 180.0:
        angle = 360.0 - angle

    return angle


def in_range(value: float, target: float, tolerance: float) -> bool:
    """True when value lies within target +/- tolerance."""
    return abs(value - target) <= tolerance


# ═══════════════════════════════════════════════════════════════════════════════
# POSTURE RULES
# ═══════════════════════════════════════════════════════════════════════════════

# Torso counts as horizontal when shoulder and hip heights differ by less than this
TORSO_LEVEL_TOLERANCE = 0.15


@dataclass(frozen=True)
class AngleWindow:
    """Both sides of a joint must sit inside target +/- tolerance."""
    joint: str
    target: float
    tolerance: float
    either_side: bool = False

    def matches(self, angles: JointAngles) -> bool:
        left = in_range(getattr(angles, f"left_{self.joint}"), self.target, self.tolerance)
        right = in_range(getattr(angles, f"right_{self.joint}"), self.target, self.tolerance)
        if self.either_side:
            return left or right
        return left and right


@dataclass(frozen=True)
class PostureRule:
    """One entry of the decision list."""
    posture: Posture
    windows: Tuple[AngleWindow, ...]
    requires_profile: bool = False
    predicate: Optional[Callable[[PoseFeatures], bool]] = None

    def matches(self, features: PoseFeatures) -> bool:
        if self.requires_profile and not features.is_profile_view:
            return False
        if not all(window.matches(features.angles) for window in self.windows):
            return False
        if self.predicate is not None:
            return self.predicate(features)
        return True


def _heights(features: PoseFeatures) -> Optional[Tuple[float, float, float, float]]:
    """(left shoulder, right hip, right knee, nose) y-coordinates, or None."""
    points = (
        features.point(JointType.LEFT_SHOULDER),
        features.point(JointType.RIGHT_HIP),
        features.point(JointType.RIGHT_KNEE),
        features.point(JointType.NOSE),
    )
    if any(p is None for p in points):
        return None
    return tuple(p.y for p in points)


def _plank_alignment(features: PoseFeatures) -> bool:
    heights = _heights(features)
    if heights is None:
        return False
    shoulder_y, hip_y, knee_y, nose_y = heights
    return (
        abs(shoulder_y - hip_y) < TORSO_LEVEL_TOLERANCE
        and hip_y < knee_y
        and nose_y < shoulder_y
    )


def _upward_dog_alignment(features: PoseFeatures) -> bool:
    heights = _heights(features)
    if heights is None:
        return False
    shoulder_y, hip_y, knee_y, nose_y = heights
    return hip_y > shoulder_y and knee_y > hip_y and nose_y < shoulder_y


def _downward_dog_alignment(features: PoseFeatures) -> bool:
    heights = _heights(features)
    if heights is None:
        return False
    shoulder_y, hip_y, knee_y, nose_y = heights
    return hip_y < shoulder_y and hip_y > knee_y and nose_y > shoulder_y


# Evaluated top to bottom; the first matching rule wins.
POSTURE_RULES: List[PostureRule] = [
    PostureRule(
        Posture.STANDING,
        (
            AngleWindow("elbow", 180, 25),
            AngleWindow("shoulder", 40, 35),
            AngleWindow("hip", 180, 30),
            AngleWindow("knee", 180, 25),
        ),
    ),
    PostureRule(
        Posture.ARMS_RAISED,
        (
            AngleWindow("shoulder", 180, 35),
            AngleWindow("elbow", 180, 25),
            AngleWindow("knee", 180, 25),
        ),
    ),
    PostureRule(
        Posture.FORWARD_FOLD,
        (
            AngleWindow("hip", 90, 30),
            AngleWindow("knee", 180, 25),
        ),
    ),
    PostureRule(
        Posture.HALF_FORWARD_FOLD,
        (
            AngleWindow("hip", 90, 40),
            AngleWindow("knee", 180, 25),
            AngleWindow("shoulder", 90, 45, either_side=True),
        ),
    ),
    PostureRule(
        Posture.PLANK,
        (AngleWindow("elbow", 90, 30),),
        requires_profile=True,
        predicate=_plank_alignment,
    ),
    PostureRule(
        Posture.UPWARD_DOG,
        (AngleWindow("elbow", 165, 30),),
        requires_profile=True,
        predicate=_upward_dog_alignment,
    ),
    PostureRule(
        Posture.DOWNWARD_DOG,
        (AngleWindow("elbow", 180, 30),),
        requires_profile=True,
        predicate=_downward_dog_alignment,
    ),
]


# ═══════════════════════════════════════════════════════════════════════════════
# POSTURE CLASSIFIER
# ═══════════════════════════════════════════════════════════════════════════════

_RULE_JOINTS = (
    JointType.NOSE,
    JointType.LEFT_SHOULDER,
    JointType.RIGHT_SHOULDER,
    JointType.LEFT_ELBOW,
    JointType.RIGHT_ELBOW,
    JointType.LEFT_WRIST,
    JointType.RIGHT_WRIST,
    JointType.LEFT_HIP,
    JointType.RIGHT_HIP,
    JointType.LEFT_KNEE,
    JointType.RIGHT_KNEE,
    JointType.LEFT_ANKLE,
    JointType.RIGHT_ANKLE,
)


class PostureClassifier:
    """
    Maps one frame of pose landmarks to a Surya Namaskar A posture.

    Stateless: the same landmarks always give the same posture. Missing or
    malformed landmarks never raise; they zero the affected angles, which
    biases the result toward Posture.UNKNOWN.
    """

    def __init__(
        self,
        rules: Optional[Sequence[PostureRule]] = None,
        profile_max_shoulder_span: float = 0.2,
        min_visibility: float = 0.0,
    ):
        """
        Args:
            rules: Ordered decision list (defaults to POSTURE_RULES)
            profile_max_shoulder_span: Horizontal shoulder gap below which
                the subject is considered side-on to the camera
            min_visibility: Landmarks reporting a lower visibility are
                treated as missing (0 disables the check)
        """
        self.rules = list(rules) if rules is not None else list(POSTURE_RULES)
        self.profile_max_shoulder_span = profile_max_shoulder_span
        self.min_visibility = min_visibility

    def _landmark_at(self, landmarks: Sequence[Any], joint: JointType) -> Optional[Landmark]:
        """Fetch a landmark by index, normalizing anything unusable to None."""
        try:
            raw = landmarks[joint.value]
        except (IndexError, KeyError, TypeError):
            return None

        if raw is None:
            return None

        try:
            if not isinstance(raw, Landmark):
                raw = Landmark.from_mapping(raw)
            if not (math.isfinite(raw.x) and math.isfinite(raw.y)):
                return None
            if (
                self.min_visibility > 0
                and raw.visibility is not None
                and not raw.visibility >= self.min_visibility
            ):
                return None
        except (KeyError, TypeError, ValueError, OverflowError):
            return None
        return raw

    def extract_points(self, landmarks: Optional[Sequence[Any]]) -> Dict[JointType, Optional[Landmark]]:
        if not landmarks:
            return {joint: None for joint in _RULE_JOINTS}
        return {joint: self._landmark_at(landmarks, joint) for joint in _RULE_JOINTS}

    @staticmethod
    def get_joint_angles(points: Mapping[JointType, Optional[Landmark]]) -> JointAngles:
        """Calculate the eight rule angles from extracted landmarks."""
        p = points.get
        return JointAngles(
            left_elbow=compute_angle(p(JointType.LEFT_SHOULDER), p(JointType.LEFT_ELBOW), p(JointType.LEFT_WRIST)),
            right_elbow=compute_angle(p(JointType.RIGHT_SHOULDER), p(JointType.RIGHT_ELBOW), p(JointType.RIGHT_WRIST)),
            left_shoulder=compute_angle(p(JointType.LEFT_HIP), p(JointType.LEFT_SHOULDER), p(JointType.LEFT_ELBOW)),
            right_shoulder=compute_angle(p(JointType.RIGHT_HIP), p(JointType.RIGHT_SHOULDER), p(JointType.RIGHT_ELBOW)),
            left_hip=compute_angle(p(JointType.LEFT_SHOULDER), p(JointType.LEFT_HIP), p(JointType.LEFT_KNEE)),
            right_hip=compute_angle(p(JointType.RIGHT_SHOULDER), p(JointType.RIGHT_HIP), p(JointType.RIGHT_KNEE)),
            left_knee=compute_angle(p(JointType.LEFT_HIP), p(JointType.LEFT_KNEE), p(JointType.LEFT_ANKLE)),
            right_knee=compute_angle(p(JointType.RIGHT_HIP), p(JointType.RIGHT_KNEE), p(JointType.RIGHT_ANKLE)),
        )

    def is_profile_view(self, points: Mapping[JointType, Optional[Landmark]]) -> bool:
        left = points.get(JointType.LEFT_SHOULDER)
        right = points.get(JointType.RIGHT_SHOULDER)
        if left is None or right is None:
            return False
        return abs(left.x - right.x) < self.profile_max_shoulder_span

    def extract_features(self, landmarks: Optional[Sequence[Any]]) -> PoseFeatures:
        points = self.extract_points(landmarks)
        return PoseFeatures(
            angles=self.get_joint_angles(points),
            is_profile_view=self.is_profile_view(points),
            points=points,
        )

    def match(self, features: PoseFeatures) -> Posture:
        """Walk the decision list and return the first matching posture."""
        for rule in self.rules:
            if rule.matches(features):
                return rule.posture
        return Posture.UNKNOWN

    def classify(
        self,
        landmarks: Optional[Sequence[Any]],
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> Posture:
        """
        Classify a frame of landmarks.

        Frame dimensions are accepted for the renderer's benefit only; all
        rules work on normalized coordinates.
        """
        return self.match(self.extract_features(landmarks))

    def classify_with_details(
        self,
        landmarks: Optional[Sequence[Any]],
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> PostureClassification:
        features = self.extract_features(landmarks)
        return PostureClassification(
            posture=self.match(features),
            angles=features.angles,
            is_profile_view=features.is_profile_view,
            frame_width=width,
            frame_height=height,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# MODULE-LEVEL SINGLETON
# ═══════════════════════════════════════════════════════════════════════════════

_classifier_instance: Optional[PostureClassifier] = None

def get_posture_classifier() -> PostureClassifier:
    """Get or create the global posture classifier instance."""
    global _classifier_instance
    if _classifier_instance is None:
        from core.config import settings
        _classifier_instance = PostureClassifier(
            profile_max_shoulder_span=settings.PROFILE_VIEW_MAX_SHOULDER_SPAN,
            min_visibility=settings.MIN_LANDMARK_VISIBILITY,
        )
    return _classifier_instance


def classify(
    landmarks: Optional[Sequence[Any]],
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> Posture:
    """Classify with the default rule set and settings."""
    return get_posture_classifier().classify(landmarks, width, height)

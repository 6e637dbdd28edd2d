"""
Shared landmark fixtures for the yoga service tests.

Frames are built from a handful of joints placed with simple trigonometry so
each posture's joint angles land near the centre of its rule windows.
Headings are in image coordinates: 0 = right, 90 = down, -90 = up.
"""

import math
from typing import Dict, List, Optional, Tuple

import pytest

from yoga_service.models import JointType, Landmark, Posture

Point = Tuple[float, float]

LEFT_RIGHT_PAIRS = {
    "shoulder": (JointType.LEFT_SHOULDER, JointType.RIGHT_SHOULDER),
    "elbow": (JointType.LEFT_ELBOW, JointType.RIGHT_ELBOW),
    "wrist": (JointType.LEFT_WRIST, JointType.RIGHT_WRIST),
    "hip": (JointType.LEFT_HIP, JointType.RIGHT_HIP),
    "knee": (JointType.LEFT_KNEE, JointType.RIGHT_KNEE),
    "ankle": (JointType.LEFT_ANKLE, JointType.RIGHT_ANKLE),
}


def ray(origin: Point, heading: float, length: float) -> Point:
    rad = math.radians(heading)
    return (origin[0] + length * math.cos(rad), origin[1] + length * math.sin(rad))


def to_frame(points: Dict[JointType, Point]) -> List[Optional[Landmark]]:
    frame: List[Optional[Landmark]] = [None] * len(JointType)
    for joint, (x, y) in points.items():
        frame[joint.value] = Landmark(x=x, y=y)
    return frame


def side_view(nose: Point, **parts: Point) -> Dict[JointType, Point]:
    """Profile frames: both body sides share the same image position."""
    points = {JointType.NOSE: nose}
    for part, point in parts.items():
        left, right = LEFT_RIGHT_PAIRS[part]
        points[left] = point
        points[right] = point
    return points


def standing_points() -> Dict[JointType, Point]:
    ls, rs = (0.62, 0.3), (0.38, 0.3)
    lh, rh = ray(ls, 90, 0.3), ray(rs, 90, 0.3)
    le, re = ray(ls, 60, 0.12), ray(rs, 120, 0.12)
    lk, rk = ray(lh, 90, 0.2), ray(rh, 90, 0.2)
    return {
        JointType.NOSE: (0.5, 0.15),
        JointType.LEFT_SHOULDER: ls,
        JointType.RIGHT_SHOULDER: rs,
        JointType.LEFT_ELBOW: le,
        JointType.RIGHT_ELBOW: re,
        JointType.LEFT_WRIST: ray(le, 60, 0.12),
        JointType.RIGHT_WRIST: ray(re, 120, 0.12),
        JointType.LEFT_HIP: lh,
        JointType.RIGHT_HIP: rh,
        JointType.LEFT_KNEE: lk,
        JointType.RIGHT_KNEE: rk,
        JointType.LEFT_ANKLE: ray(lk, 90, 0.2),
        JointType.RIGHT_ANKLE: ray(rk, 90, 0.2),
    }


def arms_raised_points() -> Dict[JointType, Point]:
    points = standing_points()
    for shoulder, elbow, wrist in (
        (JointType.LEFT_SHOULDER, JointType.LEFT_ELBOW, JointType.LEFT_WRIST),
        (JointType.RIGHT_SHOULDER, JointType.RIGHT_ELBOW, JointType.RIGHT_WRIST),
    ):
        points[elbow] = ray(points[shoulder], -90, 0.12)
        points[wrist] = ray(points[elbow], -90, 0.12)
    return points


def forward_fold_points() -> Dict[JointType, Point]:
    hip = (0.5, 0.5)
    knee = ray(hip, 90, 0.25)
    shoulder = ray(hip, 180, 0.25)
    elbow = ray(shoulder, 90, 0.15)
    return side_view(
        nose=(0.2, 0.55),
        shoulder=shoulder,
        elbow=elbow,
        wrist=ray(elbow, 90, 0.15),
        hip=hip,
        knee=knee,
        ankle=ray(knee, 90, 0.2),
    )


def half_forward_fold_points() -> Dict[JointType, Point]:
    hip = (0.5, 0.5)
    knee = ray(hip, 90, 0.25)
    shoulder = ray(hip, 215, 0.25)
    elbow = ray(shoulder, 90, 0.15)
    return side_view(
        nose=(0.2, 0.3),
        shoulder=shoulder,
        elbow=elbow,
        wrist=ray(elbow, 90, 0.15),
        hip=hip,
        knee=knee,
        ankle=ray(knee, 90, 0.2),
    )


def plank_points() -> Dict[JointType, Point]:
    return side_view(
        nose=(0.2, 0.45),
        shoulder=(0.3, 0.5),
        elbow=(0.3, 0.65),
        wrist=(0.2, 0.65),
        hip=(0.6, 0.52),
        knee=(0.8, 0.56),
        ankle=(0.95, 0.6),
    )


def upward_dog_points() -> Dict[JointType, Point]:
    return side_view(
        nose=(0.2, 0.3),
        shoulder=(0.3, 0.4),
        elbow=(0.27, 0.55),
        wrist=(0.24, 0.7),
        hip=(0.7, 0.5),
        knee=(0.85, 0.55),
        ankle=(0.98, 0.58),
    )


def downward_dog_points() -> Dict[JointType, Point]:
    return side_view(
        nose=(0.25, 0.7),
        shoulder=(0.3, 0.6),
        elbow=(0.25, 0.75),
        wrist=(0.2, 0.9),
        hip=(0.5, 0.3),
        knee=(0.6, 0.25),
        ankle=(0.7, 0.9),
    )


POSTURE_POINTS = {
    Posture.STANDING: standing_points,
    Posture.ARMS_RAISED: arms_raised_points,
    Posture.FORWARD_FOLD: forward_fold_points,
    Posture.HALF_FORWARD_FOLD: half_forward_fold_points,
    Posture.PLANK: plank_points,
    Posture.UPWARD_DOG: upward_dog_points,
    Posture.DOWNWARD_DOG: downward_dog_points,
}


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def build_frame():
    """Turn a {JointType: (x, y)} mapping into a 33-entry landmark list."""
    return to_frame


@pytest.fixture
def standing():
    """Joint positions for a frontal Tadasana, ready to be perturbed."""
    return standing_points()


@pytest.fixture
def posture_frames():
    """One landmark frame per recognizable posture."""
    return {posture: to_frame(make()) for posture, make in POSTURE_POINTS.items()}


@pytest.fixture
def frame_payload():
    """Serialize a landmark frame to the JSON body the API accepts."""
    def _payload(frame, width=640, height=480, timestamp=None):
        body = {
            "landmarks": [
                {"x": lm.x, "y": lm.y, "z": lm.z, "visibility": 0.99} if lm is not None else None
                for lm in frame
            ],
            "width": width,
            "height": height,
        }
        if timestamp is not None:
            body["timestamp"] = timestamp
        return body
    return _payload

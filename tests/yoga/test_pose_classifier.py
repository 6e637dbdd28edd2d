"""
Posture classifier tests: angle geometry, the decision list and its
tolerance to missing or malformed landmarks.
"""

import math
import random
from types import SimpleNamespace

import pytest

from yoga_service.models import (
    POSTURE_RULES,
    JointType,
    Landmark,
    Posture,
    PostureClassifier,
    compute_angle,
    classify,
)


def lm(x, y):
    return Landmark(x=x, y=y)


def ray(origin, heading, length):
    rad = math.radians(heading)
    return (origin[0] + length * math.cos(rad), origin[1] + length * math.sin(rad))


# ═══════════════════════════════════════════════════════════════════════════════
# compute_angle
# ═══════════════════════════════════════════════════════════════════════════════

def test_right_angle():
    assert compute_angle(lm(1, 0), lm(0, 0), lm(0, 1)) == pytest.approx(90.0)


def test_straight_line():
    assert compute_angle(lm(-1, 0), lm(0, 0), lm(1, 0)) == pytest.approx(180.0)


def test_reflex_angle_is_folded():
    # rays at 170 and -170 degrees: raw difference 340, folded to 20
    a = lm(*ray((0, 0), 170, 1))
    c = lm(*ray((0, 0), -170, 1))
    assert compute_angle(a, lm(0, 0), c) == pytest.approx(20.0)


@pytest.mark.parametrize("a, b, c", [
    ((0.1, 0.2), (0.4, 0.4), (0.9, 0.1)),
    ((0.5, 0.9), (0.5, 0.5), (0.2, 0.1)),
    ((0.3, 0.3), (0.6, 0.6), (0.61, 0.2)),
    ((0.0, 0.0), (1.0, 1.0), (0.0, 1.0)),
])
def test_symmetric_in_outer_points(a, b, c):
    forward = compute_angle(lm(*a), lm(*b), lm(*c))
    backward = compute_angle(lm(*c), lm(*b), lm(*a))
    assert forward == pytest.approx(backward)


def test_outer_point_on_vertex_gives_zero():
    assert compute_angle(lm(0.5, 0.5), lm(0.5, 0.5), lm(0.9, 0.1)) == 0.0
    assert compute_angle(lm(0.1, 0.1), lm(0.5, 0.5), lm(0.5, 0.5)) == 0.0


def test_missing_point_gives_zero():
    assert compute_angle(None, lm(0, 0), lm(1, 0)) == 0.0
    assert compute_angle(lm(0, 0), None, lm(1, 0)) == 0.0
    assert compute_angle(lm(0, 0), lm(1, 0), None) == 0.0


def test_result_always_within_half_turn():
    rng = random.Random(7)
    for _ in range(500):
        a, b, c = (lm(rng.random(), rng.random()) for _ in range(3))
        assert 0.0 <= compute_angle(a, b, c) <= 180.0


# ═══════════════════════════════════════════════════════════════════════════════
# classify: one frame per posture
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("posture", [
    Posture.STANDING,
    Posture.ARMS_RAISED,
    Posture.FORWARD_FOLD,
    Posture.HALF_FORWARD_FOLD,
    Posture.PLANK,
    Posture.UPWARD_DOG,
    Posture.DOWNWARD_DOG,
])
def test_recognizes_each_posture(posture_frames, posture):
    assert classify(posture_frames[posture], 640, 480) == posture


def test_standing_angles_are_centred(posture_frames):
    angles = PostureClassifier().classify_with_details(posture_frames[Posture.STANDING]).angles
    assert angles.left_elbow == pytest.approx(180.0)
    assert angles.right_shoulder == pytest.approx(30.0)
    assert angles.left_hip == pytest.approx(180.0)
    assert angles.right_knee == pytest.approx(180.0)


@pytest.mark.parametrize("joint", ["elbow", "shoulder", "hip", "knee"])
def test_bending_one_joint_breaks_standing(standing, build_frame, joint):
    points = dict(standing)
    if joint == "elbow":
        points[JointType.LEFT_WRIST] = ray(points[JointType.LEFT_ELBOW], -30, 0.12)
    elif joint == "shoulder":
        points[JointType.LEFT_ELBOW] = ray(points[JointType.LEFT_SHOULDER], 0, 0.12)
        points[JointType.LEFT_WRIST] = ray(points[JointType.LEFT_ELBOW], 0, 0.12)
    elif joint == "hip":
        points[JointType.LEFT_KNEE] = ray(points[JointType.LEFT_HIP], 10, 0.2)
        points[JointType.LEFT_ANKLE] = ray(points[JointType.LEFT_KNEE], 10, 0.2)
    else:
        points[JointType.LEFT_ANKLE] = ray(points[JointType.LEFT_KNEE], 0, 0.2)

    details = PostureClassifier().classify_with_details(build_frame(points))

    assert getattr(details.angles, f"left_{joint}") != pytest.approx(
        getattr(details.angles, f"right_{joint}"), abs=30
    )
    assert details.posture != Posture.STANDING


def test_frame_dimensions_do_not_change_the_result(posture_frames):
    frame = posture_frames[Posture.PLANK]
    assert classify(frame, 640, 480) == classify(frame, 1920, 1080) == classify(frame)


# ═══════════════════════════════════════════════════════════════════════════════
# Decision list order
# ═══════════════════════════════════════════════════════════════════════════════

def test_rule_order():
    assert [rule.posture for rule in POSTURE_RULES] == [
        Posture.STANDING,
        Posture.ARMS_RAISED,
        Posture.FORWARD_FOLD,
        Posture.HALF_FORWARD_FOLD,
        Posture.PLANK,
        Posture.UPWARD_DOG,
        Posture.DOWNWARD_DOG,
    ]


def test_earlier_rule_wins_when_two_match(posture_frames):
    classifier = PostureClassifier()
    features = classifier.extract_features(posture_frames[Posture.FORWARD_FOLD])

    matching = [rule.posture for rule in POSTURE_RULES if rule.matches(features)]

    assert matching[:2] == [Posture.FORWARD_FOLD, Posture.HALF_FORWARD_FOLD]
    assert classifier.match(features) == Posture.FORWARD_FOLD


def test_custom_rule_list_is_respected(posture_frames):
    reordered = [r for r in POSTURE_RULES if r.posture == Posture.HALF_FORWARD_FOLD]
    classifier = PostureClassifier(rules=reordered)
    assert classifier.classify(posture_frames[Posture.FORWARD_FOLD]) == Posture.HALF_FORWARD_FOLD
    assert classifier.classify(posture_frames[Posture.STANDING]) == Posture.UNKNOWN


def test_profile_postures_need_profile_view(posture_frames):
    frame = list(posture_frames[Posture.PLANK])
    right = frame[JointType.RIGHT_SHOULDER.value]
    frame[JointType.RIGHT_SHOULDER.value] = Landmark(x=right.x + 0.3, y=right.y)

    details = PostureClassifier().classify_with_details(frame)

    assert details.is_profile_view is False
    assert details.posture == Posture.UNKNOWN


def test_profile_threshold_is_configurable(posture_frames):
    classifier = PostureClassifier(profile_max_shoulder_span=0.0)
    assert classifier.classify(posture_frames[Posture.PLANK]) == Posture.UNKNOWN


# ═══════════════════════════════════════════════════════════════════════════════
# Degraded input
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("landmarks", [
    None,
    [],
    [None] * 33,
    [Landmark(0.5, 0.5)] * 5,
    [Landmark(float("nan"), float("nan"))] * 33,
    [{"x": "left", "y": 0.1}] * 33,
    ["garbage"] * 33,
])
def test_degraded_input_is_unknown(landmarks):
    assert classify(landmarks) == Posture.UNKNOWN


@pytest.mark.parametrize("landmark", [
    {"x": 0.5, "y": 0.5, "visibility": "high"},
    {"x": 0.5, "y": 0.5, "visibility": [0.9]},
    {"x": 0.5, "y": 0.5, "visibility": 10 ** 400},
    {"x": 10 ** 400, "y": 0.5},
    Landmark(0.5, 0.5, visibility="high"),
])
def test_malformed_fields_with_visibility_floor_are_unknown(landmark):
    classifier = PostureClassifier(min_visibility=0.5)
    assert classifier.classify([landmark] * 33) == Posture.UNKNOWN


def test_accepts_attribute_landmarks(posture_frames):
    # shaped like MediaPipe's NormalizedLandmark
    frame = [
        SimpleNamespace(x=p.x, y=p.y, z=p.z, visibility=0.9) if p is not None else None
        for p in posture_frames[Posture.DOWNWARD_DOG]
    ]
    assert PostureClassifier(min_visibility=0.5).classify(frame) == Posture.DOWNWARD_DOG


def test_missing_shoulder_disables_profile_view(posture_frames):
    frame = list(posture_frames[Posture.DOWNWARD_DOG])
    frame[JointType.RIGHT_SHOULDER.value] = None
    details = PostureClassifier().classify_with_details(frame)
    assert details.is_profile_view is False
    assert details.posture == Posture.UNKNOWN


def test_missing_wrist_zeroes_elbow(posture_frames):
    frame = list(posture_frames[Posture.STANDING])
    frame[JointType.LEFT_WRIST.value] = None
    details = PostureClassifier().classify_with_details(frame)
    assert details.angles.left_elbow == 0.0
    assert details.posture != Posture.STANDING


def test_random_frames_always_classify():
    rng = random.Random(42)
    classifier = PostureClassifier()
    for _ in range(300):
        frame = [
            Landmark(rng.random(), rng.random(), rng.uniform(-1, 1), rng.random())
            if rng.random() > 0.1 else None
            for _ in range(33)
        ]
        assert classifier.classify(frame) in set(Posture)


def test_accepts_plain_mappings(posture_frames):
    frame = [
        {"x": p.x, "y": p.y, "z": p.z, "visibility": 0.9} if p is not None else None
        for p in posture_frames[Posture.ARMS_RAISED]
    ]
    assert classify(frame) == Posture.ARMS_RAISED


def test_low_visibility_landmarks_are_ignored(posture_frames):
    frame = [
        Landmark(p.x, p.y, p.z, visibility=0.95) if p is not None else None
        for p in posture_frames[Posture.STANDING]
    ]
    wrist = frame[JointType.LEFT_WRIST.value]
    frame[JointType.LEFT_WRIST.value] = Landmark(wrist.x, wrist.y, visibility=0.1)

    assert PostureClassifier().classify(frame) == Posture.STANDING
    assert PostureClassifier(min_visibility=0.5).classify(frame) != Posture.STANDING


def test_details_serialize(posture_frames):
    data = PostureClassifier().classify_with_details(
        posture_frames[Posture.UPWARD_DOG], 1280, 720
    ).to_dict()

    assert data["posture"] == "Urdhva Mukha Svanasana"
    assert data["is_profile_view"] is True
    assert data["frame"] == {"width": 1280, "height": 720}
    assert set(data["joint_angles"]) == {
        "left_elbow", "right_elbow", "left_shoulder", "right_shoulder",
        "left_hip", "right_hip", "left_knee", "right_knee",
    }

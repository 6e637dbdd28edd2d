"""
SURYATRACK Yoga Service - Posture Display Names

Sanskrit and Spanish renderings shown next to each detected posture.
"""

from dataclasses import dataclass
from typing import Dict, Union

from .pose_classifier import Posture


@dataclass(frozen=True)
class PostureNames:
    sanskrit: str
    spanish: str

    def to_dict(self) -> Dict[str, str]:
        return {"sanskrit": self.sanskrit, "spanish": self.spanish}


POSTURE_TRANSLATIONS: Dict[str, PostureNames] = {
    Posture.STANDING.value: PostureNames(
        sanskrit="ताडासन (Tāḍāsana)",
        spanish="Postura de la Montaña",
    ),
    Posture.ARMS_RAISED.value: PostureNames(
        sanskrit="ऊर्ध्व हस्तासन (Ūrdhva Hastāsana)",
        spanish="Brazos Elevados",
    ),
    Posture.FORWARD_FOLD.value: PostureNames(
        sanskrit="उत्तानासन (Uttānāsana)",
        spanish="Flexión Hacia Adelante",
    ),
    Posture.HALF_FORWARD_FOLD.value: PostureNames(
        sanskrit="अर्ध उत्तानासन (Ardha Uttānāsana)",
        spanish="Media Flexión",
    ),
    Posture.PLANK.value: PostureNames(
        sanskrit="चतुरङ्ग दण्डासन (Chaturanga Daṇḍāsana)",
        spanish="Postura de Plancha",
    ),
    Posture.UPWARD_DOG.value: PostureNames(
        sanskrit="ऊर्ध्व मुख श्वानासन (Ūrdhva Mukha Śvānāsana)",
        spanish="Perro Mirando Hacia Arriba",
    ),
    Posture.DOWNWARD_DOG.value: PostureNames(
        sanskrit="अधो मुख श्वानासन (Adho Mukha Śvānāsana)",
        spanish="Perro Mirando Hacia Abajo",
    ),
    Posture.UNKNOWN.value: PostureNames(
        sanskrit="अज्ञात (Desconocida)",
        spanish="Desconocida",
    ),
}


def translate_posture(posture: Union[Posture, str]) -> PostureNames:
    """Look up display names; unmapped identifiers are echoed back."""
    key = posture.value if isinstance(posture, Posture) else posture
    return POSTURE_TRANSLATIONS.get(key, PostureNames(sanskrit=key, spanish=key))

"""Models for photo validation against the vision service."""

from dataclasses import dataclass
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field


class Likelihood(IntEnum):
    """Ordered safe-search likelihood ratings."""

    UNKNOWN = 0
    VERY_UNLIKELY = 1
    UNLIKELY = 2
    POSSIBLE = 3
    LIKELY = 4
    VERY_LIKELY = 5

    @classmethod
    def parse(cls, value: object) -> "Likelihood":
        """Parse a rating name, treating anything unrecognized as UNKNOWN."""
        if isinstance(value, str):
            return cls.__members__.get(value.upper(), cls.UNKNOWN)
        return cls.UNKNOWN


class _VisionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LabelAnnotation(_VisionModel):
    """Single label detected in the image."""

    description: str
    score: float = 0.0


class FaceAnnotation(_VisionModel):
    """Detected face with head pose angles in degrees."""

    roll_angle: float = Field(default=0.0, alias="rollAngle")
    pan_angle: float = Field(default=0.0, alias="panAngle")
    tilt_angle: float = Field(default=0.0, alias="tiltAngle")
    detection_confidence: float = Field(default=0.0, alias="detectionConfidence")


class SafeSearchAnnotation(_VisionModel):
    """Sensitive-content ratings for the image."""

    adult: str = "UNKNOWN"
    spoof: str = "UNKNOWN"
    medical: str = "UNKNOWN"
    violence: str = "UNKNOWN"
    racy: str = "UNKNOWN"


class AnnotateImageResponse(_VisionModel):
    """Annotations for one image."""

    label_annotations: list[LabelAnnotation] = Field(
        default_factory=list, alias="labelAnnotations"
    )
    face_annotations: list[FaceAnnotation] = Field(
        default_factory=list, alias="faceAnnotations"
    )
    safe_search_annotation: SafeSearchAnnotation | None = Field(
        default=None, alias="safeSearchAnnotation"
    )
    error: dict[str, object] | None = None


class BatchAnnotateResponse(_VisionModel):
    """Top-level vision service response."""

    responses: list[AnnotateImageResponse]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one captured photo."""

    is_valid: bool
    reason: str | None = None


@dataclass(frozen=True)
class ValidationRules:
    """Rule set applied to vision annotations."""

    required_subject_labels: tuple[str, ...] = (
        "baby",
        "infant",
        "child",
        "toddler",
        "kid",
        "girl",
        "person",
        "human",
    )
    required_garment_labels: tuple[str, ...] = (
        "dress",
        "clothing",
        "apparel",
        "garment",
        "outfit",
    )
    disallowed_labels: tuple[str, ...] = (
        "dog",
        "cat",
        "pet",
        "animal",
        "toy",
        "doll",
        "adult",
        "man",
        "woman",
    )
    check_front_facing: bool = True
    max_pan_degrees: float = 35.0
    max_tilt_degrees: float = 25.0
    max_roll_degrees: float = 35.0
    unsafe_threshold: Likelihood = Likelihood.LIKELY

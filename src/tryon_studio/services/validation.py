"""Photo validation against a remote vision-analysis service."""

import base64
import logging
import re
from dataclasses import dataclass, field
from typing import Protocol

import httpx
import pydantic

from tryon_studio.domain.validation import (
    AnnotateImageResponse,
    BatchAnnotateResponse,
    Likelihood,
    ValidationResult,
    ValidationRules,
)

logger = logging.getLogger(__name__)

REJECTION_MESSAGE = "Please capture a baby photo with dress for try-on."
RETRY_MESSAGE = "Failed to validate photo. Please try again."
UNANALYZABLE_MESSAGE = "Unable to analyze image. Please try again."

VISION_FEATURES: list[dict[str, object]] = [
    {"type": "LABEL_DETECTION", "maxResults": 20},
    {"type": "FACE_DETECTION", "maxResults": 10},
    {"type": "SAFE_SEARCH_DETECTION", "maxResults": 1},
]


class VisionClient(Protocol):
    """Interface for the image annotation service."""

    async def annotate(
        self, image_content: str, features: list[dict[str, object]]
    ) -> dict[str, object]:
        """Annotate a base64-encoded image and return the raw response."""


class VisionServiceError(Exception):
    """The vision service reported an error for the request."""


@dataclass
class PhotoValidationService:
    """Accepts or rejects a captured photo from its vision annotations."""

    client: VisionClient
    rules: ValidationRules = field(default_factory=ValidationRules)

    async def validate(self, image_bytes: bytes) -> ValidationResult:
        """Run a single validation pass for an image."""
        encoded = base64.b64encode(image_bytes).decode("utf-8")
        try:
            raw = await self.client.annotate(encoded, VISION_FEATURES)
        except (httpx.HTTPError, VisionServiceError):
            logger.exception("Photo validation request failed")
            return ValidationResult(is_valid=False, reason=RETRY_MESSAGE)

        try:
            response = BatchAnnotateResponse.model_validate(raw)
        except pydantic.ValidationError:
            logger.warning("Unexpected vision response shape")
            return ValidationResult(is_valid=False, reason=UNANALYZABLE_MESSAGE)

        if not response.responses:
            return ValidationResult(is_valid=False, reason=UNANALYZABLE_MESSAGE)
        analysis = response.responses[0]
        if analysis.error:
            logger.error("Vision service error: %s", analysis.error.get("message"))
            return ValidationResult(is_valid=False, reason=RETRY_MESSAGE)
        return evaluate_annotations(analysis, self.rules)


def evaluate_annotations(
    analysis: AnnotateImageResponse, rules: ValidationRules
) -> ValidationResult:
    """Apply the rule set to one image's annotations."""
    rejected = ValidationResult(is_valid=False, reason=REJECTION_MESSAGE)

    safe_search = analysis.safe_search_annotation
    if safe_search is not None:
        ratings = (safe_search.adult, safe_search.violence, safe_search.racy)
        if any(
            Likelihood.parse(rating) >= rules.unsafe_threshold for rating in ratings
        ):
            logger.info("Rejected photo: unsafe content")
            return rejected

    faces = analysis.face_annotations
    if len(faces) != 1:
        logger.info("Rejected photo: %s faces detected", len(faces))
        return rejected

    face = faces[0]
    if rules.check_front_facing and not (
        abs(face.pan_angle) <= rules.max_pan_degrees
        and abs(face.tilt_angle) <= rules.max_tilt_degrees
        and abs(face.roll_angle) <= rules.max_roll_degrees
    ):
        logger.info("Rejected photo: face is not front-facing")
        return rejected

    labels = [label.description.lower() for label in analysis.label_annotations]
    if not _has_any(labels, rules.required_subject_labels):
        logger.info("Rejected photo: no subject label")
        return rejected
    if not _has_any(labels, rules.required_garment_labels):
        logger.info("Rejected photo: no garment label")
        return rejected
    if _has_any(labels, rules.disallowed_labels):
        logger.info("Rejected photo: disallowed label present")
        return rejected

    return ValidationResult(is_valid=True)


def _has_any(labels: list[str], indicators: tuple[str, ...]) -> bool:
    """Return whether any label contains an indicator at a word start."""
    return any(
        re.search(rf"\b{re.escape(indicator)}", label)
        for indicator in indicators
        for label in labels
    )

import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote

import requests

from core.config import AI_SERVICE_URL, AI_SERVICE_TIMEOUT
from core.exceptions import InferenceError
from core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Prediction:
    label: str
    confidence: float
    gradcam_path: Optional[str] = None
    raw: dict = field(default_factory=dict)

    @property
    def readable(self) -> str:
        return f"{self.label} ({self.confidence * 100:.1f}%)"


def artifact_filename(ref: str) -> str:
    """Last path segment of an artifact reference, accepting both / and \\ separators."""
    return re.split(r"[\\/]", ref)[-1]


class AIService:
    """Client of the remote inference service."""

    def __init__(self, base_url: str = AI_SERVICE_URL, timeout: float = AI_SERVICE_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def predict(self, image_bytes: bytes, filename: str = "image.png", content_type: str = "image/png") -> Prediction:
        url = f"{self.base_url}/predict"
        logger.info("ai_predict_request", url=url, filename=filename, size=len(image_bytes))
        try:
            files = {"file": (filename, image_bytes, content_type)}
            response = requests.post(url, files=files, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("ai_predict_unreachable", url=url, error=str(e))
            raise InferenceError(f"AI service unreachable: {e}") from e

        if not response.ok:
            logger.error("ai_predict_failed", status=response.status_code, body=response.text[:500])
            raise InferenceError(f"AI service returned {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise InferenceError("AI service returned a non-JSON body") from e

        if not isinstance(data, dict) or "class" not in data or "confidence" not in data:
            raise InferenceError("AI service response is missing class/confidence")
        try:
            confidence = float(data["confidence"])
        except (TypeError, ValueError) as e:
            raise InferenceError("AI service returned a non-numeric confidence") from e
        if not 0.0 <= confidence <= 1.0:
            raise InferenceError(f"AI service returned confidence {confidence} outside [0, 1]")

        prediction = Prediction(
            label=str(data["class"]),
            confidence=confidence,
            gradcam_path=data.get("gradcam_path") or None,
            raw=data,
        )
        logger.info("ai_predict_ok", label=prediction.label, confidence=prediction.confidence,
                    has_gradcam=prediction.gradcam_path is not None)
        return prediction

    def fetch_artifact(self, ref: str):
        """Download a derived artifact from the inference service; returns ``(filename, bytes)``."""
        filename = artifact_filename(ref)
        url = f"{self.base_url}/gambar_api/{quote(filename, safe='')}"
        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise InferenceError(f"Failed to fetch artifact {filename}: {e}") from e
        if response.status_code != 200:
            raise InferenceError(f"Failed to fetch artifact {filename}: {response.status_code}")
        return filename, response.content


def get_ai_service() -> AIService:
    return AIService()

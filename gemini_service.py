import logging
from typing import List, Optional

from google import genai
from google.genai import types
from pydantic import BaseModel

from exceptions import EcoNovaError, ExternalServiceError
from image_utils import decode_image_evidence, prepare_image_for_analysis

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_MS = 30000
KEY_INDEX_REDIS_KEY = "current_evidence_gemini_key_index"

EVIDENCE_PROMPT = """Analyze this environmental task image for a {task_type} task.
Task description: "{description}"

Determine if the image shows evidence of the described environmental action.
Look for specific objects, actions, or environmental elements related to {task_type}.
Provide a confidence score (0-1) on how well the image matches the task description."""

# Checked in order; the first bucket with a matching phrase wins
CONFIDENCE_PHRASES = [
    (0.9, ('strong evidence', 'clear match', 'definitely shows')),
    (0.8, ('good evidence', 'likely shows')),
    (0.6, ('some evidence', 'possibly shows')),
    (0.3, ('little evidence', 'unlikely')),
    (0.1, ('no evidence', 'does not show')),
]
DEFAULT_CONFIDENCE = 0.5


class EvidenceAnalysis(BaseModel):
    success: bool
    confidence: float = 0.0
    feedback: Optional[str] = None
    error: Optional[str] = None


def confidence_from_reply(reply: str) -> float:
    text = reply.lower()
    for confidence, phrases in CONFIDENCE_PHRASES:
        if any(phrase in text for phrase in phrases):
            return confidence
    return DEFAULT_CONFIDENCE


def feedback_from_reply(reply: str) -> str:
    return "\n".join(reply.split("\n")[:3])


class GeminiEvidenceAnalyzer:
    """
    Asks a Gemini vision model whether an image shows the described task.
    Rotates through the configured API keys, remembering the last good one in Redis when available.
    """

    def __init__(self, api_keys: List[str], model: str = DEFAULT_MODEL,
                 redis_client=None, timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self.api_keys = [key for key in api_keys if key]
        self.model = model
        self.redis_client = redis_client
        self.timeout_ms = timeout_ms

    def _start_index(self) -> int:
        if not self.redis_client:
            return 0
        try:
            return int(self.redis_client.get(KEY_INDEX_REDIS_KEY) or 0) % len(self.api_keys)
        except Exception as e:
            logger.warning(f"Could not read Gemini key index from Redis: {e}")
            return 0

    def _remember_index(self, index: int):
        if not self.redis_client:
            return
        try:
            self.redis_client.set(KEY_INDEX_REDIS_KEY, index)
        except Exception as e:
            logger.warning(f"Could not store Gemini key index in Redis: {e}")

    def _generate(self, contents) -> str:
        if not self.api_keys:
            raise ExternalServiceError("No Gemini API keys configured.")

        start_index = self._start_index()
        last_error = None
        for i in range(len(self.api_keys)):
            current_index = (start_index + i) % len(self.api_keys)
            try:
                logger.info(f"--> Trying Gemini API Key #{current_index + 1}")
                client_instance = genai.Client(
                    api_key=self.api_keys[current_index],
                    http_options=types.HttpOptions(timeout=self.timeout_ms))
                response = client_instance.models.generate_content(
                    model=self.model,
                    contents=contents,
                    config=types.GenerateContentConfig(temperature=0.1),
                )
                if not response.text:
                    raise ExternalServiceError("Empty response from Gemini")
                self._remember_index(current_index)
                return response.text
            except Exception as e:
                logger.warning(f"Gemini API Key #{current_index + 1} failed: {e}")
                last_error = e

        raise ExternalServiceError(f"All Gemini API keys failed. Last error: {last_error}")

    def analyze(self, image_evidence: str, task_type: str, description: str) -> EvidenceAnalysis:
        try:
            image_bytes, _ = decode_image_evidence(image_evidence)
            image_bytes = prepare_image_for_analysis(image_bytes)
            prompt = EVIDENCE_PROMPT.format(task_type=task_type, description=description)
            reply = self._generate([
                prompt,
                types.Part.from_bytes(data=image_bytes, mime_type="image/jpeg"),
            ])
        except EcoNovaError as e:
            logger.error(f"Error analyzing image with Gemini: {e.message}")
            return EvidenceAnalysis(success=False, error=e.message)

        logger.info(f"Raw Gemini evidence reply: {reply[:500]}")
        return EvidenceAnalysis(
            success=True,
            confidence=confidence_from_reply(reply),
            feedback=feedback_from_reply(reply),
        )

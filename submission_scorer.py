"""
Submission Scorer: deterministic keyword/length heuristic for real-world task evidence.

An evidence analyzer (see gemini_service.GeminiEvidenceAnalyzer) can optionally be
blended in when image evidence is present. The scorer never raises because of it:
any analyzer failure is logged and the submission still gets credit for the image.
"""

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.5
KEYWORD_BONUS = 0.05
DETAIL_BONUS = 0.10
LONG_DESCRIPTION_CHARS = 100
SHORT_DESCRIPTION_CHARS = 30
IMAGE_ATTEMPT_BONUS = 0.10
DEFAULT_THRESHOLD = 0.7

PASSED_MESSAGE = "Task verification successful!"
FAILED_MESSAGE = "Task verification needs improvement"

TASK_KEYWORDS: Dict[str, List[str]] = {
    'recycling': ['recycle', 'plastic', 'paper', 'glass', 'waste', 'bin', 'sorted', 'separation'],
    'energy': ['energy', 'electricity', 'power', 'light', 'bulb', 'led', 'solar', 'conservation'],
    'water': ['water', 'conservation', 'tap', 'shower', 'leak', 'flow', 'save', 'usage'],
    'planting': ['plant', 'tree', 'garden', 'seed', 'grow', 'soil', 'green', 'nature'],
    'cleanup': ['clean', 'litter', 'trash', 'garbage', 'collect', 'environment', 'beach', 'park'],
}

TASK_TIPS: Dict[str, str] = {
    'recycling': "Remember to show sorted materials and proper recycling containers in your evidence.",
    'energy': "For energy conservation tasks, try to demonstrate before/after or show the specific energy-saving measures you implemented.",
    'water': "Water conservation evidence works best when you can show the specific water-saving methods or devices you used.",
    'planting': "For planting tasks, showing the full process from preparation to completed planting provides the best evidence.",
    'cleanup': "Cleanup tasks are best verified with before and after photos of the area you cleaned.",
}


class ScoreResult(BaseModel):
    confidence: float
    passed: bool
    message: str
    feedback: str
    keywordMatches: int
    imageFeedback: Optional[str] = None


def count_keyword_matches(task_type: str, description: str) -> int:
    """Number of the task type's keywords found as case-insensitive substrings."""
    text = (description or "").lower()
    return sum(1 for keyword in TASK_KEYWORDS.get((task_type or "").lower(), []) if keyword in text)


def build_feedback(task_type: str, confidence: float, keyword_matches: int, has_image: bool) -> str:
    total_keywords = len(TASK_KEYWORDS.get(task_type.lower(), []))

    if confidence > 0.9:
        parts = [f"Excellent work on your {task_type} task! The evidence clearly shows your environmental contribution."]
    elif confidence > 0.7:
        parts = [f"Good job on your {task_type} task. The evidence supports your work, though some aspects could be clearer."]
    elif confidence > 0.5:
        parts = [f"Your {task_type} task shows some evidence of completion, but more details or clearer images would help verification."]
    else:
        parts = [f"We couldn't fully verify your {task_type} task. Please provide clearer evidence or a better description of your work."]

    if keyword_matches > 0 and total_keywords:
        keyword_percentage = round(keyword_matches / total_keywords * 100)
        if keyword_percentage > 75:
            parts.append(f"Your description is very detailed and uses specific terminology related to {task_type}.")
        elif keyword_percentage > 50:
            parts.append(f"Your description contains good details about your {task_type} activity.")
        else:
            parts.append(f"Try to include more specific details about your {task_type} activity in your description.")
    else:
        parts.append(f"Your description could be improved by including specific details about what you did for this {task_type} task.")

    if has_image:
        if confidence > 0.7:
            parts.append("The image you provided is clear and helps verify your work.")
        else:
            parts.append("The image could be clearer to better show your environmental action.")
    else:
        parts.append("Please include an image that clearly shows your environmental action.")

    tip = TASK_TIPS.get(task_type.lower())
    if tip:
        parts.append(tip)

    return " ".join(parts)


class SubmissionScorer:
    def __init__(self, evidence_analyzer=None, threshold: float = DEFAULT_THRESHOLD):
        self.evidence_analyzer = evidence_analyzer
        self.threshold = threshold

    def _blend_image_evidence(self, confidence, image_evidence, task_type, description):
        """Returns (confidence, image_feedback) after consulting the analyzer."""
        if self.evidence_analyzer is None:
            logger.info("No evidence analyzer configured, crediting image attempt")
            return confidence + IMAGE_ATTEMPT_BONUS, None

        try:
            analysis = self.evidence_analyzer.analyze(image_evidence, task_type, description)
        except Exception as e:
            logger.error(f"Error analyzing image evidence for {task_type} task: {e}", exc_info=True)
            return confidence + IMAGE_ATTEMPT_BONUS, None

        if not analysis.success:
            logger.warning(f"Image analysis failed: {analysis.error}")
            return confidence + IMAGE_ATTEMPT_BONUS, None

        return (confidence + analysis.confidence) / 2, analysis.feedback or None

    def score(self, task_type: str, description: str, image_evidence: Optional[str] = None) -> ScoreResult:
        task_type = task_type or ""
        description = description or ""
        keyword_matches = count_keyword_matches(task_type, description)

        confidence = BASE_CONFIDENCE + keyword_matches * KEYWORD_BONUS
        if len(description) > LONG_DESCRIPTION_CHARS:
            confidence += DETAIL_BONUS
        elif len(description) < SHORT_DESCRIPTION_CHARS:
            confidence -= DETAIL_BONUS

        image_feedback = None
        if image_evidence:
            confidence, image_feedback = self._blend_image_evidence(
                confidence, image_evidence, task_type, description)

        confidence = round(max(0.0, min(1.0, confidence)), 4)
        passed = confidence >= self.threshold
        logger.info(f"Scored {task_type} submission: confidence={confidence} keywords={keyword_matches} passed={passed}")

        return ScoreResult(
            confidence=confidence,
            passed=passed,
            message=PASSED_MESSAGE if passed else FAILED_MESSAGE,
            feedback=build_feedback(task_type, confidence, keyword_matches, bool(image_evidence)),
            keywordMatches=keyword_matches,
            imageFeedback=image_feedback,
        )

"""Parsing of the grader's labeled free-text reply into a GradedResult."""

import re

import structlog

from lingua_coach.models.assessment import GradedResult

logger = structlog.get_logger()

DEFAULT_FEEDBACK = "No feedback available"
PARSE_FAILURE_FEEDBACK = "Unable to process assessment. Please try again."
PARSE_FAILURE_TAG = "Assessment parsing error"

_SCORE_PATTERN = re.compile(r"SCORE:\s*(\d+)/100", re.IGNORECASE)
# Labels only count at the start of a line so prose like "score: improving" stays in its section.
_LABEL_PATTERN = re.compile(
    r"^[ \t]*(SCORE|FEEDBACK|STRENGTHS|WEAK_AREAS)[ \t]*:", re.IGNORECASE | re.MULTILINE
)


def _sections(text: str) -> dict[str, str]:
    """Map each label to the text between it and the next label (first occurrence wins)."""
    labels = list(_LABEL_PATTERN.finditer(text))
    sections: dict[str, str] = {}
    for i, match in enumerate(labels):
        end = labels[i + 1].start() if i + 1 < len(labels) else len(text)
        sections.setdefault(match.group(1).upper(), text[match.end():end].strip())
    return sections


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_grading_response(raw_text: str) -> GradedResult:
    """Extract score, feedback, strengths and weak areas from a grading reply.

    Never raises. A missing score becomes 0; a missing feedback section becomes
    ``DEFAULT_FEEDBACK``; missing lists are empty. If matching itself fails the
    result is a fixed fallback flagged with ``PARSE_FAILURE_TAG``.
    """
    try:
        score_match = _SCORE_PATTERN.search(raw_text)
        score = int(score_match.group(1)) if score_match else 0
        if not score_match:
            logger.warning("grading_score_missing", response_length=len(raw_text))

        sections = _sections(raw_text)
        feedback = sections.get("FEEDBACK") or DEFAULT_FEEDBACK

        return GradedResult(
            score=min(100, max(0, score)),
            feedback=feedback,
            strengths=_split_list(sections.get("STRENGTHS", "")),
            weak_areas=_split_list(sections.get("WEAK_AREAS", "")),
        )
    except Exception:
        logger.exception("grading_response_parse_failed")
        return GradedResult(
            score=0,
            feedback=PARSE_FAILURE_FEEDBACK,
            strengths=[],
            weak_areas=[PARSE_FAILURE_TAG],
        )

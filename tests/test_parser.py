"""Tests for grading response parsing."""

from lingua_coach.assessment.parser import (
    DEFAULT_FEEDBACK,
    PARSE_FAILURE_FEEDBACK,
    PARSE_FAILURE_TAG,
    parse_grading_response,
)


class TestParseGradingResponse:
    def test_well_formed_reply(self):
        result = parse_grading_response(
            "SCORE: 85/100\n"
            "FEEDBACK: Nice work.\n"
            "STRENGTHS: pronunciation, vocabulary\n"
            "WEAK_AREAS: grammar"
        )
        assert result.score == 85
        assert result.feedback == "Nice work."
        assert result.strengths == ["pronunciation", "vocabulary"]
        assert result.weak_areas == ["grammar"]

    def test_labels_are_case_insensitive(self):
        result = parse_grading_response(
            "score: 40/100\nfeedback: Speak slower.\nstrengths: effort\nweak_areas: fluency, grammar"
        )
        assert result.score == 40
        assert result.feedback == "Speak slower."
        assert result.weak_areas == ["fluency", "grammar"]

    def test_multiline_feedback_stops_at_next_label(self):
        result = parse_grading_response(
            "SCORE: 70/100\nFEEDBACK: First line.\nSecond line.\nSTRENGTHS: effort"
        )
        assert result.feedback == "First line.\nSecond line."
        assert result.strengths == ["effort"]

    def test_label_word_inside_prose_does_not_split_section(self):
        result = parse_grading_response(
            "SCORE: 72/100\n"
            "FEEDBACK: Good effort; your fluency score: improving, keep going.\n"
            "STRENGTHS: effort"
        )
        assert result.score == 72
        assert result.feedback == "Good effort; your fluency score: improving, keep going."
        assert result.strengths == ["effort"]

    def test_missing_score_is_zero(self):
        result = parse_grading_response("FEEDBACK: Good.\nSTRENGTHS: effort")
        assert result.score == 0
        assert result.feedback == "Good."

    def test_score_is_clamped(self):
        assert parse_grading_response("SCORE: 150/100").score == 100

    def test_missing_sections_use_defaults(self):
        result = parse_grading_response("SCORE: 55/100")
        assert result.feedback == DEFAULT_FEEDBACK
        assert result.strengths == []
        assert result.weak_areas == []

    def test_free_text_without_labels(self):
        result = parse_grading_response("I cannot grade this.")
        assert result.score == 0
        assert result.feedback == DEFAULT_FEEDBACK

    def test_empty_list_items_are_dropped(self):
        result = parse_grading_response("SCORE: 60/100\nSTRENGTHS: a, , b,\nWEAK_AREAS:")
        assert result.strengths == ["a", "b"]
        assert result.weak_areas == []

    def test_never_raises(self):
        result = parse_grading_response(None)  # type: ignore[arg-type]
        assert result.score == 0
        assert result.feedback == PARSE_FAILURE_FEEDBACK
        assert result.weak_areas == [PARSE_FAILURE_TAG]

"""
Profile analysis: parsed model output passes through; offline model falls
back to the GPA standing table.
"""

import pytest

from conftest import FakeGenerationClient, make_student
from student_records.ai.profile_analyzer import FALLBACK_NOTE, ProfileAnalyzer, standing_for_gpa
from student_records.core.errors import NotFound


class TestFallback:
    def test_low_gpa_is_high_risk(self, db, fake_llm):
        student = make_student(db, "S1", current_gpa=1.2)

        result = ProfileAnalyzer(fake_llm).analyze(db, student.id)

        assert result["risk_level"] == "high"
        assert result["gpa_trend"] == "unknown"
        assert result["note"] == FALLBACK_NOTE

    def test_missing_gpa_is_unknown_risk(self, db, fake_llm):
        student = make_student(db, "S1", current_gpa=None)
        assert ProfileAnalyzer(fake_llm).analyze(db, student.id)["risk_level"] == "unknown"

    def test_zero_gpa_is_not_treated_as_missing(self):
        assert standing_for_gpa(0.0)[0] == "high"

    @pytest.mark.parametrize(
        "gpa, risk",
        [(3.7, "low"), (3.0, "low"), (2.7, "medium"), (2.0, "medium"), (1.99, "high")],
    )
    def test_standing_table(self, gpa, risk):
        assert standing_for_gpa(gpa)[0] == risk


class TestModelOutput:
    def test_parsed_analysis_is_returned_as_is(self, db):
        student = make_student(db, "S1", current_gpa=3.2)
        llm = FakeGenerationClient(replies=['```json\n{"risk_level": "low", "strengths": ["math"]}\n```'])

        assert ProfileAnalyzer(llm).analyze(db, student.id) == {"risk_level": "low", "strengths": ["math"]}

    def test_prose_is_wrapped(self, db):
        student = make_student(db, "S1", current_gpa=3.2)
        llm = FakeGenerationClient(replies=["Solid student overall."])

        result = ProfileAnalyzer(llm).analyze(db, student.id)

        assert result == {
            "raw_analysis": "Solid student overall.",
            "overall_performance": "Analysis completed",
            "risk_level": "unknown",
        }


def test_missing_student_is_not_found(db, fake_llm):
    with pytest.raises(NotFound):
        ProfileAnalyzer(fake_llm).analyze(db, 999)
    assert fake_llm.prompts == []


def test_deleted_student_is_not_found(db, fake_llm):
    student = make_student(db, "S1", is_deleted=True)
    with pytest.raises(NotFound):
        ProfileAnalyzer(fake_llm).analyze(db, student.id)

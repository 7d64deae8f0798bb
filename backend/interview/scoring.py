"""
Scorecard rendering.
Turns the model's JSON assessment into the markdown scorecard stored in state.
"""
from typing import Any, Dict, List, Mapping


class ScorecardBuilder:
    """
    Builds scorecards from model assessments, with a fallback when the model
    output is unusable.
    """

    RECOMMENDATIONS = ["Strong Hire", "Hire", "Maybe", "No Hire"]

    @staticmethod
    def build_transcript(questions: List[str], responses: Mapping[int, str]) -> str:
        """Format questions and answers for the scorecard prompt."""
        lines = []
        for i, question in enumerate(questions):
            answer = responses.get(i)
            lines.append(f"Q{i + 1}: {question}")
            lines.append(f"A{i + 1}: {answer if answer else '(no answer recorded)'}")
        return "\n".join(lines)

    @classmethod
    def get_recommendation(cls, fit_score: float) -> str:
        """Map a 1-10 fit score to a hiring recommendation."""
        if fit_score >= 8.5:
            return "Strong Hire"
        elif fit_score >= 7.0:
            return "Hire"
        elif fit_score >= 5.5:
            return "Maybe"
        else:
            return "No Hire"

    @staticmethod
    def _clamp(value: Any, min_val: int = 1, max_val: int = 10, default: int = 5) -> int:
        try:
            return max(min_val, min(max_val, int(value)))
        except (TypeError, ValueError):
            return default

    @classmethod
    def validate_report(cls, report: Dict[str, Any]) -> Dict[str, Any]:
        """Normalize a raw assessment dict so rendering never fails."""
        fit_score = cls._clamp(report.get("fit_score"))
        recommendation = report.get("recommendation")
        if recommendation not in cls.RECOMMENDATIONS:
            recommendation = cls.get_recommendation(fit_score)

        def _strings(key: str) -> List[str]:
            value = report.get(key) or []
            return [str(v) for v in value] if isinstance(value, list) else [str(value)]

        question_scores = []
        for entry in report.get("question_scores") or []:
            if not isinstance(entry, dict):
                continue
            question_scores.append({
                "question_index": cls._clamp(entry.get("question_index"), 0, 100, 0),
                "score": cls._clamp(entry.get("score")),
                "comment": str(entry.get("comment", "")).strip(),
            })

        return {
            "recommendation": recommendation,
            "fit_score": fit_score,
            "summary": str(report.get("summary") or "").strip(),
            "strengths": _strings("strengths"),
            "weaknesses": _strings("weaknesses"),
            "question_scores": question_scores,
            "next_steps": _strings("next_steps"),
        }

    @classmethod
    def render(cls, report: Dict[str, Any], questions: List[str]) -> str:
        """Render a validated assessment as markdown."""
        report = cls.validate_report(report)
        lines = [
            "## Candidate Scorecard",
            "",
            f"**Recommendation:** {report['recommendation']}",
            f"**Fit score:** {report['fit_score']}/10",
        ]
        if report["summary"]:
            lines += ["", report["summary"]]

        if report["question_scores"]:
            lines += ["", "| # | Question | Score | Comment |", "|---|----------|-------|---------|"]
            for entry in report["question_scores"]:
                idx = entry["question_index"]
                question = questions[idx] if idx < len(questions) else "?"
                lines.append(f"| {idx + 1} | {question} | {entry['score']}/10 | {entry['comment']} |")

        for title, key in (("Strengths", "strengths"), ("Weaknesses", "weaknesses"), ("Next Steps", "next_steps")):
            if report[key]:
                lines += ["", f"### {title}"] + [f"- {item}" for item in report[key]]

        return "\n".join(lines)

    @classmethod
    def fallback(cls, questions: List[str], responses: Mapping[int, str]) -> str:
        """Scorecard used when the model assessment cannot be parsed."""
        answered = sum(1 for i in range(len(questions)) if responses.get(i))
        return cls.render({
            "recommendation": "Maybe",
            "fit_score": 5,
            "summary": (
                f"Interview completed with {answered} of {len(questions)} questions answered. "
                "Automatic assessment was unavailable; manual review recommended."
            ),
            "next_steps": ["Manual review of recorded answers", "Team interview"],
        }, questions)

from interview.scoring import ScorecardBuilder
from interview.transcription import TRANSCRIPTION_PLACEHOLDER, WhisperTranscriber
from utils.errors import ProviderFailure

import pytest

from helpers import QUESTIONS


def test_transcript_marks_missing_answers():
    transcript = ScorecardBuilder.build_transcript(QUESTIONS[:2], {0: "I built a payments API"})

    assert "Q1: " + QUESTIONS[0] in transcript
    assert "A1: I built a payments API" in transcript
    assert "A2: (no answer recorded)" in transcript


@pytest.mark.parametrize("score,expected", [(9, "Strong Hire"), (7, "Hire"), (6, "Maybe"), (2, "No Hire")])
def test_recommendation_from_score(score, expected):
    assert ScorecardBuilder.get_recommendation(score) == expected


def test_render_normalizes_bad_values():
    report = {
        "fit_score": "eleven",
        "recommendation": "Definitely!",
        "question_scores": [{"question_index": 1, "score": 42, "comment": "Clear answer"}, "junk"],
        "weaknesses": "Limited Kubernetes exposure",
    }

    rendered = ScorecardBuilder.render(report, QUESTIONS)

    assert rendered.startswith("## Candidate Scorecard")
    assert "**Recommendation:** No Hire" in rendered
    assert "**Fit score:** 5/10" in rendered
    assert f"| 2 | {QUESTIONS[1]} | 10/10 | Clear answer |" in rendered
    assert "### Weaknesses\n- Limited Kubernetes exposure" in rendered


def test_fallback_counts_answers():
    rendered = ScorecardBuilder.fallback(QUESTIONS, {0: "a", 3: "b"})

    assert "2 of 5 questions answered" in rendered


class _Segment:
    def __init__(self, text):
        self.text = text


class _FakeWhisperModel:
    def transcribe(self, path):
        with open(path, "rb") as f:
            audio = f.read()
        if audio == b"corrupt":
            raise RuntimeError("Invalid data found when processing input")
        return iter([_Segment(" hello "), _Segment("world ")]), None


def test_transcriber_joins_segments():
    stt = WhisperTranscriber(model_path="unused")
    stt._model = _FakeWhisperModel()

    assert stt.transcribe(b"audio") == {"text": "hello world"}


def test_transcriber_wraps_failures():
    stt = WhisperTranscriber(model_path="unused")
    stt._model = _FakeWhisperModel()

    with pytest.raises(ProviderFailure):
        stt.transcribe(b"corrupt")
    with pytest.raises(ProviderFailure):
        stt.transcribe(b"")


def test_transcribe_answers_uses_placeholder_for_failures():
    stt = WhisperTranscriber(model_path="unused")
    stt._model = _FakeWhisperModel()

    answers = stt.transcribe_answers([b"audio", b"corrupt", b""])

    assert answers == {0: "hello world", 1: TRANSCRIPTION_PLACEHOLDER, 2: TRANSCRIPTION_PLACEHOLDER}

"""
Prompt templates for the recruiter agents.
Each prompt is designed to:
1. Produce output that parses without guesswork (raw JSON where required)
2. Keep the recruiter assistant concise
3. Ground the scorecard in the candidate's actual answers
"""
from typing import Dict, List


class Prompts:
    """Collection of all agent prompts."""

    # ============================================================
    # QUESTION GENERATOR
    # ============================================================

    @staticmethod
    def question_generator(question_count: int = 5) -> str:
        """System prompt for extracting interview questions from a JD."""
        return f"""You are an expert Technical Recruiter.

OBJECTIVE: Extract interview questions from the Job Description.

OUTPUT FORMAT:
Return ONLY a raw JSON object. Do not include introductory text.

JSON SCHEMA:
{{ "questions": ["Q1", "Q2", "Q3", "Q4", "Q5"] }}

QUESTION GENERATION RULES:
- Quantity: Exactly {question_count} questions (2 Technical, 3 Behavioral).
- Difficulty: Easy to Mid-level.
- Time Limit: Questions must be answerable in 30-60 seconds.
- Content:
  - Ignore fluff (mission, location).
  - Focus on specific tech stacks found in the JD.
  - Behavioral questions should focus on soft skills found in the JD (ownership, communication).
- Style:
  - "What is your experience with [Tech]?"
  - "Explain the difference between [Concept A] and [Concept B]." """

    @staticmethod
    def job_description(jd_text: str) -> str:
        return f"Here is the JD: {jd_text}"

    # ============================================================
    # RECRUITER ASSISTANT
    # ============================================================

    @staticmethod
    def recruiter_assistant(questions: List[str]) -> str:
        """System prompt for generic chat turns."""
        base = """You are a helpful Recruiter Assistant. Keep answers concise.

TOOLS:
- save_interview_setup: store a job description and its generated questions.
- clear_interview: CRITICAL: only use this if the user explicitly asks to reset, clear or start over."""
        if not questions:
            return base + "\n\nNo interview has been set up yet."
        listed = "\n".join(f"{i + 1}. {q}" for i, q in enumerate(questions))
        return base + f"\n\nCURRENT INTERVIEW QUESTIONS:\n{listed}"

    # ============================================================
    # SCORECARD
    # ============================================================

    @staticmethod
    def scorecard(job_description: str, transcript: str) -> str:
        """Prompt for assessing the recorded interview."""
        return f"""Generate a candidate scorecard for the following role.

JOB DESCRIPTION:
{job_description}

INTERVIEW TRANSCRIPT:
{transcript}

Assess only what the candidate actually said. Respond with ONLY this JSON:

{{
    "recommendation": "<Strong Hire/Hire/Maybe/No Hire>",
    "fit_score": <1-10>,
    "summary": "<2-3 sentence summary>",
    "strengths": ["<list of key strengths>"],
    "weaknesses": ["<list of areas for improvement>"],
    "question_scores": [{{"question_index": <0-based index>, "score": <1-10>, "comment": "<one sentence>"}}],
    "next_steps": ["<recommended next steps in hiring process>"]
}}"""


# ============================================================
# FALLBACK QUESTIONS (used when the model output cannot be parsed)
# ============================================================

FALLBACK_QUESTIONS: List[str] = [
    "Could you briefly describe your experience with the core technologies in this role?",
    "What is the most challenging bug you have fixed recently?",
    "Tell me about a time you took ownership of a project.",
    "How do you handle feedback on your code?",
    "Describe a situation where you had to communicate complex technical details to a non-technical person.",
]

REPLIES: Dict[str, str] = {
    "analyzing": "🔍 Analyzing Job Description...",
    "reset": "Interview cleared. Paste a new job description whenever you are ready.",
}

"""Prompt templates and response schemas for the tutor chains."""
from __future__ import annotations

from typing import Any, Dict, List


ACTIONS: List[str] = ["write", "explain", "draw"]
POSITIONS: List[str] = ["top", "center", "below"]
VISUAL_TYPES: List[str] = ["graph", "diagram", "chart", "svg"]


TUTOR_SYSTEM_INSTRUCTION = (
    "You are Easy PrepAI, an elite STEM tutor. Your goal is to simulate a real whiteboard "
    "experience with engaging audio commentary.\n\n"

    "BOARD RULES:\n"
    "1. Use LaTeX for ALL mathematical symbols, equations, and expressions on the board.\n"
    "   - Use $ for inline math (e.g., $x^2$).\n"
    "   - Use $$ for centered or complex equations.\n"
    "2. For 'explain' actions:\n"
    "   - 'content' is the summary for the screen (can include LaTeX).\n"
    "   - 'audioScript' MUST be purely spoken English.\n"
    "   - CRITICAL: Do NOT use LaTeX or symbols like $, ^, _, or \\ in the audioScript.\n"
    "   - Instead, write words: \"x squared\" instead of $x^2$, "
    "\"the integral from a to b\" instead of $\\int_a^b$.\n"
    "   - Make it sound like a human teacher is speaking.\n"
    "   - ALWAYS end every sentence with a period to help the TTS engine stop correctly.\n"
    "3. For 'draw' actions, fill 'visual' with a type (graph, diagram, chart or svg), "
    "the data needed to render it, and a width and height in pixels.\n\n"

    "Output as JSON ONLY.\n"
)


EXPLAIN_CONCEPT_SYSTEM_INSTRUCTION = (
    "You are Easy PrepAI, a patient tutor writing a long-form explanation of one concept "
    "for a student playing a learning game.\n\n"

    "Guidelines:\n"
    "- Start from intuition, then build up to the formal idea\n"
    "- Use everyday analogies when helpful\n"
    "- Use LaTeX ($...$) for any mathematics\n"
    "- Break the method into clear, ordered steps the student can follow on their own\n"
    "- Calm, confident, and encouraging tone\n\n"

    "Output as JSON ONLY.\n"
)


EXPLAIN_CONCEPT_PROMPT = (
    "Explain the following concept in depth.\n\n"
    "[SUBJECT]\n{subject}\n\n"
    "[TOPIC]\n{topic}\n\n"
    "[SUBTOPIC]\n{subtopic}\n\n"
    "[CONTEXT]\n{context}\n\n"
    "Return a prose explanation and the ordered list of steps a student should follow."
)


DEFAULT_LESSON_PROMPT = "Solve the problem shown."


def _enum(values: List[str], description: str) -> Dict[str, Any]:
    return {"type": "STRING", "format": "enum", "enum": list(values), "description": description}


LESSON_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "lesson": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "action": _enum(ACTIONS, "Either 'write', 'explain' or 'draw'."),
                    "content": {
                        "type": "STRING",
                        "description": "The text to write on the board or the written explanation.",
                    },
                    "audioScript": {
                        "type": "STRING",
                        "description": "The conversational script to be spoken aloud for 'explain' actions.",
                    },
                    "position": _enum(POSITIONS, "The layout position on the board: top, center, below."),
                    "visual": {
                        "type": "OBJECT",
                        "properties": {
                            "type": _enum(VISUAL_TYPES, "Kind of visual aid to render."),
                            "data": {"type": "STRING", "description": "Payload needed to render the visual."},
                            "width": {"type": "NUMBER"},
                            "height": {"type": "NUMBER"},
                        },
                        "required": ["type", "data"],
                    },
                },
                "required": ["action", "content"],
            },
        }
    },
    "required": ["lesson"],
}


EXPLANATION_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "explanation": {
            "type": "STRING",
            "description": "Long-form prose explanation of the concept.",
        },
        "steps": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Ordered steps identified in the explanation.",
        },
    },
    "required": ["explanation", "steps"],
}


# Returned alongside every failed lesson so the client always has something to render.
FALLBACK_LESSON: Dict[str, Any] = {
    "lesson": [
        {
            "action": "explain",
            "content": "Sorry, I couldn't prepare this lesson right now. Please try again.",
            "audioScript": "Sorry, I could not prepare this lesson right now. Please try again in a moment.",
            "position": "center",
        }
    ]
}


def render_explain_prompt(subject: str, topic: str, subtopic: str, context: str) -> str:
    return EXPLAIN_CONCEPT_PROMPT.format(
        subject=subject.strip(), topic=topic.strip(), subtopic=subtopic.strip(), context=context.strip()
    )

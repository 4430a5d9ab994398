"""Prompt templates for questionnaire generation and repair."""

import json
from typing import Any

MIN_QUESTIONS = 15

GENERATION_PROMPT = """You are a medical questionnaire generator. Using the provided patient context, generate a thorough clinical questionnaire designed to capture symptoms, vitals, relevant history, and document-relevant questions.

STRICT OUTPUT FORMAT (CRITICAL):
- Return ONLY valid JSON.
- Output must be ONLY a valid JSON array (no prose, no markdown, no backticks, no code fences).
- Use double quotes for all keys and string values.
- Include at least {min_questions} items.
- Each item MUST include exactly these fields: id (number), text (string), type (one of: "radio", "checkbox", "range", "text", "scale"), required (boolean).
- Include an "options" (array of strings) ONLY when type is "radio" or "checkbox".
- For type "range" or "scale", include numeric min and max fields.
- Keep wording concise and clinically relevant.
- Use the patient context to tailor a subset of questions.

EXAMPLE (FORMAT ONLY, NOT CONTENT):
[
  {{"id": 1, "text": "Chief complaint?", "type": "text", "required": true}},
  {{"id": 2, "text": "Do you have a fever?", "type": "radio", "required": true, "options": ["Yes", "No"]}}
]

Return ONLY the JSON array. Do not include any text before or after.

Patient context: {context}"""

GENERATION_USER_TURN = (
    "Return ONLY valid JSON. Output only the JSON array of questions as described. "
    "No commentary. No markdown or code fences."
)

REPAIR_PROMPT = """You will receive a draft questionnaire response that may contain prose or invalid JSON. Convert it into a VALID JSON array that follows this schema EXACTLY and return ONLY valid JSON (no prose, no markdown, no code fences):
- Each item: {{ id:number, text:string, type:"radio"|"checkbox"|"range"|"text"|"scale", required:boolean, options?:string[], min?:number, max?:number }}
- Use double quotes for all keys and string values.
- Include at least {min_questions} items.
- Include options only for radio/checkbox.
- Include min and max only for range/scale."""


def build_generation_messages(context: Any, min_questions: int = MIN_QUESTIONS) -> list[dict[str, str]]:
    """Messages for the first generation call; context is embedded as JSON."""
    system = GENERATION_PROMPT.format(
        min_questions=min_questions,
        context=json.dumps(context if context is not None else {}, default=str),
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": GENERATION_USER_TURN},
    ]


def build_repair_messages(raw_response: str | None, min_questions: int = MIN_QUESTIONS) -> list[dict[str, str]]:
    """Messages asking the model to convert its own draft into the schema."""
    return [
        {"role": "system", "content": REPAIR_PROMPT.format(min_questions=min_questions)},
        {"role": "user", "content": str(raw_response or "")},
    ]

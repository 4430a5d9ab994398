"""AI-generated narrative health reports and report records."""

import json
import threading
from typing import Any, Iterable, Mapping

from medportal.llm.providers.base import ChatCompletionClient
from medportal.logger import get_logger
from medportal.questionnaire.models import Question

logger = get_logger(__name__)

REPORT_SYSTEM_PROMPT = (
    "Generate a health report based on questionnaire answers. "
    "First provide a doctor-facing analysis, then patient-facing advice."
)

ANALYSIS_PROMPT = """You are a medical diagnosis assistant analyzing:
- Patient: {age}yo {gender}
- Symptoms: {symptoms}
- Vitals: {vitals}
- History: {history}
- Medications: {medications}
- Context: {context}

Provide structured analysis with:
1. Differential Diagnosis (ranked)
2. Recommended Tests
3. Treatment Options
4. Risk Assessment
5. Follow-up Plan

Use medical terminology but explain complex terms. Format as markdown."""

HIGH_SEVERITY_TERMS = ("emergency", "immediate")
MEDIUM_SEVERITY_TERMS = ("urgent", "soon")
VITAL_KEYS = ("temperature", "heartRate", "spo2")


def summarize_answers(questions: Iterable[Question], answers: Mapping[Any, Any]) -> str:
    """Render one "question: answer" line per question.

    List answers are comma-joined; unanswered questions read N/A.
    """
    lines = []
    for question in questions:
        answer = answers.get(question.id, answers.get(str(question.id)))
        if isinstance(answer, (list, tuple)):
            rendered = ", ".join(str(a) for a in answer)
        elif answer is None or answer == "":
            rendered = "N/A"
        else:
            rendered = str(answer)
        lines.append(f"{question.text}: {rendered}")
    return "\n".join(lines)


def generate_health_report(
    client: ChatCompletionClient,
    questions: list[Question],
    answers: Mapping[Any, Any],
    cancel: threading.Event | None = None,
) -> str:
    """Ask the model for a narrative report from questionnaire answers.

    Raises:
        ProviderError: Provider failures propagate unchanged
    """
    summary = summarize_answers(questions, answers)
    report = client.send(
        [
            {"role": "system", "content": REPORT_SYSTEM_PROMPT},
            {"role": "user", "content": summary},
        ],
        cancel=cancel,
    )
    logger.info(
        "report.generated",
        event="report.generated",
        source="questionnaire",
        question_count=len(questions),
        severity=determine_severity(report),
    )
    return report


def analyze_patient_data(
    client: ChatCompletionClient,
    patient: Mapping[str, Any],
    context: Mapping[str, Any] | None = None,
    cancel: threading.Event | None = None,
) -> str:
    """Structured differential analysis for the doctor portal.

    Raises:
        ProviderError: Provider failures propagate; no placeholder analysis
            is returned
    """
    system = ANALYSIS_PROMPT.format(
        age=patient.get("age") or "unknown",
        gender=patient.get("gender") or "",
        symptoms=json.dumps(patient.get("symptoms") or {}, default=str),
        vitals=json.dumps(patient.get("vitals") or {}, default=str),
        history=patient.get("history") or "none",
        medications=patient.get("medications") or "none",
        context=json.dumps(context or {}, default=str),
    )
    return client.send(
        [
            {"role": "system", "content": system},
            {"role": "user", "content": "Please analyze this case comprehensively."},
        ],
        cancel=cancel,
    )


def determine_severity(text: str | None) -> str:
    """Classify report urgency from its wording: high, medium or low."""
    lower = (text or "").lower()
    if any(term in lower for term in HIGH_SEVERITY_TERMS):
        return "high"
    if any(term in lower for term in MEDIUM_SEVERITY_TERMS):
        return "medium"
    return "low"


def build_report_record(
    content: str,
    patient_id: str | None,
    doctor_id: str | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Row persisted to the diagnoses table by the storage layer."""
    return {
        "patient_id": patient_id,
        "doctor_id": doctor_id,
        "content": content,
        "ai_generated": True,
        "severity": determine_severity(content),
        "metadata": dict(metadata or {}),
    }


def has_submission_input(
    vitals: Mapping[str, Any] | None,
    uploads: list | None,
    answers: Mapping[Any, Any] | None,
) -> bool:
    """True when at least one vital, upload or non-blank answer was provided."""
    any_vital = False
    if isinstance(vitals, Mapping):
        for key in VITAL_KEYS:
            reading = vitals.get(key)
            if isinstance(reading, Mapping) and reading.get("value") is not None:
                any_vital = True
                break

    any_upload = bool(uploads)

    any_answer = False
    for value in (answers or {}).values():
        if isinstance(value, (list, tuple)):
            if value:
                any_answer = True
        elif value is not None and str(value).strip() != "":
            any_answer = True
        if any_answer:
            break

    return any_vital or any_upload or any_answer

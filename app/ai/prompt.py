from typing import Any

from app.ai.types import ChatMessage

_SECTION_LABELS = (
    ("name", "NAME"),
    ("email", "EMAIL"),
    ("phone", "PHONE"),
    ("github", "GITHUB"),
    ("experience", "EXPERIENCE"),
    ("projects", "PROJECTS"),
    ("education", "EDUCATION"),
    ("skills", "SKILLS"),
)


def build_resume_messages(payload: dict[str, Any]) -> list[ChatMessage]:
    resume_type = (payload.get("resumeType") or "Chronological").strip()
    job_description = (payload.get("jobDescription") or "").strip()

    lines = []
    for key, label in _SECTION_LABELS:
        value = (payload.get(key) or "").strip()
        if value:
            lines.append(f"{label}: {value}")
    candidate = "\n".join(lines)

    system = (
        "You are a professional resume writer. "
        f"Write a complete {resume_type} resume using only the candidate facts provided. "
        "Do not invent employers, dates, degrees or metrics. "
        "Use markdown: '#' headings for sections, '**' for names and titles, '-' for bullet points. "
        "Return the resume only, without commentary."
    )
    if job_description:
        system += " Tailor wording and ordering to the job description, favouring its keywords where truthful."
        user = f"CANDIDATE:\n{candidate}\n\nJOB DESCRIPTION:\n{job_description}\n\nRESUME:"
    else:
        user = f"CANDIDATE:\n{candidate}\n\nRESUME:"

    return [
        ChatMessage(role="system", content=system),
        ChatMessage(role="user", content=user),
    ]

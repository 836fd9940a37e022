from __future__ import annotations

from app.normalize.sanitize import clean_name, final_submission_pass, ultra_clean_for_json
from app.schemas.resume import TEXT_FIELDS, FormData


def field_alias(field_name: str) -> str:
    field = FormData.model_fields[field_name]
    return field.alias or field_name


def can_submit(form: FormData) -> bool:
    """The name must survive the same cleaning the submission applies."""
    return bool(clean_name(form.name))


def non_empty_fields(form: FormData) -> dict[str, str]:
    values: dict[str, str] = {}
    for name in TEXT_FIELDS:
        value = getattr(form, name)
        if value and value.strip():
            values[field_alias(name)] = value
    return values


def prepare_submission(form: FormData) -> FormData:
    cleaned: dict[str, str] = {"name": clean_name(form.name)}
    for name in TEXT_FIELDS:
        if name == "name":
            continue
        cleaned[name] = ultra_clean_for_json(getattr(form, name))
    cleaned = {name: final_submission_pass(value) for name, value in cleaned.items()}
    return form.model_copy(update=cleaned)

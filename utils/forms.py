"""Bind JSON request bodies to Flask-WTF forms."""
import re
from typing import List, Type

from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict

from utils.errors import InputValidationError

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def json_formdata() -> MultiDict:
    """Request JSON as form data, camelCase keys folded to the form's snake_case field names."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return MultiDict()
    pairs = []
    for key, value in payload.items():
        if value is None or isinstance(value, (dict, list)):
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        pairs.append((_snake(str(key)), str(value)))
    return MultiDict(pairs)


def strip_filter(value):
    return value.strip() if isinstance(value, str) else value


def form_errors(form: FlaskForm) -> List[str]:
    errors = []
    for field_name, messages in form.errors.items():
        label = getattr(form, field_name).label.text if hasattr(form, field_name) else field_name
        for message in messages:
            errors.append(f"{label}: {message}")
    return errors


def validated_form(form_class: Type[FlaskForm]) -> FlaskForm:
    """Instantiate ``form_class`` over the JSON body and raise on any field error."""
    form = form_class(formdata=json_formdata())
    if not form.validate():
        errors = form_errors(form)
        raise InputValidationError("Validation failed.", errors)
    return form


class JsonForm(FlaskForm):
    """Base form for JSON endpoints authenticated by bearer token; CSRF is off."""

    class Meta:
        csrf = False

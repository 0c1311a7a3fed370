from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import DataRequired, Length, Optional, Regexp


def _text(value):
    # JSON bodies may carry numbers or null; only strings are accepted.
    return value.strip() if isinstance(value, str) else ""


PIN_VALIDATOR = Regexp(r"^[0-9]{4}$", message="PIN must be exactly 4 digits")


class JsonForm(FlaskForm):
    """JSON clients authenticate by header or session, so no CSRF token."""
    class Meta:
        csrf = False


class PinLoginForm(JsonForm):
    pin = StringField("PIN", filters=[_text], validators=[DataRequired(message="PIN is required"), PIN_VALIDATOR])


class AdminLoginForm(JsonForm):
    pin = StringField("PIN", filters=[_text], validators=[DataRequired(message="PIN is required")])


class ParticipantCreateForm(JsonForm):
    name = StringField(
        "Name",
        filters=[_text],
        validators=[DataRequired(message="Name is required"), Length(max=64)],
    )
    pin = StringField("PIN", filters=[_text], validators=[DataRequired(message="PIN is required"), PIN_VALIDATOR])


class ParticipantUpdateForm(JsonForm):
    name = StringField("Name", filters=[_text], validators=[Optional(), Length(max=64)])
    pin = StringField("PIN", filters=[_text], validators=[Optional(), PIN_VALIDATOR])


def first_error(form: FlaskForm) -> str:
    for errors in form.errors.values():
        if errors:
            return errors[0]
    return "Invalid request"

"""Registration, login, and session management blueprint."""
from typing import Optional

from flask import Blueprint, g
from flask_login import current_user, login_required
from wtforms import PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length, ValidationError

from models import ROLE_GOVERNMENT_OFFICIAL, ROLE_LOCALITY_MEMBER
from utils import auth_service
from utils.forms import JsonForm, strip_filter, validated_form
from utils.responses import api_response

auth_bp = Blueprint("auth", __name__)


# Role names, plus the numeric codes older clients send.
SIGN_IN_TYPES: dict[str, str] = {
    "0": ROLE_LOCALITY_MEMBER,
    "1": ROLE_GOVERNMENT_OFFICIAL,
    ROLE_LOCALITY_MEMBER.lower(): ROLE_LOCALITY_MEMBER,
    ROLE_GOVERNMENT_OFFICIAL.lower(): ROLE_GOVERNMENT_OFFICIAL,
}


def resolve_sign_in_type(value) -> Optional[str]:
    if value is None:
        return None
    return SIGN_IN_TYPES.get(str(value).strip().lower())


class RegistrationForm(JsonForm):
    name = StringField("Name", validators=[DataRequired(), Length(max=100)])
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)], filters=[strip_filter])
    password = PasswordField("Password", validators=[DataRequired(), Length(min=8, max=100)])
    phone_number = StringField("Phone number", validators=[DataRequired(), Length(max=20)])
    address = StringField("Address", validators=[DataRequired(), Length(max=255)])
    sign_in_type = StringField("Sign-in type", validators=[DataRequired()])

    def validate_sign_in_type(self, field):
        if resolve_sign_in_type(field.data) is None:
            raise ValidationError("Invalid sign-in type.")


class LoginForm(JsonForm):
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)], filters=[strip_filter])
    password = PasswordField("Password", validators=[DataRequired()])


class ChangePasswordForm(JsonForm):
    current_password = PasswordField("Current password", validators=[DataRequired()])
    new_password = PasswordField("New password", validators=[DataRequired(), Length(min=8, max=100)])


def _auth_payload(user, token: str) -> dict:
    return {"token": token, "user": user.profile_payload()}


@auth_bp.route("/register", methods=["POST"])
def register():
    form = validated_form(RegistrationForm)
    user, token = auth_service.register_user(
        name=form.name.data,
        email=form.email.data,
        password=form.password.data,
        phone_number=form.phone_number.data,
        address=form.address.data,
        role=resolve_sign_in_type(form.sign_in_type.data),
    )
    return api_response(_auth_payload(user, token), "Registration successful. You are now logged in.", 201)


@auth_bp.route("/login", methods=["POST"])
def login():
    form = validated_form(LoginForm)
    user, token = auth_service.authenticate(form.email.data, form.password.data)
    return api_response(_auth_payload(user, token), "Login successful.")


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return api_response(current_user.profile_payload())


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    auth_service.logout(current_user, g.access_token, g.token_claims)
    return api_response(None, "Logout successful.")


@auth_bp.route("/change-password", methods=["PUT"])
@login_required
def change_password():
    form = validated_form(ChangePasswordForm)
    token = auth_service.change_password(current_user.id, form.current_password.data, form.new_password.data)
    return api_response(
        {"token": token},
        "Password changed successfully. Please use the new token for future requests.",
    )

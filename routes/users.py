"""Profile and account status blueprint."""
from flask import Blueprint
from flask_login import current_user, login_required
from wtforms import StringField
from wtforms.validators import Length, Optional

from utils import account_service
from utils.forms import JsonForm, validated_form
from utils.responses import api_response

user_bp = Blueprint("users", __name__)


class ProfileForm(JsonForm):
    name = StringField("Name", validators=[Optional(), Length(max=100)])
    phone_number = StringField("Phone number", validators=[Optional(), Length(max=20)])
    address = StringField("Address", validators=[Optional(), Length(max=255)])


# Deactivated accounts keep access to these routes so they can reactivate.
@user_bp.route("/profile", methods=["GET"])
@login_required
def profile():
    return api_response(account_service.get_profile(current_user.id).profile_payload())


@user_bp.route("/profile", methods=["PUT"])
@login_required
def update_profile():
    form = validated_form(ProfileForm)
    user = account_service.update_profile(
        current_user.id,
        name=form.name.data,
        phone_number=form.phone_number.data,
        address=form.address.data,
    )
    return api_response(user.profile_payload(), "Profile updated successfully.")


@user_bp.route("/deactivate", methods=["PUT"])
@login_required
def deactivate():
    user = account_service.deactivate_account(current_user.id)
    return api_response(user.profile_payload(), "Account deactivated successfully.")


@user_bp.route("/reactivate", methods=["PUT"])
@login_required
def reactivate():
    user = account_service.reactivate_account(current_user.id)
    return api_response(user.profile_payload(), "Account reactivated successfully.")

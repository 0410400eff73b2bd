"""Grievance filing, browsing, upvoting, and official status blueprint."""
from typing import Tuple

from flask import Blueprint, current_app, request
from flask_login import current_user
from wtforms import StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from utils import grievance_service
from utils.decorators import active_account_required
from utils.forms import JsonForm, validated_form
from utils.responses import api_response
from utils.statistics import compute_statistics
from utils.upvotes import toggle_upvote

grievance_bp = Blueprint("grievances", __name__)


class GrievanceForm(JsonForm):
    name = StringField("Name", validators=[DataRequired(), Length(max=100)])
    street = StringField("Street", validators=[DataRequired(), Length(max=255)])
    locality = StringField("Locality", validators=[DataRequired(), Length(max=100)])
    city = StringField("City", validators=[DataRequired(), Length(max=100)])
    state = StringField("State", validators=[DataRequired(), Length(max=100)])
    department = StringField("Department", validators=[DataRequired(), Length(max=50)])
    description = TextAreaField("Description", validators=[DataRequired(), Length(min=10, max=2000)])
    phone_number = StringField("Phone number", validators=[DataRequired(), Length(max=20)])
    image_url = StringField("Image URL", validators=[DataRequired(), Length(max=500)])
    image_public_id = StringField("Image public ID", validators=[DataRequired(), Length(max=255)])


class GrievanceUpdateForm(JsonForm):
    name = StringField("Name", validators=[Optional(), Length(max=100)])
    street = StringField("Street", validators=[Optional(), Length(max=255)])
    locality = StringField("Locality", validators=[Optional(), Length(max=100)])
    city = StringField("City", validators=[Optional(), Length(max=100)])
    state = StringField("State", validators=[Optional(), Length(max=100)])
    department = StringField("Department", validators=[Optional(), Length(max=50)])
    description = TextAreaField("Description", validators=[Optional(), Length(min=10, max=2000)])
    phone_number = StringField("Phone number", validators=[Optional(), Length(max=20)])


class StatusUpdateForm(JsonForm):
    status = StringField("Status", validators=[DataRequired()])
    solved_image_url = StringField("Solved image URL", validators=[Optional(), Length(max=500)])
    solved_image_public_id = StringField("Solved image public ID", validators=[Optional(), Length(max=255)])


def _paging() -> Tuple[int, int]:
    default_size = int(current_app.config.get("GRIEVANCES_PER_PAGE", 10))
    page = request.args.get("pageNumber", type=int) or request.args.get("page", 1, type=int)
    page_size = request.args.get("pageSize", default_size, type=int)
    if page < 1:
        page = 1
    if page_size < 1:
        page_size = default_size
    return page, page_size


@grievance_bp.route("", methods=["GET"])
@active_account_required
def list_grievances():
    page, page_size = _paging()
    result = grievance_service.list_grievances(
        current_user,
        page=page,
        page_size=page_size,
        department=request.args.get("department"),
        status=request.args.get("status"),
        locality=request.args.get("locality"),
        sort_by=request.args.get("sortBy", grievance_service.SORT_RECENT),
    )
    return api_response(result)


@grievance_bp.route("", methods=["POST"])
@active_account_required
def create_grievance():
    form = validated_form(GrievanceForm)
    grievance = grievance_service.create_grievance(current_user, form.data)
    return api_response(
        grievance_service.serialize(grievance, current_user.id),
        "Grievance created successfully.",
        201,
    )


@grievance_bp.route("/my-grievances", methods=["GET"])
@active_account_required
def my_grievances():
    page, page_size = _paging()
    return api_response(grievance_service.list_my_grievances(current_user, page=page, page_size=page_size))


@grievance_bp.route("/search", methods=["GET"])
@active_account_required
def search():
    page, page_size = _paging()
    term = request.args.get("q") or request.args.get("query")
    return api_response(grievance_service.search_grievances(current_user, term, page=page, page_size=page_size))


@grievance_bp.route("/department/<department>", methods=["GET"])
@active_account_required
def by_department(department):
    page, page_size = _paging()
    return api_response(grievance_service.list_by_department(current_user, department, page=page, page_size=page_size))


@grievance_bp.route("/status/<status>", methods=["GET"])
@active_account_required
def by_status(status):
    page, page_size = _paging()
    return api_response(grievance_service.list_by_status(current_user, status, page=page, page_size=page_size))


@grievance_bp.route("/solved", methods=["GET"])
@active_account_required
def solved():
    page, page_size = _paging()
    return api_response(grievance_service.list_solved(current_user, page=page, page_size=page_size))


@grievance_bp.route("/stats", methods=["GET"])
@active_account_required
def statistics():
    return api_response(compute_statistics(current_user))


@grievance_bp.route("/<grievance_id>", methods=["GET"])
@active_account_required
def get_grievance(grievance_id):
    grievance = grievance_service.get_grievance(grievance_id, current_user)
    return api_response(grievance_service.serialize(grievance, current_user.id))


@grievance_bp.route("/<grievance_id>", methods=["PUT"])
@active_account_required
def update_grievance(grievance_id):
    form = validated_form(GrievanceUpdateForm)
    grievance = grievance_service.update_grievance(grievance_id, current_user, form.data)
    return api_response(grievance_service.serialize(grievance, current_user.id), "Grievance updated successfully.")


@grievance_bp.route("/<grievance_id>", methods=["DELETE"])
@active_account_required
def delete_grievance(grievance_id):
    grievance_service.delete_grievance(grievance_id, current_user)
    return api_response(None, "Grievance deleted successfully.")


@grievance_bp.route("/<grievance_id>/upvote", methods=["PUT"])
@active_account_required
def upvote(grievance_id):
    grievance, upvoted = toggle_upvote(grievance_id, current_user.id)
    return api_response(grievance.to_payload(has_upvoted=upvoted), "Upvote toggled successfully.")


@grievance_bp.route("/<grievance_id>/status", methods=["PUT"])
@active_account_required
def change_status(grievance_id):
    form = validated_form(StatusUpdateForm)
    grievance = grievance_service.change_status(
        grievance_id,
        current_user,
        form.status.data,
        solved_image_url=form.solved_image_url.data,
        solved_image_public_id=form.solved_image_public_id.data,
    )
    return api_response(grievance_service.serialize(grievance, current_user.id), "Grievance status updated successfully.")

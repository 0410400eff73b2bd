"""Blueprint registration and service-level routes."""
from datetime import datetime

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from utils.responses import api_error, api_response
from .auth import auth_bp
from .grievances import grievance_bp
from .users import user_bp

main_bp = Blueprint("main", __name__)


@main_bp.route("/health", methods=["GET"])
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("Health check failed")
        db.session.rollback()
        return api_error("Database unavailable.", ["Database unavailable."], 503)
    return api_response({"status": "ok", "timestamp": datetime.utcnow().isoformat()}, "Service is healthy.")


__all__ = ["main_bp", "auth_bp", "grievance_bp", "user_bp"]

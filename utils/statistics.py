"""Read-only rollups over grievances for the officials' dashboard."""
from __future__ import annotations

from typing import Dict, List

from flask import current_app
from sqlalchemy import case, func

from extensions import db
from models import STATUS_IN_PROCESS, STATUS_PENDING, STATUS_SOLVED, Grievance
from utils.authorization import Operation, enforce

TOP_LOCALITY_LIMIT = 10
SECONDS_PER_DAY = 86400


def _status_count(status: str):
    return func.coalesce(func.sum(case((Grievance.status == status, 1), else_=0)), 0)


def _average_resolution_days() -> float:
    """Mean of (solved_on - created_at) in days over solved grievances with a resolution stamp."""
    rows = (
        db.session.query(Grievance.created_at, Grievance.solved_on)
        .filter(Grievance.status == STATUS_SOLVED, Grievance.solved_on.isnot(None))
        .all()
    )
    if not rows:
        return 0.0
    durations = [(solved_on - created_at).total_seconds() / SECONDS_PER_DAY for created_at, solved_on in rows]
    return round(sum(durations) / len(durations), 2)


def _department_breakdown() -> List[Dict]:
    # Grouped over the data, not the taxonomy, so retired departments still show up.
    rows = (
        db.session.query(
            Grievance.department,
            func.count(Grievance.id),
            _status_count(STATUS_PENDING),
            _status_count(STATUS_IN_PROCESS),
            _status_count(STATUS_SOLVED),
        )
        .group_by(Grievance.department)
        .order_by(Grievance.department.asc())
        .all()
    )
    return [
        {
            "department": department,
            "total": int(total),
            "pending": int(pending),
            "inProcess": int(in_process),
            "solved": int(solved),
        }
        for department, total, pending, in_process, solved in rows
    ]


def _top_localities(limit: int = TOP_LOCALITY_LIMIT) -> List[Dict]:
    """Localities by grievance count, ties broken by locality name ascending."""
    total = func.count(Grievance.id)
    rows = (
        db.session.query(Grievance.locality, total, _status_count(STATUS_SOLVED))
        .group_by(Grievance.locality)
        .order_by(total.desc(), Grievance.locality.asc())
        .limit(limit)
        .all()
    )
    return [
        {"locality": locality, "totalGrievances": int(count), "solvedGrievances": int(solved)}
        for locality, count, solved in rows
    ]


def compute_statistics(actor) -> Dict:
    enforce(actor, Operation.VIEW_STATISTICS)

    total, pending, in_process, solved = db.session.query(
        func.count(Grievance.id),
        _status_count(STATUS_PENDING),
        _status_count(STATUS_IN_PROCESS),
        _status_count(STATUS_SOLVED),
    ).one()

    stats = {
        "totalGrievances": int(total),
        "pendingGrievances": int(pending),
        "inProcessGrievances": int(in_process),
        "solvedGrievances": int(solved),
        "averageResolutionDays": _average_resolution_days(),
        "departmentWiseStats": _department_breakdown(),
        "topLocalities": _top_localities(),
    }
    current_app.logger.info(
        "Statistics computed",
        extra={"user_id": actor.id, "total": stats["totalGrievances"], "solved": stats["solvedGrievances"]},
    )
    return stats

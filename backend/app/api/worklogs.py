"""Worklog hours API endpoints."""

from flask import Blueprint, current_app, jsonify, request

from app.api.bearer import get_bearer_token, get_settings, optional_value
from services.errors import JiraAuthError, JiraDeadlineExceeded, JiraTransportError
from services.worklog_hours import WorklogHoursService

bp = Blueprint("worklogs", __name__, url_prefix="/api/jira")


def get_hours_request():
    """Read the hours-by-user options from the JSON body.

    Body fields (all optional):
        - dateFrom / dateTo: YYYY-MM-DD, DD-MM-YYYY or DD/MM/YYYY
        - username: worklog author filter
        - jql: base JQL expression
        - projectKey: project key
    """
    body = request.get_json(silent=True) or {}
    return {
        "date_from": optional_value(body.get("dateFrom")),
        "date_to": optional_value(body.get("dateTo")),
        "username": optional_value(body.get("username")),
        "jql": optional_value(body.get("jql")),
        "project_key": optional_value(body.get("projectKey")),
    }


@bp.route("/hours-by-user", methods=["POST"])
def get_hours_by_user():
    """Get hours logged per user, grouped by issue.

    Requires header:
        - Authorization: Bearer {token}

    Returns:
        - worklogs: one record per user with totalHours, worklogs and issues
        - degradedIssues: issues whose worklogs could not be fetched
    """
    token = get_bearer_token()
    if not token:
        return jsonify({"error": "Missing or invalid Authorization header. Expected: Bearer {token}"}), 401

    options = get_hours_request()

    try:
        service = WorklogHoursService(token, get_settings(), current_app.logger)
        result = service.get_hours_by_user(**options)
        return jsonify({"data": result})
    except JiraAuthError as e:
        return jsonify({"error": str(e)}), 401
    except ValueError as e:
        return jsonify({"error": f"Invalid date: {e}"}), 400
    except JiraDeadlineExceeded as e:
        return jsonify({"error": str(e)}), 504
    except JiraTransportError as e:
        return jsonify({"error": str(e), "upstreamStatus": e.status}), 502
    except Exception as e:
        current_app.logger.exception("hours-by-user failed")
        return jsonify({"error": str(e)}), 500

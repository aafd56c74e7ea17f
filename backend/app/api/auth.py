"""Authentication API endpoints."""

from flask import Blueprint, current_app, jsonify

from app.api.bearer import get_bearer_token, get_settings
from services.errors import JiraAuthError, JiraTransportError
from services.jira_client import JiraCloudClient

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@bp.route("/validate", methods=["POST"])
def validate_token():
    """Validate a Jira Cloud OAuth token by resolving its cloud id.

    Requires header:
        - Authorization: Bearer {token}

    Returns the cloud id of the first resource with the required read scope.
    """
    token = get_bearer_token()
    if not token:
        return jsonify({"error": "Missing or invalid Authorization header. Expected: Bearer {token}"}), 401

    client = JiraCloudClient(token, get_settings(), current_app.logger)

    try:
        cloud_id = client.get_cloud_id()
    except JiraAuthError as e:
        return jsonify({"error": str(e)}), 401
    except JiraTransportError as e:
        return jsonify({"error": str(e), "upstreamStatus": e.status}), 502

    return jsonify({
        "data": {
            "valid": True,
            "cloudId": cloud_id
        }
    })

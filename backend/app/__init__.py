"""Flask application factory."""

import os
from flask import Flask
from flask_cors import CORS

from services.settings import WorklogSettings

CONFIG_PATH = os.path.join(
    os.path.dirname(__file__), "..", "config", "worklog-config.json"
)


def load_worklog_config(app, config_path=None):
    """Load worklog settings from the optional config file and environment."""
    path = config_path or CONFIG_PATH
    if not os.path.exists(path):
        app.logger.info("No worklog-config.json found, using defaults and environment")

    settings = WorklogSettings.load(path)
    app.config["WORKLOG_SETTINGS"] = settings
    app.logger.info(
        f"Worklog settings: concurrency={settings.worklog_concurrency}, "
        f"lookback={settings.lookback_days}d, user filter on {settings.user_filter_field}"
    )
    return settings


def create_app(settings=None):
    """Create and configure the Flask application.

    Args:
        settings: Optional WorklogSettings; loaded from config/environment
            when omitted
    """
    app = Flask(__name__)

    # Enable CORS for frontend
    CORS(app, resources={
        r"/api/*": {
            "origins": ["http://localhost:5173", "http://127.0.0.1:5173"],
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"]
        }
    })

    # Register blueprints
    from app.api import auth, worklogs
    app.register_blueprint(auth.bp)
    app.register_blueprint(worklogs.bp)

    if settings is not None:
        app.config["WORKLOG_SETTINGS"] = settings
    else:
        load_worklog_config(app)

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    return app

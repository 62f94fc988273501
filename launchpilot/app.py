"""App entrypoint.

Builds the Flask app and registers the reconciler blueprints.
"""

from __future__ import annotations

import re
from typing import Optional

from flask import Flask
from flask_cors import CORS

from launchpilot.config import config


def create_app(overrides: Optional[dict] = None) -> Flask:
    app = Flask(__name__)
    if overrides:
        app.config.update(overrides)

    if config.ALLOW_ALL_ORIGINS:
        origins = [re.compile(r".*")]
    else:
        origins = config.ALLOWED_ORIGINS

    CORS(
        app,
        resources={r"/api/*": {"origins": origins}},
        allow_headers=["Content-Type", "Authorization", "X-Cron-Token"],
        expose_headers=["Content-Type"],
        methods=["GET", "OPTIONS"],
    )

    from launchpilot.routes import register_blueprints
    from launchpilot.utils.error_handlers import register_error_handlers

    register_blueprints(app)
    register_error_handlers(app)

    return app


if __name__ == "__main__":
    from launchpilot.config import log_config

    log_config()
    create_app().run(host=config.HOST, port=config.PORT)

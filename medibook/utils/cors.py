"""
CORS for the JSON API. Only ``/api/*`` is exposed cross-origin; health
checks are for same-host probes.
"""
from flask_cors import CORS

API_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
API_HEADERS = ["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"]


def _origins(value):
    # CORS_ORIGINS is "*" or a comma-separated list
    if not value or value.strip() == "*":
        return "*"
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def init_cors(app):
    origins = _origins(app.config.get("CORS_ORIGINS"))
    CORS(
        app,
        resources={r"/api/*": {"origins": origins}},
        methods=API_METHODS,
        allow_headers=API_HEADERS,
        expose_headers=["Content-Type"],
        supports_credentials=False,  # bearer tokens, no cookies
        max_age=86400,
    )
    app.logger.info("CORS enabled for /api/* from %s", origins)

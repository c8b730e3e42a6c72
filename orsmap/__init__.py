"""Flask application factory for the openrouteservice map backend."""
import os
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask

from .geocoder import DEFAULT_NOMINATIM_URL, DEFAULT_USER_AGENT
from .ors_client import DEFAULT_BASE_URL, REQUEST_TIMEOUT

load_dotenv(override=True)


def _get_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    if value is None:
        return default
    return value.strip()


def _get_env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


def create_app(overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config["SECRET_KEY"] = _get_env("SECRET_KEY", "dev-secret")
    app.config["FLASK_ENV"] = _get_env("FLASK_ENV", "development")
    app.config["ORS_API_KEY"] = _get_env("ORS_API_KEY", "")
    app.config["ORS_BASE_URL"] = _get_env("ORS_BASE_URL", DEFAULT_BASE_URL) or DEFAULT_BASE_URL
    app.config["ORS_TIMEOUT"] = _get_env_float("ORS_TIMEOUT", REQUEST_TIMEOUT)
    app.config["NOMINATIM_URL"] = _get_env("NOMINATIM_URL", DEFAULT_NOMINATIM_URL) or DEFAULT_NOMINATIM_URL
    app.config["NOMINATIM_USER_AGENT"] = _get_env("NOMINATIM_USER_AGENT", DEFAULT_USER_AGENT) or DEFAULT_USER_AGENT
    if overrides:
        app.config.update(overrides)

    from .routes import api_bp  # pylint: disable=import-outside-toplevel

    app.register_blueprint(api_bp, url_prefix="/api")
    return app

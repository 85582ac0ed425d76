from __future__ import annotations

import io
import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable

from flask import Flask, current_app, jsonify, redirect, render_template, request, send_file, url_for

from ..charts import plot_heart_rate, plot_sleep_stages
from ..config import AppConfig, get_config
from ..env import get_env
from ..models import Role, ValidationError
from ..services import DashboardView, build_dashboard
from ..sources import available_datasets
from ..state import (
    DashboardState,
    clear_comparison_date,
    initial_state,
    load_dataset,
    load_upload,
    reset_date_range,
    with_comparison_date,
    with_date_range,
    with_role,
    with_status,
)

LOGGER = logging.getLogger(__name__)

STATE_KEY = "DASHBOARD_STATE"
CONFIG_KEY = "VITALS_CONFIG"
LOCK_KEY = "DASHBOARD_STATE_LOCK"
MISSING_UPLOAD_MESSAGE = "Choose a CSV file to upload."


def create_app(config: AppConfig | None = None, *, load_sample: bool = True) -> Flask:
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    app = Flask(
        __name__,
        template_folder=str(Path(__file__).parent / "templates"),
    )
    env_secret = get_env("SECRET") or os.environ.get("SECRET_KEY")
    if not env_secret and os.environ.get("FLASK_ENV") == "production":
        raise RuntimeError("SECRET_KEY/ATHLETE_VITALS_SECRET must be set in production.")
    app.secret_key = env_secret or "dev-secret"

    app_config = config or get_config()
    state = initial_state()
    if load_sample:
        state = load_dataset(state, state.athlete, app_config)
    app.config.update({CONFIG_KEY: app_config, STATE_KEY: state, LOCK_KEY: threading.Lock()})

    register_routes(app)
    register_api(app)
    return app


def _state() -> DashboardState:
    return current_app.config[STATE_KEY]


def _apply(transition: Callable[..., DashboardState], *args: Any) -> DashboardState:
    """Run one transition against the current state and store the result.

    The read and the store happen under the app's lock so concurrent requests
    cannot drop each other's updates. A `ValidationError` becomes the status.
    """
    with current_app.config[LOCK_KEY]:
        state = current_app.config[STATE_KEY]
        try:
            state = transition(state, *args)
        except ValidationError as exc:
            LOGGER.info("Rejected dashboard input: %s", exc)
            state = with_status(state, str(exc))
        current_app.config[STATE_KEY] = state
        return state


def _config() -> AppConfig:
    return current_app.config[CONFIG_KEY]


def _view() -> DashboardView:
    return build_dashboard(_state(), thresholds=_config().thresholds)


def _back_to_dashboard():
    return redirect(url_for("index"), code=303)


def register_routes(app: Flask) -> None:
    @app.route("/")
    def index():
        return render_template(
            "dashboard.html",
            view=_view(),
            roles=[role.value for role in Role],
            datasets=available_datasets(_config()),
        )

    @app.post("/role")
    def select_role():
        _apply(with_role, request.form.get("role", ""))
        return _back_to_dashboard()

    @app.post("/athlete")
    def select_athlete():
        athlete = (request.form.get("athlete") or "").strip()
        _apply(lambda state: load_dataset(state, athlete or state.athlete, _config()))
        return _back_to_dashboard()

    @app.post("/upload")
    def upload_csv():
        upload = request.files.get("file")
        if upload is None or not upload.filename:
            _apply(with_status, MISSING_UPLOAD_MESSAGE)
            return _back_to_dashboard()
        _apply(load_upload, upload.stream)
        return _back_to_dashboard()

    @app.post("/dates")
    def select_dates():
        _apply(with_date_range, request.form.get("date_from"), request.form.get("date_to"))
        return _back_to_dashboard()

    @app.post("/dates/reset")
    def reset_dates():
        _apply(reset_date_range)
        return _back_to_dashboard()

    @app.post("/compare")
    def select_comparison():
        _apply(with_comparison_date, request.form.get("comparison_date"))
        return _back_to_dashboard()

    @app.post("/compare/clear")
    def clear_comparison():
        _apply(clear_comparison_date)
        return _back_to_dashboard()

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"}), 200


def register_api(app: Flask) -> None:
    @app.get("/api/dashboard")
    def api_dashboard():
        return jsonify(_view().to_dict())

    @app.get("/charts/heart-rate.png")
    def chart_heart_rate():
        buffer = io.BytesIO()
        plot_heart_rate(_view().heart_rate_series, buffer)
        buffer.seek(0)
        return send_file(buffer, mimetype="image/png")

    @app.get("/charts/sleep-stages.png")
    def chart_sleep_stages():
        buffer = io.BytesIO()
        plot_sleep_stages(_view().sleep_stage_counts, buffer)
        buffer.seek(0)
        return send_file(buffer, mimetype="image/png")

from __future__ import annotations

import io
from pathlib import Path

from athlete_vitals.config import AppConfig
from athlete_vitals.state import DATASET_ERROR_MESSAGE, PARSE_ERROR_MESSAGE
from athlete_vitals.webapp import MISSING_UPLOAD_MESSAGE, STATE_KEY, create_app

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
UPLOAD_CSV = (
    b"timestamp,athlete_name,heart_rate,spo2\n"
    b"2024-07-01 08:00,Casey,64,97.0\n"
    b"2024-07-02 08:00,Casey,66,96.5\n"
)


def _client():
    app = create_app()
    app.config.update(TESTING=True)
    return app, app.test_client()


def _dashboard(client) -> dict:
    response = client.get("/api/dashboard")
    assert response.status_code == 200
    return response.get_json()


def test_index_renders_default_dataset() -> None:
    _, client = _client()
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Alex - 12 samples from 2024-06-01 to 2024-06-03. View tailored for coach." in body
    assert "Distribution based on current data window." in body
    assert "Clinical alerts" not in body


def test_health() -> None:
    _, client = _client()
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_role_switch_shows_doctor_alerts() -> None:
    _, client = _client()
    response = client.post("/role", data={"role": "doctor"})
    assert response.status_code == 303

    payload = _dashboard(client)
    assert payload["role"] == "doctor"
    assert payload["alerts_visible"] is True
    assert payload["alert_messages"] == ["No critical alerts from current data window. Continue routine monitoring."]

    client.post("/role", data={"role": "physio"})
    payload = _dashboard(client)
    assert payload["role"] == "doctor"
    assert "physio" in payload["status"]


def test_athlete_switch_and_failed_load() -> None:
    app, client = _client()
    client.post("/athlete", data={"athlete": "jordan"})
    payload = _dashboard(client)
    assert payload["athlete"] == "jordan"
    assert payload["sample_count"] == 11

    client.post("/athlete", data={"athlete": "nobody"})
    payload = _dashboard(client)
    assert payload["athlete"] == "jordan"
    assert payload["sample_count"] == 11
    assert payload["status"] == DATASET_ERROR_MESSAGE
    assert len(app.config[STATE_KEY].samples) == 11


def test_upload_replaces_samples() -> None:
    _, client = _client()
    response = client.post(
        "/upload",
        data={"file": (io.BytesIO(UPLOAD_CSV), "casey.csv")},
        content_type="multipart/form-data",
    )
    assert response.status_code == 303
    payload = _dashboard(client)
    assert payload["sample_count"] == 2
    assert payload["summary"].startswith("Casey - 2 samples from 2024-07-01 to 2024-07-02")
    assert (payload["date_from"], payload["date_to"]) == ("2024-07-01", "2024-07-02")


def test_upload_failures_keep_previous_samples() -> None:
    _, client = _client()
    client.post("/upload", data={}, content_type="multipart/form-data")
    assert _dashboard(client)["status"] == MISSING_UPLOAD_MESSAGE

    client.post(
        "/upload",
        data={"file": (io.BytesIO(b"  \n"), "blank.csv")},
        content_type="multipart/form-data",
    )
    payload = _dashboard(client)
    assert payload["status"] == PARSE_ERROR_MESSAGE
    assert payload["sample_count"] == 12


def test_date_range_and_reset() -> None:
    _, client = _client()
    client.post("/dates", data={"date_from": "2024-06-02", "date_to": "2024-06-02"})
    payload = _dashboard(client)
    assert payload["sample_count"] == 4

    client.post("/dates", data={"date_from": "2024-08-01", "date_to": "2024-08-02"})
    assert _dashboard(client)["summary"] == "No samples fall inside the selected date range."

    client.post("/dates", data={"date_from": "yesterday", "date_to": ""})
    assert "date_from" in _dashboard(client)["status"]

    client.post("/dates/reset")
    payload = _dashboard(client)
    assert payload["sample_count"] == 12
    assert payload["status"] is None
    assert (payload["date_from"], payload["date_to"]) == ("2024-06-01", "2024-06-03")


def test_comparison_date_and_clear() -> None:
    _, client = _client()
    client.post("/compare", data={"comparison_date": "2024-06-02"})
    payload = _dashboard(client)
    assert payload["comparison_date"] == "2024-06-02"
    assert payload["comparison_label"] == "Jun 2"
    heart_rate = next(card for card in payload["cards"] if card["key"] == "heart_rate")
    assert heart_rate["comparison"]["label"] == "Jun 2"

    client.post("/compare/clear")
    payload = _dashboard(client)
    assert payload["comparison_date"] is None
    assert all(card["comparison"] is None for card in payload["cards"])


def test_chart_images() -> None:
    _, client = _client()
    for url in ("/charts/heart-rate.png", "/charts/sleep-stages.png"):
        response = client.get(url)
        assert response.status_code == 200
        assert response.mimetype == "image/png"
        assert response.data.startswith(PNG_SIGNATURE)


def test_create_app_with_custom_config(tmp_path: Path) -> None:
    path = tmp_path / "casey.csv"
    path.write_bytes(UPLOAD_CSV)
    app = create_app(AppConfig(datasets={"casey": path}), load_sample=False)
    client = app.test_client()

    payload = _dashboard(client)
    assert payload["sample_count"] == 0
    assert payload["summary"] == "No data loaded. Upload a CSV or use the sample datasets."

    client.post("/athlete", data={"athlete": "casey"})
    payload = _dashboard(client)
    assert payload["athlete"] == "casey"
    assert payload["sample_count"] == 2


def test_concurrent_transitions_are_not_lost() -> None:
    import time
    from concurrent.futures import ThreadPoolExecutor

    from athlete_vitals.models import Sample
    from athlete_vitals.state import with_samples
    from athlete_vitals.webapp import _apply

    app, _ = _client()

    def _append_one(state):
        extra = Sample(timestamp="2024-06-04 08:00", athlete_name="Alex")
        time.sleep(0.001)
        return with_samples(state, state.samples + (extra,))

    def _worker(_: int) -> None:
        with app.app_context():
            _apply(_append_one)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(_worker, range(24)))

    assert len(app.config[STATE_KEY].samples) == 12 + 24

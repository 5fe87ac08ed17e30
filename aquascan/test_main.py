import pytest
from fastapi.testclient import TestClient

import main
from app_state import AppShell
from conftest import png_bytes

MANUAL_FORM = {"ph": "7.0", "tds": "150", "turbidity": "Low", "chlorine": "0.2", "language": "English"}


@pytest.fixture
def install_shell(monkeypatch, store, no_location):
    def _install(analyzer):
        shell = AppShell(analyzer=analyzer, store=store, geolocation=no_location)
        shell.start()
        monkeypatch.setattr(main, "shell", shell)
        return shell
    return _install


@pytest.fixture
def client():
    return TestClient(main.app)


def test_health(install_shell, client):
    install_shell(None)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["stored_analyses"] == 0


def test_manual_analysis_shows_dashboard(install_shell, client, make_analyzer, safe_reply):
    shell = install_shell(make_analyzer(safe_reply))

    response = client.post("/analyze", data=MANUAL_FORM)

    assert response.status_code == 200
    body = response.json()
    assert body["dashboard"]["banner"]["riskLevel"] == "SAFE"
    assert body["dashboard"]["banner"]["score"] == "91%"
    assert body["state"]["view"] == "dashboard"
    assert len(shell.state.history) == 1
    assert client.get("/history").json()["count"] == 1


def test_image_analysis(install_shell, client, make_analyzer, safe_reply):
    install_shell(make_analyzer(safe_reply))

    response = client.post("/analyze", files={"file": ("sample.png", png_bytes(), "image/png")})

    assert response.status_code == 200


def test_non_image_upload_rejected(install_shell, client, make_analyzer, safe_reply):
    install_shell(make_analyzer(safe_reply))
    response = client.post("/analyze", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400


def test_no_input_rejected(install_shell, client, make_analyzer, safe_reply):
    shell = install_shell(make_analyzer(safe_reply))
    response = client.post("/analyze", data={"language": "English"})
    assert response.status_code == 400
    assert shell.state.history == ()


def test_rejected_submission_keeps_language(install_shell, client, make_analyzer, safe_reply):
    shell = install_shell(make_analyzer(safe_reply))

    assert client.post("/analyze", data={"language": "Spanish"}).status_code == 400
    bad_file = client.post(
        "/analyze",
        data={"language": "Hindi"},
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert bad_file.status_code == 400
    assert client.post("/analyze", data={**MANUAL_FORM, "language": "French"}).status_code == 400
    assert shell.state.language == "English"

    assert client.post("/analyze", data={**MANUAL_FORM, "language": "Spanish"}).status_code == 200
    assert shell.state.language == "Spanish"


def test_model_failure_keeps_scan_view(install_shell, client, make_analyzer):
    shell = install_shell(make_analyzer(ConnectionError("offline")))

    response = client.post("/analyze", data=MANUAL_FORM)

    assert response.status_code == 502
    assert response.json()["detail"] == main.ANALYSIS_FAILED_MESSAGE
    assert client.get("/state").json()["view"] == "scan"
    assert shell.state.history == ()


def test_missing_api_key(install_shell, client):
    install_shell(None)
    response = client.post("/analyze", data=MANUAL_FORM)
    assert response.status_code == 500


def test_dashboard_requires_result(install_shell, client):
    install_shell(None)
    assert client.get("/dashboard").status_code == 409
    assert client.post("/navigate/dashboard").status_code == 409
    state = client.get("/state").json()
    nav = {item["id"]: item for item in state["navigation"]}
    assert nav["dashboard"]["disabled"] is True


def test_navigate_to_map_and_history(install_shell, client):
    install_shell(None)
    assert client.post("/navigate/map").json()["view"] == "map"
    assert client.post("/navigate/history").json()["view"] == "history"
    assert client.post("/navigate/settings").status_code == 422


def test_select_history_entry(install_shell, client, make_analyzer, safe_reply):
    shell = install_shell(make_analyzer(safe_reply))
    client.post("/analyze", data=MANUAL_FORM)
    client.post("/analyze", data=MANUAL_FORM)
    client.post("/navigate/history")

    response = client.post("/history/1/select")

    assert response.status_code == 200
    assert response.json()["state"]["view"] == "dashboard"
    assert shell.state.current_result is shell.state.history[1]
    assert len(shell.state.history) == 2
    assert client.post("/history/5/select").status_code == 404


def test_language_switch(install_shell, client):
    install_shell(None)

    response = client.post("/language", json={"language": "Hindi"})

    assert response.status_code == 200
    assert response.json()["labels"]["history"] == "इतिहास"
    assert client.post("/language", json={"language": "French"}).status_code == 400


def test_map_endpoints(install_shell, client):
    install_shell(None)

    html = client.get("/map")
    data = client.get("/map/data").json()

    assert html.status_code == 200
    assert "North District" in html.text
    assert len(data["zones"]) == 5
    assert data["markers"] == []

from examforge.api.deps import get_app_settings
from examforge.core.config import Settings
from examforge.main import app

QUICK_PARAMS = {"populationSize": 10, "generations": 12, "randomSeed": 21}


def sample_payload(client, **overrides):
    response = client.get("/api/generate/sample")
    assert response.status_code == 200
    payload = response.json()
    payload["params"] = dict(payload["params"], **QUICK_PARAMS)
    payload["startingDate"] = "2026-10-19"
    payload.update(overrides)
    return payload


def test_sample_request_uses_public_field_names(client):
    response = client.get("/api/generate/sample")

    assert response.status_code == 200
    payload = response.json()
    assert [course["id"] for course in payload["courses"]] == ["CS101", "MA201", "PHY301", "ENG102", "HIS210"]
    assert payload["courses"][0]["departmentId"] == "DEPT_CS"
    assert payload["params"]["populationSize"] == 100
    assert payload["algorithm"] == "GENETIC_ALGORITHM"
    assert len(payload["constraints"]) == 4


def test_generate_returns_timetable_and_metrics(client):
    response = client.post("/api/generate", json=sample_payload(client))

    assert response.status_code == 200
    result = response.json()
    assert len(result["timetable"]) == 5
    assert result["algorithm"] == "GENETIC_ALGORITHM"
    assert result["horizonDays"][0] == "2026-10-19"
    metrics = result["metrics"]
    assert metrics["hardConstraintViolations"] >= 0
    assert metrics["softConstraintViolations"] >= 0
    assert len(metrics["fitnessHistory"]) == QUICK_PARAMS["generations"]
    for entry in result["timetable"]:
        assert entry["day"] in result["horizonDays"]
        assert entry["timeSlot"] in result["timeSlots"]
        assert entry["room"]["id"] in {"R101", "R102", "R205", "AUD"}


def test_generate_with_annealing_and_explicit_days(client):
    payload = sample_payload(client, algorithm="SIMULATED_ANNEALING", examDays=3)

    response = client.post("/api/generate", json=payload)

    assert response.status_code == 200
    assert response.json()["horizonDays"] == ["2026-10-19", "2026-10-20", "2026-10-21"]


def test_generate_without_rooms_is_a_client_error(client):
    response = client.post("/api/generate", json=sample_payload(client, rooms=[]))

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "No rooms available for generation"
    assert body["details"] == {"course_count": 5}


def test_generate_rejects_duplicate_course_ids(client):
    payload = sample_payload(client)
    payload["courses"].append(dict(payload["courses"][0]))

    response = client.post("/api/generate", json=payload)

    assert response.status_code == 422


def test_stream_sends_progress_then_result(client):
    with client.websocket_connect("/api/generate/stream") as websocket:
        websocket.send_json(sample_payload(client, algorithm="SIMULATED_ANNEALING"))
        messages = []
        while True:
            message = websocket.receive_json()
            messages.append(message)
            if message["type"] != "progress":
                break

    progress = [item["progress"] for item in messages[:-1]]
    assert messages[-1]["type"] == "result"
    assert len(progress) == QUICK_PARAMS["generations"]
    assert progress == sorted(progress)
    assert progress[-1] == 100.0
    assert len(messages[-1]["result"]["timetable"]) == 5


def test_stream_reports_engine_errors(client):
    with client.websocket_connect("/api/generate/stream") as websocket:
        websocket.send_json(sample_payload(client, rooms=[]))
        message = websocket.receive_json()

    assert message["type"] == "error"
    assert message["message"] == "No rooms available for generation"


def test_stream_reports_invalid_payload(client):
    with client.websocket_connect("/api/generate/stream") as websocket:
        websocket.send_json({"courses": [{"id": "X"}]})
        message = websocket.receive_json()

    assert message["type"] == "error"
    assert message["message"] == "Invalid generation request"
    assert message["details"]["errors"]


def test_requests_without_algorithm_use_the_configured_default(client):
    configured = Settings(_env_file=None, default_algorithm="SIMULATED_ANNEALING")
    app.dependency_overrides[get_app_settings] = lambda: configured
    try:
        sample = client.get("/api/generate/sample").json()
        payload = sample_payload(client)
        payload.pop("algorithm")
        response = client.post("/api/generate", json=payload)
    finally:
        app.dependency_overrides.clear()

    assert sample["algorithm"] == "SIMULATED_ANNEALING"
    assert response.status_code == 200
    assert response.json()["algorithm"] == "SIMULATED_ANNEALING"

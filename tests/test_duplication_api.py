from fastapi.testclient import TestClient

from main import app

client = TestClient(app)


def _statement(target, value):
    return {
        "shape": "assign:local",
        "kind": "expression",
        "text": f"{target} = {value};",
        "slots": [
            {"kind": "identifier", "text": target},
            {"kind": "literal", "text": value},
        ],
    }


def _sequence(start_line, method, values):
    return {
        "statements": [_statement(f"v{i}", value) for i, value in enumerate(values)],
        "start_line": start_line,
        "end_line": start_line + len(values) - 1,
        "containing_method": method,
        "containing_class": "OrderService",
    }


def _payload(**options):
    return {
        "files": [{
            "file_path": "OrderService.java",
            "sequences": [
                _sequence(10, "createOrder", ["1", "2", "3", "4", "5"]),
                _sequence(30, "createInvoice", ["6", "7", "8", "9", "10"]),
            ],
        }],
        **options,
    }


def test_list_presets():
    """Test the presets endpoint."""
    response = client.get("/api/duplication/presets")
    assert response.status_code == 200
    presets = {preset["name"]: preset for preset in response.json()}
    assert presets["strict"]["threshold"] == 0.9
    assert presets["lenient"]["min_lines"] == 3


def test_analyze_duplication():
    """Test a full analysis run."""
    response = client.post("/api/duplication/analyze", json=_payload(preset="default"))
    assert response.status_code == 200
    data = response.json()
    assert data["files_analyzed"] == 1
    assert data["total_duplicates"] == 1
    assert data["failures"] == {}

    cluster = data["reports"][0]["clusters"][0]
    assert cluster["occurrence_count"] == 2
    assert cluster["recommendation"]["strategy"] == "extract_method"
    assert cluster["recommendation"]["suggested_method_name"] == "create"


def test_analyze_with_settings_defaults():
    """Test that omitted options fall back to the service settings."""
    response = client.post("/api/duplication/analyze", json=_payload())
    assert response.status_code == 200
    assert response.json()["reports"][0]["source_file"] == "OrderService.java"


def test_analyze_rejects_invalid_threshold():
    """Test that an out-of-range threshold is rejected."""
    response = client.post("/api/duplication/analyze", json=_payload(threshold=1.5))
    assert response.status_code == 422


def test_analyze_rejects_unknown_preset():
    response = client.post("/api/duplication/analyze", json=_payload(preset="aggressive"))
    assert response.status_code == 422
    assert "Unknown preset" in response.json()["detail"]


def test_analyze_rejects_malformed_body():
    response = client.post("/api/duplication/analyze", json={"files": [{"file_path": "A.java"}]})
    assert response.status_code == 422

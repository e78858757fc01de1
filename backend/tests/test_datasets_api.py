# File: backend/tests/test_datasets_api.py
# Version: v0.1.0
"""HTTP surface for parsing, listing, editing and reducing datasets."""
import uuid

from fastapi.testclient import TestClient

from backend.app.main import app

client = TestClient(app)


def _project() -> str:
    return f"api-{uuid.uuid4().hex[:8]}"


def _parse(fixtures_dir, name, project_id, **extra):
    payload = {"projectId": project_id, "filePath": str(fixtures_dir / name), **extra}
    return client.post("/api/datasets/parse", json=payload)


def test_list_parsers():
    r = client.get("/api/parsers")
    assert r.status_code == 200
    assert [p["format"] for p in r.json()] == ["genbank", "gff3", "json", "csv"]
    assert all(p["displayName"] for p in r.json())


def test_parse_store_and_fetch(fixtures_dir):
    project_id = _project()
    r = _parse(fixtures_dir, "sample.gb", project_id)
    assert r.status_code == 200
    body = r.json()
    assert body["warnings"] == ['Feature "misc_feature" skipped: invalid location.']
    assert len(body["preview"]) == 5
    dataset = body["dataset"]
    assert dataset["projectId"] == project_id
    assert dataset["recordCount"] == 5
    assert dataset["statistics"]["totalFeatures"] == 5

    listed = client.get("/api/datasets", params={"projectId": project_id}).json()
    assert [d["id"] for d in listed] == [dataset["id"]]

    detail = client.get(f"/api/datasets/{dataset['id']}").json()
    assert len(detail["features"]) == 5
    assert detail["plotTracks"][0]["id"] == "gc-content"


def test_format_hint_overrides_extension(fixtures_dir, tmp_path):
    p = tmp_path / "features.txt"
    p.write_text("name,start,stop\na,1,10\n", encoding="utf-8")
    r = client.post("/api/datasets/parse", json={"projectId": _project(), "filePath": str(p), "formatHint": "csv"})
    assert r.status_code == 200
    assert r.json()["dataset"]["format"] == "csv"


def test_parse_errors_map_to_422(tmp_path):
    p = tmp_path / "bad.csv"
    p.write_text("name,start\na,1\n", encoding="utf-8")
    r = client.post("/api/datasets/parse", json={"projectId": _project(), "filePath": str(p)})
    assert r.status_code == 422
    assert "stop" in r.json()["detail"]

    r = client.post("/api/datasets/parse", json={"projectId": _project(), "filePath": str(tmp_path / "missing.gb")})
    assert r.status_code == 422


def test_edit_endpoints(fixtures_dir):
    dataset_id = _parse(fixtures_dir, "sample.csv", _project()).json()["dataset"]["id"]

    r = client.patch(f"/api/datasets/{dataset_id}/display-name", json={"displayName": " Renamed "})
    assert r.status_code == 200
    assert r.json()["displayName"] == "Renamed"

    r = client.put(f"/api/datasets/{dataset_id}/feature-states",
                   json={"featureStates": {"gene": {"visible": False, "color": "#ff0000"}}})
    assert r.json()["featureStates"] == {"gene": {"visible": False, "color": "#ff0000"}}

    r = client.put(f"/api/datasets/{dataset_id}/plot-tracks",
                   json={"plotTracks": [{"id": "cov", "kind": "coverage", "points": [{"position": 5, "value": 1}]}]})
    assert [t["id"] for t in r.json()["plotTracks"]] == ["cov"]

    r = client.put(f"/api/datasets/{dataset_id}/link-tracks", json={"linkTracks": [{"color": "bad"}]})
    assert r.json()["linkTracks"][0]["color"] == "#f97316"


def test_missing_and_blank_ids():
    assert client.get("/api/datasets/does-not-exist").status_code == 404
    assert client.delete("/api/datasets/does-not-exist").status_code == 404
    assert client.patch("/api/datasets/does-not-exist/display-name", json={"displayName": "x"}).status_code == 404
    assert client.get("/api/datasets/%20").status_code == 400


def test_delete(fixtures_dir):
    dataset_id = _parse(fixtures_dir, "sample.gff3", _project()).json()["dataset"]["id"]
    r = client.delete(f"/api/datasets/{dataset_id}")
    assert r.status_code == 200
    assert client.get(f"/api/datasets/{dataset_id}").status_code == 404


def test_render_and_density(tmp_path):
    lines = ["name,type,start,stop"]
    for i in range(3000):
        kind = "gene" if i % 100 else "repeat"
        lines.append(f"f{i},{kind},{i * 100},{i * 100 + 50}")
    p = tmp_path / "many.csv"
    p.write_text("\n".join(lines) + "\n", encoding="utf-8")
    dataset_id = client.post(
        "/api/datasets/parse", json={"projectId": _project(), "filePath": str(p)}
    ).json()["dataset"]["id"]

    r = client.get(f"/api/datasets/{dataset_id}/render", params={"maxFeatures": 600})
    assert r.status_code == 200
    body = r.json()
    assert body["totalFeatures"] == 3000
    assert 0 < body["returned"] <= 600
    assert len(body["features"]) == body["returned"]

    r = client.get(f"/api/datasets/{dataset_id}/render", params={"maxFeatures": 100, "stratifyBy": "type"})
    types = {f["type"] for f in r.json()["features"]}
    assert types == {"gene", "repeat"}

    r = client.get(f"/api/datasets/{dataset_id}/density", params={"windowSize": 10000})
    body = r.json()
    assert body["windowSize"] == 10000
    assert body["totalLength"] == 299950
    assert len(body["points"]) == 30
    assert body["points"][0]["density"] == 100 / 10000

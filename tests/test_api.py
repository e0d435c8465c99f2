import json

from fastapi.testclient import TestClient

from src.api.main import create_app
from src.config import ALLOWED_FILE_TYPES
from tests.helpers import WALLET, analysis_reply, health_verdict

PDF = ("cbc.pdf", b"%PDF-1.4 fake lab report", "application/pdf")


def post_report(client, file=PDF, wallet=WALLET):
    files = {}
    if file is not None:
        files["file"] = file
    if wallet is not None:
        files["walletAddress"] = (None, wallet)
    return client.post("/analyze", files=files)


def test_readiness(client):
    response = client.get("/analyze")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ready",
        "message": "Health analysis API is ready (JSON format only)",
        "supportedFileTypes": list(ALLOWED_FILE_TYPES),
        "maxFileSize": "20MB",
        "responseFormat": "JSON",
    }


def test_root(client):
    assert client.get("/").status_code == 200


def test_successful_analysis(client, model):
    model.replies = [health_verdict(), analysis_reply()]

    response = post_report(client)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["fileName"] == "cbc.pdf"
    assert body["fileSize"] == len(PDF[1])
    assert body["fileType"] == "application/pdf"
    assert body["analysis"]["findings"][1]["status"] == "normal"
    assert body["analysis"]["recommendations"][0]["category"] == "Immediate Actions"
    assert body["tokenReward"] == {"earned": 110, "total": 110, "isNewUser": True}
    assert model.calls[0][1]["data"] == PDF[1]


def test_json_body_is_malformed(client, model):
    response = client.post("/analyze", json={"walletAddress": WALLET})

    assert response.status_code == 400
    body = response.json()
    assert body == {
        "success": False,
        "kind": "MalformedRequest",
        "error": "Invalid request format",
        "details": body["details"],
    }
    assert "multipart/form-data" in body["details"]
    assert model.calls == []


def test_missing_file(client):
    response = post_report(client, file=None)

    assert response.status_code == 400
    assert response.json()["kind"] == "MissingFile"


def test_missing_wallet(client):
    response = post_report(client, wallet=None)

    assert response.status_code == 400
    assert response.json()["kind"] == "MissingIdentifier"


def test_unsupported_type(client, model):
    response = post_report(client, file=("notes.txt", b"hello", "text/plain"))

    assert response.status_code == 400
    assert response.json()["error"] == "Unsupported file type: text/plain"
    assert model.calls == []


def test_upload_limit_comes_from_params(pipeline, params):
    params["upload_config"]["max_file_size"] = 1024 * 1024
    client = TestClient(create_app(pipeline=pipeline, params=params))

    response = post_report(client, file=("scan.png", b"\0" * (1024 * 1024 + 1024 * 512), "image/png"))

    assert response.status_code == 400
    body = response.json()
    assert body["kind"] == "FileTooLarge"
    assert body["details"] == "Maximum file size: 1MB. Uploaded file: 1.50MB"


def test_not_health_document(client, model):
    model.replies = [health_verdict(is_health=False, confidence=95, document_type="Invoice")]

    response = post_report(client)

    assert response.status_code == 400
    body = response.json()
    assert body["kind"] == "NotHealthDocument"
    assert "Type: Invoice" in body["details"]
    assert "Confidence: 95%" in body["details"]
    assert len(model.calls) == 1


def test_negative_verdict_without_confidence_is_rejected(client, model):
    model.replies = [json.dumps({"isHealthDocument": False, "documentType": "Invoice", "reason": "Billing items"})]

    response = post_report(client)

    assert response.status_code == 400
    body = response.json()
    assert body["kind"] == "NotHealthDocument"
    assert "Type: Invoice" in body["details"]
    assert len(model.calls) == 1


def test_parse_failure(client, model):
    model.replies = [health_verdict(), "```json\n{\"title\": \"truncated..."]

    response = post_report(client)

    assert response.status_code == 500
    assert response.json()["kind"] == "AnalysisParseError"


def test_quota_error(client, model):
    model.replies = [RuntimeError("429 quota exceeded for gemini-2.5-flash")]

    response = post_report(client)

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "kind": "UpstreamQuotaError",
        "error": "API quota exceeded",
        "details": "Daily API usage limit reached",
    }


def test_uninitialized_pipeline_is_unavailable(params):
    client = TestClient(create_app(pipeline=None, params=params))

    assert post_report(client).status_code == 503


def test_startup_builds_pipeline(params, pipeline, model, monkeypatch):
    monkeypatch.setattr("src.api.main.build_pipeline", lambda p: pipeline)
    model.replies = [health_verdict(), analysis_reply()]

    with TestClient(create_app(pipeline=None, params=params)) as client:
        assert post_report(client).status_code == 200


def test_failed_startup_leaves_service_unavailable(params, monkeypatch):
    def broken(p):
        raise RuntimeError("database unreachable")

    monkeypatch.setattr("src.api.main.build_pipeline", broken)

    with TestClient(create_app(pipeline=None, params=params)) as client:
        assert post_report(client).status_code == 503


class TestDashboard:
    def test_requires_wallet(self, client):
        response = client.get("/dashboard")

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_unknown_wallet(self, client):
        response = client.get("/dashboard", params={"walletAddress": "0xnobody"})

        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    def test_after_analysis(self, client, model):
        model.replies = [health_verdict(), analysis_reply()]
        post_report(client)

        response = client.get("/dashboard", params={"walletAddress": WALLET})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["walletAddress"] == WALLET
        assert data["user"]["tokens"] == 110
        assert data["user"]["totalAnalyses"] == 1
        assert data["stats"] == {"totalReports": 1, "reportsThisMonth": 1, "reportsThisWeek": 1}
        assert data["reports"][0]["fileName"] == "cbc.pdf"
        assert data["reports"][0]["format"] == "json"
        assert data["reports"][0]["analysisData"]["title"] == "Complete Blood Count - March 2026"

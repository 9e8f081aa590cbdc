import pytest
from fastapi.testclient import TestClient

from dentscan.application.services.scan_lifecycle import ScanLifecycleService
from dentscan.core.config import settings
from dentscan.dependencies import get_scan_service, get_storage
from dentscan.infrastructure.persistence.memory.scan_repository_memory import InMemoryScanRepository
from dentscan.main import app


class FakeHandle:
    def __init__(self, callback):
        self.callback = callback
        self._cancelled = False
        self._done = False

    def cancel(self):
        if self._done or self._cancelled:
            return False
        self._cancelled = True
        return True

    def cancelled(self):
        return self._cancelled

    def done(self):
        return self._done or self._cancelled

    def fire(self):
        if not self.done():
            self._done = True
            self.callback()


class ManualScheduler:
    def __init__(self):
        self.handles = []

    def schedule(self, delay_seconds, callback):
        handle = FakeHandle(callback)
        self.handles.append(handle)
        return handle

    def run_all(self):
        for handle in list(self.handles):
            handle.fire()


class QueuedRandom:
    def __init__(self):
        self.values = []

    def draw(self):
        return self.values.pop(0) if self.values else 0.1


class FakeStorage:
    def __init__(self):
        self.saved = []

    def save_bytes(self, subdir: str, filename: str, data: bytes) -> str:
        self.saved.append((subdir, filename, len(data)))
        return f"/tmp/{filename}"


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def env():
    scheduler = ManualScheduler()
    random_source = QueuedRandom()
    storage = FakeStorage()
    svc = ScanLifecycleService(
        repo=InMemoryScanRepository(),
        scheduler=scheduler,
        random_source=random_source,
        delay_seconds=3.5,
    )
    app.dependency_overrides[get_scan_service] = lambda: svc
    app.dependency_overrides[get_storage] = lambda: storage
    client = TestClient(app)
    yield client, svc, scheduler, random_source, storage
    app.dependency_overrides.clear()


def upload(client, name="opg.png", content=PNG_BYTES, content_type="image/png", **form):
    return client.post("/scans", files={"file": (name, content, content_type)}, data=form)


def test_upload_starts_analysis(env):
    client, svc, _, _, storage = env
    resp = upload(client, patient_name="Jane Doe", age_range="31-50", medical_history=["Diabetes", "Gum Disease"])

    assert resp.status_code == 202
    body = resp.json()
    assert body["status"] == "analyzing"
    assert body["file_name"] == "opg.png"
    assert body["file_size"] == len(PNG_BYTES)
    assert body["image_url"] == "/tmp/opg.png"
    assert body["analysis_results"] is None
    assert body["progress"]["step"] == "Initializing AI model..."
    assert body["patient_info"] == {"name": "Jane Doe", "age_range": "31-50", "medical_history": ["Diabetes", "Gum Disease"]}
    assert storage.saved == [("scans", "opg.png", len(PNG_BYTES))]
    assert svc.pending_count == 1


def test_scan_completes_after_deferred_analysis(env):
    client, _, scheduler, random_source, _ = env
    random_source.values = [0.95]
    scan_id = upload(client).json()["id"]

    scheduler.run_all()

    body = client.get(f"/scans/{scan_id}").json()
    assert body["status"] == "completed"
    assert body["progress"]["percent"] == 100
    results = body["analysis_results"]
    assert results["overall_score"] == 50
    assert results["status"] == "urgent"
    assert len(results["findings"]) == 4

    result = client.get(f"/scans/{scan_id}/result")
    assert result.status_code == 200
    assert result.json()["status"] == "urgent"


def test_result_before_completion_is_conflict(env):
    client, _, _, _, _ = env
    scan_id = upload(client).json()["id"]

    resp = client.get(f"/scans/{scan_id}/result")

    assert resp.status_code == 409
    assert resp.json()["success"] is False
    assert "no analysis result" in resp.json()["error"]


def test_rejected_upload_creates_no_scan(env):
    client, svc, _, _, storage = env
    resp = upload(client, name="notes.pdf", content=b"%PDF-1.4", content_type="application/pdf")
    assert resp.status_code == 415
    assert resp.json()["error"] == "File type application/pdf not allowed"

    resp = upload(client, content=b"")
    assert resp.status_code == 400

    assert storage.saved == []
    assert svc.pending_count == 0


def test_unknown_scan_is_404(env):
    client, _, _, _, _ = env
    resp = client.get("/scans/scan-nope")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "data": None, "error": "Scan scan-nope not found"}


def test_cancelled_scan_stays_analyzing(env):
    client, _, scheduler, _, _ = env
    scan_id = upload(client).json()["id"]

    resp = client.post(f"/scans/{scan_id}/cancel")
    assert resp.status_code == 200
    assert resp.json()["cancelled"] is True

    scheduler.run_all()
    body = client.get(f"/scans/{scan_id}").json()
    assert body["status"] == "analyzing"
    assert body["cancelled"] is True
    assert body["analysis_results"] is None
    assert body["progress"] is None
    assert client.get(f"/scans/{scan_id}/result").status_code == 409


def test_cancel_completed_scan_is_conflict(env):
    client, _, scheduler, _, _ = env
    scan_id = upload(client).json()["id"]
    scheduler.run_all()
    assert client.post(f"/scans/{scan_id}/cancel").status_code == 409


def test_report_download(env):
    client, _, scheduler, random_source, _ = env
    random_source.values = [0.35]
    scan_id = upload(client, patient_name="Jane Doe").json()["id"]

    assert client.get(f"/scans/{scan_id}/report").status_code == 409

    scheduler.run_all()
    resp = client.get(f"/scans/{scan_id}/report")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert f'filename="dental-report-{scan_id}.txt"' in resp.headers["content-disposition"]
    assert "Overall score: 75/100" in resp.text
    assert "Patient:     Jane Doe" in resp.text


def test_dashboard_stats_and_filters(env):
    client, _, scheduler, random_source, _ = env
    random_source.values = [0.1, 0.6, 0.95]
    upload(client, name="healthy.png", patient_name="Ann Lee")
    upload(client, name="check.png", patient_name="Bob Stone")
    upload(client, name="panoramic.png", patient_name="Ann Lee")
    scheduler.run_all()
    upload(client, name="pending.png")

    body = client.get("/dashboard").json()
    assert body["success"] is True
    data = body["data"]
    assert data["stats"] == {"total": 3, "healthy": 1, "attention": 1, "urgent": 1}
    assert [s["file_name"] for s in data["scans"]] == ["panoramic.png", "check.png", "healthy.png"]

    data = client.get("/dashboard", params={"status": "urgent"}).json()["data"]
    assert [s["file_name"] for s in data["scans"]] == ["panoramic.png"]

    data = client.get("/dashboard", params={"q": "ann"}).json()["data"]
    assert [s["file_name"] for s in data["scans"]] == ["panoramic.png", "healthy.png"]
    assert data["stats"]["total"] == 3

    data = client.get("/dashboard", params={"status": "attention", "q": "ann"}).json()["data"]
    assert data["scans"] == []

    assert client.get("/dashboard/stats").json() == {"total": 3, "healthy": 1, "attention": 1, "urgent": 1}


def test_dashboard_rejects_unknown_status(env):
    client, _, _, _, _ = env
    resp = client.get("/dashboard", params={"status": "critical"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_app_lifespan_cancels_pending_analyses_on_shutdown():
    storage = FakeStorage()
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        with TestClient(app) as client:
            health = client.get("/health").json()
            assert health["status"] == "healthy"
            assert health["analysis"]["delay_seconds"] == pytest.approx(3.5)

            scan_id = upload(client).json()["id"]
            assert client.get("/health").json()["analysis"]["pending"] == 1
            svc = app.state.scan_service
        record = svc.get(scan_id)
        assert svc.closed
        assert svc.pending_count == 0
        assert record.status.value == "analyzing"
        assert record.result is None
    finally:
        app.dependency_overrides.clear()


def test_any_image_subtype_is_accepted(env):
    client, _, _, _, storage = env
    resp = upload(client, name="opg.tiff", content=b"II*\x00" + b"\x00" * 32, content_type="image/tiff")
    assert resp.status_code == 202
    assert resp.json()["file_name"] == "opg.tiff"

    resp = upload(client, name="opg.bmp", content=b"BM" + b"\x00" * 32, content_type="image/bmp")
    assert resp.status_code == 202
    assert len(storage.saved) == 2


def test_long_patient_name_and_repeated_history_are_kept(env):
    client, _, _, _, _ = env
    long_name = "A" * 250
    resp = upload(
        client,
        patient_name=f"  {long_name}  ",
        medical_history=["Diabetes", "Gum Disease", "Diabetes", "Gum Disease"],
    )

    assert resp.status_code == 202
    patient = resp.json()["patient_info"]
    assert patient["name"] == long_name
    assert patient["medical_history"] == ["Diabetes", "Gum Disease"]


def test_oversized_file_is_rejected(env, monkeypatch):
    client, svc, _, _, storage = env
    monkeypatch.setattr(settings, "MAX_FILE_SIZE", 16)

    resp = upload(client)

    assert resp.status_code == 413
    assert resp.json()["success"] is False
    assert resp.json()["error"].startswith("File too large")
    assert storage.saved == []
    assert svc.pending_count == 0


def test_oversized_request_is_rejected_before_routing(env, monkeypatch):
    client, svc, _, _, storage = env
    monkeypatch.setattr(settings, "MAX_REQUEST_SIZE", 32)

    resp = upload(client)

    assert resp.status_code == 413
    assert resp.json() == {"success": False, "data": None, "error": "Request entity too large"}
    assert storage.saved == []
    assert svc.pending_count == 0


def test_dashboard_all_filter_ignores_case(env):
    client, _, scheduler, random_source, _ = env
    random_source.values = [0.1, 0.95]
    upload(client, name="a.png")
    upload(client, name="b.png")
    scheduler.run_all()

    for value in ("ALL", "All", "all"):
        resp = client.get("/dashboard", params={"status": value})
        assert resp.status_code == 200
        assert len(resp.json()["data"]["scans"]) == 2
    assert client.get("/dashboard", params={"status": "URGENT"}).json()["data"]["scans"][0]["file_name"] == "b.png"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from qctrack.auth.security import create_access_token
from qctrack.main import create_app

from .test_records import _png


@pytest.fixture
def client(stores):
    app = create_app(stores=stores)
    with TestClient(app, headers={"X-User-Id": "alice"}) as client:
        yield client


def _future(hours=6) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


class TestHealthAndAuth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_bearer_token_identifies_user(self, client):
        token = create_access_token("bob")
        resp = client.post(
            "/collaboration/entities/insp-1/comments",
            json={"text": "looks good"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 201
        assert resp.json()["user_id"] == "bob"

    def test_invalid_token_rejected(self, client):
        resp = client.get("/notifications", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401


class TestNotificationsApi:
    def test_unread_count_and_read_all(self, client):
        for i in range(3):
            assert client.post("/notifications", json={"title": f"N{i}", "message": "m"}).status_code == 201

        assert client.get("/notifications/unread-count").json() == {"unread": 3, "total": 3}
        assert client.post("/notifications/read-all").json() == {"status": "ok", "updated": 3}
        assert client.get("/notifications/unread-count").json() == {"unread": 0, "total": 3}
        assert client.post("/notifications/missing/read").status_code == 404


class TestDocumentsApi:
    def test_update_and_missing(self, client):
        created = client.post(
            "/documents",
            json={"title": "Rebar spec", "type": "spec", "metadata": {"author": "alice", "tags": ["rebar"]}},
        ).json()

        updated = client.patch(f"/documents/{created['id']}", json={"content": "12 in spacing"}).json()

        assert updated["version"] == 2
        assert len(updated["revision_history"]) == 2
        assert [d["id"] for d in client.get("/documents", params={"tag": "rebar"}).json()] == [created["id"]]
        resp = client.patch("/documents/missing", json={"content": "x"})
        assert resp.status_code == 404
        assert resp.json()["entity"] == "Document"


class TestInspectionsApi:
    def test_create_deficiency(self, client, stores):
        resp = client.post(
            "/deficiencies", json={"description": "Crack in beam", "severity": "high", "location": "Zone A"}
        )

        assert resp.status_code == 201
        assert resp.json()["status"] == "open"
        assert any(
            n.title == "New Deficiency" and n.severity == "critical" for n in stores.notifications.notifications
        )
        assert client.get("/deficiencies/missing").status_code == 404

    def test_checklist_generation(self, client):
        checklist = client.post("/checklist/generate", json={"type": "welding", "conditions": {"temperature": 20}}).json()
        item_id = checklist["items"][0]["id"]

        completed = client.post(f"/checklist/items/{item_id}/complete").json()

        assert len(checklist["items"]) == 3
        assert completed["completed_items"] == [item_id]


class TestScheduleApi:
    def test_prerequisite_conflict(self, client, stores):
        first = client.post(
            "/schedule",
            json={"title": "Footing", "date": _future(), "location": "Zone A", "job_number": "J-1"},
        ).json()

        resp = client.post(
            "/schedule",
            json={
                "title": "Pour",
                "date": _future(30),
                "location": "Zone A",
                "job_number": "J-1",
                "prerequisites": [first["id"]],
            },
        )

        assert first["status"] == "pending"
        assert resp.status_code == 409
        assert resp.json()["missing"] == [first["id"]]
        assert len(stores.schedule.inspections) == 1


class TestPhotosApi:
    def test_photo_analysis_flow(self, client):
        photo = client.post(
            "/photos",
            json={"image_url": "http://x/p.jpg", "location": "Zone A", "job_number": "J-1", "job_type": "concrete"},
        ).json()

        fetched = client.get(f"/photos/{photo['id']}").json()
        analysis = client.get(f"/photos/{photo['id']}/analysis").json()

        assert [d["type"] for d in fetched["analysis"]["defects"]] == ["crack", "spalling"]
        assert analysis["quality_score"] == pytest.approx(0.8)
        assert client.get(f"/photos/{photo['id']}/compare/unknown").status_code == 404

    def test_upload_serves_file(self, client):
        resp = client.post(
            "/photos/upload",
            files={"file": ("crack.png", _png(), "image/png")},
            data={"location": "Zone B", "job_number": "J-9"},
        )

        assert resp.status_code == 201
        photo = resp.json()
        assert photo["metadata"]["dimensions"] == {"width": 4, "height": 3}
        path = photo["image_url"].replace("http://testserver", "")
        served = client.get(path)
        assert served.status_code == 200
        assert served.content == _png()

    def test_upload_rejects_non_image(self, client):
        resp = client.post(
            "/photos/upload",
            files={"file": ("notes.png", b"plain text", "image/png")},
            data={"location": "Zone B", "job_number": "J-9"},
        )
        assert resp.status_code == 409


class TestCollaborationApi:
    def test_only_author_can_edit(self, client):
        comment = client.post("/collaboration/entities/insp-1/comments", json={"text": "@bob check"}).json()

        resp = client.patch(
            f"/collaboration/entities/insp-1/comments/{comment['id']}",
            json={"text": "changed"},
            headers={"X-User-Id": "mallory"},
        )
        ok = client.patch(f"/collaboration/entities/insp-1/comments/{comment['id']}", json={"text": "fixed"})

        assert resp.status_code == 409
        assert ok.json()["edited"] is True

    def test_presence(self, client):
        client.post("/collaboration/presence")
        client.post("/collaboration/presence", headers={"X-User-Id": "bob"})
        client.delete("/collaboration/presence")

        assert client.get("/collaboration/presence").json() == ["bob"]


class TestAnalyticsApi:
    def test_summary(self, client):
        client.post("/deficiencies", json={"description": "Rust", "severity": "low", "location": "Level 2"})

        summary = client.get("/analytics/summary").json()

        assert summary["open_deficiencies"] == 1
        assert summary["location_heatmap"] == {"Level 2": 1}


class TestQCApi:
    def test_low_stock_alert(self, client, stores):
        resp = client.post(
            "/qc/consumables/rods",
            json={
                "type": "SMAW",
                "classification": "E7018",
                "size": '1/8"',
                "quantity": 4,
                "job_number": "J-1",
                "location": "Rod room",
                "minimum_stock": 10,
            },
        )

        assert resp.status_code == 200
        assert len(client.get("/qc/consumables/low-stock").json()) == 1
        assert stores.notifications.notifications[0].title == "Low Welding Stock Alert"

    def test_nde_report_for_unknown_request(self, client):
        resp = client.post("/qc/nde/reports", json={"request_id": "missing", "inspector": "x", "results": "Accept"})
        assert resp.status_code == 404


class TestRecordsApi:
    def test_notification_rows(self, client):
        user = "records-user"
        client.post(
            "/db/notifications",
            json={"title": "Row", "message": "m", "type": "system", "user_id": user},
        )

        unread = client.get("/db/notifications/unread", headers={"X-User-Id": user}).json()
        marked = client.post("/db/notifications/read-all", headers={"X-User-Id": user}).json()

        assert [n["title"] for n in unread] == ["Row"]
        assert marked["updated"] == 1
        assert client.get("/db/notifications/unread", headers={"X-User-Id": user}).json() == []

    def test_created_by_defaults_to_user(self, client):
        created = client.post("/db/deficiencies", json={"description": "Gap", "severity": "low", "location": "L1"})
        assert created.status_code == 201
        assert created.json()["created_by"] == "alice"


class TestEventFeed:
    def test_changes_are_pushed(self, client):
        with client.websocket_connect("/ws/events?user_id=alice") as ws:
            assert ws.receive_json() == {"event": "connected", "data": {"user_id": "alice"}}

            client.post("/notifications", json={"title": "Ping", "message": "m"})

            events = {ws.receive_json()["event"], ws.receive_json()["event"]}
            assert events == {"notifications.notifications", "notifications.unread_count"}

    def test_anonymous_socket_rejected(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/ws/events") as ws:
                ws.receive_json()

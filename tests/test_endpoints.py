from __future__ import annotations

import base64
import re

import pytest

from endpoints import dependencies
from errors import DeliveryError, DeliveryFailure, NotConfiguredError, TransportError
from persistence.document_store import DocumentStore
from persistence.interfaces import TransportFailure
from persistence.repositories import AsyncDocumentStore

GALLERY = {"title": "Picnic", "description": "Summer picnic", "date": "2025-02-01", "location": "Riverbank"}
CONTENT = {
    "clubDescription": "Test club",
    "committee": {"title": "Committee", "members": [{"position": "Chairperson", "name": "Lynn"}]},
    "walkingStats": {"yearsActive": "24", "members": "50+", "walksPerWeek": "2"},
}
SCHEDULE = {"sundaySummer": "09:00", "sundayWinter": "09:30", "tuesday": "10:00"}
CONTACT = {"name": "Jo", "email": "jo@example.com", "subject": "Hello", "message": "Line one\nLine two"}


class DownTransport:
    def get(self, key):
        return TransportFailure(status=503, body="Service Unavailable")

    def set(self, key, raw):
        raise TransportError(f"KV SET {key} failed: 503", status=503, body="Service Unavailable")


@pytest.fixture
def down_api(api_client, clock):
    store = AsyncDocumentStore(DocumentStore(DownTransport(), clock=clock))
    api_client.app.dependency_overrides[dependencies.get_document_store] = lambda: store
    api_client.app.dependency_overrides[dependencies.get_optional_document_store] = lambda: store
    api_client.app.dependency_overrides[dependencies.get_document_store_factory] = lambda: (lambda: store.sync)
    return api_client


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/events", {"recurringEvents": [], "specialEvents": []}),
        ("/galleries", []),
        ("/links", {"links": []}),
        ("/news", {"newsItems": []}),
    ],
)
def test_defaults_before_any_write(api_client, path, expected):
    r = api_client.get(path)
    assert r.status_code == 200
    assert r.json() == expected


def test_default_content_and_email_config(api_client):
    content = api_client.get("/content").json()
    assert content["walkingStats"] == {"yearsActive": "24", "members": "50+", "walksPerWeek": "2"}
    assert content["committee"]["title"] == "Our Committee 2025/26"
    assert content["clubDescription"]
    assert "walkingSchedule" not in content

    config = api_client.get("/email-config").json()
    assert config["inquiryEmail"] == "admin@walk4health.co.nz"
    assert config["subjectPrefix"] == "[Walk4Health]"


# -------------------------------------------------------------------
# Documents
# -------------------------------------------------------------------
def test_content_save_and_read(api_client):
    r = api_client.post("/content", json=CONTENT)
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Content saved successfully"}

    got = api_client.get("/content").json()
    assert got["clubDescription"] == "Test club"
    assert got["committee"] == CONTENT["committee"]
    assert got["walkingStats"] == CONTENT["walkingStats"]
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", got["lastUpdated"])


def test_content_validation_errors(api_client):
    r = api_client.post("/content", json={"committee": CONTENT["committee"], "walkingStats": CONTENT["walkingStats"]})
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "validation_error"
    assert body["message"].startswith("Missing required fields")
    assert body["fields"] == ["clubDescription"]


def test_content_flat_schedule_write_is_rejected(api_client):
    api_client.post("/content", json=CONTENT)

    r = api_client.post("/content", json={"clubDescription": "Flat", "walkingSchedule": SCHEDULE})
    assert r.status_code == 400
    assert "walkingSchedule" in r.json()["message"]

    got = api_client.get("/content").json()
    assert got["clubDescription"] == "Test club"
    assert "walkingSchedule" not in got


def test_non_object_body_is_rejected(api_client):
    r = api_client.post("/content", json=["not", "an", "object"])
    assert r.status_code == 400
    assert r.json()["error"] == "validation_error"

    r = api_client.post("/events", content=b"{broken", headers={"Content-Type": "application/json"})
    assert r.status_code == 400


def test_events_save_and_format_check(api_client):
    r = api_client.post("/events", json={"recurringEvents": {}, "specialEvents": []})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid data format"

    doc = {
        "recurringEvents": [{"id": 1, "title": "Tuesday walk", "day": "Tuesday", "time": "10:00"}],
        "specialEvents": [{"id": 2, "title": "AGM", "date": "2025-03-01", "time": "14:00", "message": "Hall"}],
    }
    r = api_client.post("/events", json=doc)
    assert r.json() == {"success": True, "message": "Events saved successfully"}
    got = api_client.get("/events").json()
    assert got["recurringEvents"] == doc["recurringEvents"]
    assert got["specialEvents"] == doc["specialEvents"]


def test_links_and_news(api_client):
    assert api_client.post("/links", json={}).json()["message"] == "Missing required field: links array"
    assert api_client.post("/news", json={"newsItems": "x"}).status_code == 400

    links = [{"id": 1, "title": "Council", "url": "https://huttcity.govt.nz"}]
    assert api_client.post("/links", json={"links": links}).json()["message"] == "Links saved successfully"
    assert api_client.get("/links").json() == {"links": links}

    news = [{"id": "n1", "title": "Welcome", "date": "2025-01-05", "content": "Hello walkers"}]
    assert api_client.post("/news", json={"newsItems": news}).json()["message"] == "News saved successfully"
    assert api_client.get("/news").json() == {"newsItems": news}


def test_email_config(api_client):
    r = api_client.post("/email-config", json={"subjectPrefix": "[X]"})
    assert r.status_code == 400
    assert r.json()["message"] == "Missing required field: inquiryEmail"

    r = api_client.post("/email-config", json={"inquiryEmail": "committee@example.com"})
    assert r.json() == {"success": True, "message": "Email config saved successfully"}
    got = api_client.get("/email-config").json()
    assert got["inquiryEmail"] == "committee@example.com"
    assert got["subjectPrefix"] == "[Walk4Health]"


# -------------------------------------------------------------------
# Galleries
# -------------------------------------------------------------------
def test_gallery_crud(api_client):
    r = api_client.post("/galleries", json={**GALLERY, "id": "mine"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Gallery created successfully"
    gallery = body["gallery"]
    assert re.fullmatch(r"gallery-\d+", gallery["id"])
    assert gallery["images"] == []

    r = api_client.put("/galleries", params={"galleryId": gallery["id"]}, json={"images": ["https://blob/1.jpg"]})
    assert r.json() == {"success": True, "message": "Gallery updated successfully"}
    (stored,) = api_client.get("/galleries").json()
    assert stored["images"] == ["https://blob/1.jpg"]
    assert stored["title"] == "Picnic"

    r = api_client.delete("/galleries", params={"galleryId": gallery["id"]})
    assert r.json() == {"success": True, "message": "Gallery deleted successfully"}
    assert api_client.get("/galleries").json() == []


def test_gallery_errors(api_client):
    r = api_client.post("/galleries", json={"title": "only"})
    assert r.status_code == 400
    assert set(r.json()["fields"]) == {"description", "date", "location"}

    r = api_client.put("/galleries", json={"title": "x"})
    assert r.status_code == 400
    assert r.json()["message"] == "Missing gallery ID"

    r = api_client.delete("/galleries")
    assert r.status_code == 400

    r = api_client.put("/galleries", params={"galleryId": "gallery-404"}, json={"title": "x"})
    assert r.status_code == 404
    assert r.json() == {"error": "not_found", "message": "Gallery not found"}


def test_gallery_delete_of_unknown_id_succeeds(api_client):
    api_client.post("/galleries", json=GALLERY)
    r = api_client.delete("/galleries", params={"galleryId": "gallery-404"})
    assert r.status_code == 200
    assert len(api_client.get("/galleries").json()) == 1


# -------------------------------------------------------------------
# Contact / upload
# -------------------------------------------------------------------
def test_contact_submission(api_client, email_client):
    api_client.post("/email-config", json={"inquiryEmail": "committee@example.com", "subjectPrefix": "[W4H]"})

    r = api_client.post("/contact", json=CONTACT)
    assert r.status_code == 200
    assert r.json() == {
        "success": True,
        "message": "Contact form submitted successfully. We will get back to you soon!",
    }

    (sent,) = email_client.sent
    assert sent.to == ["committee@example.com"]
    assert sent.subject == "[W4H] Hello"
    assert "Line one<br>Line two" in sent.html


def test_contact_missing_fields(api_client, email_client):
    r = api_client.post("/contact", json={"name": "Jo", "email": "", "subject": "Hi"})
    assert r.status_code == 400
    assert r.json() == {
        "error": "validation_error",
        "message": "Missing required fields",
        "fields": ["email", "message"],
    }
    assert email_client.sent == []


def test_contact_delivery_failure_is_reported(api_client, make_email_client):
    failing = make_email_client(
        error=DeliveryError(DeliveryFailure.SENDER_DOMAIN_UNVERIFIED, status=403, body="domain is not verified")
    )
    api_client.app.dependency_overrides[dependencies.get_email_client_factory] = lambda: (lambda: failing)

    r = api_client.post("/contact", json=CONTACT)
    assert r.status_code == 500
    body = r.json()
    assert body == {
        "error": "delivery_error",
        "message": DeliveryFailure.SENDER_DOMAIN_UNVERIFIED.user_message,
        "reason": "sender_domain_unverified",
    }


def test_contact_without_email_service(api_client):
    def factory():
        raise NotConfiguredError("Email service", "Email API key not configured")

    api_client.app.dependency_overrides[dependencies.get_email_client_factory] = lambda: factory
    r = api_client.post("/contact", json=CONTACT)
    assert r.status_code == 500
    assert r.json() == {"error": "not_configured", "message": "Service not configured"}


def test_upload_image(api_client, sandbox_env):
    image = "data:image/png;base64," + base64.b64encode(b"\x89PNG-bytes").decode("ascii")
    r = api_client.post("/upload-image", json={"image": image, "filename": "walk.png"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert re.fullmatch(r"\d+-walk\.png", body["filename"])
    assert body["size"] == len(b"\x89PNG-bytes")
    assert (sandbox_env / "uploads" / body["filename"]).read_bytes() == b"\x89PNG-bytes"


def test_upload_image_errors(api_client):
    r = api_client.post("/upload-image", json={"filename": "walk.png"})
    assert r.status_code == 400
    assert r.json()["message"] == "Missing image or filename"

    r = api_client.post("/upload-image", json={"image": "not-a-data-url", "filename": "walk.png"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid image format"


# -------------------------------------------------------------------
# Store outages
# -------------------------------------------------------------------
def test_reads_degrade_to_defaults_when_store_is_down(down_api):
    r = down_api.get("/events")
    assert r.status_code == 200
    assert r.json() == {"recurringEvents": [], "specialEvents": []}


def test_writes_fail_when_store_is_down(down_api):
    r = down_api.post("/events", json={"recurringEvents": [], "specialEvents": []})
    assert r.status_code == 500
    assert r.json() == {"error": "transport_error", "message": "Storage request failed"}

    r = down_api.post("/galleries", json=GALLERY)
    assert r.status_code == 500
    assert "Service Unavailable" not in r.text


# -------------------------------------------------------------------
# Diagnostics
# -------------------------------------------------------------------
def test_email_diagnostics(api_client, make_email_client):
    client = make_email_client(domains=[{"name": "walk4health.co.nz"}])
    api_client.app.dependency_overrides[dependencies.get_email_client_factory] = lambda: (lambda: client)

    body = api_client.get("/test-email").json()
    assert body["redis"] == "CONNECTED - No email config"
    assert body["resend"] == "CONFIGURED - 1 domains found"
    assert body["emailConfig"] is None
    assert "Set up email configuration in admin panel" in body["recommendations"]
    assert body["environment"]["RESEND_API_KEY"] == "NOT SET"

    api_client.post("/email-config", json={"inquiryEmail": "committee@example.com"})
    body = api_client.get("/test-email").json()
    assert body["redis"] == "CONNECTED - Email config found"
    assert body["emailConfig"]["inquiryEmail"] == "committee@example.com"


def test_email_diagnostics_when_unconfigured(api_client):
    def factory():
        raise NotConfiguredError("Email service")

    api_client.app.dependency_overrides[dependencies.get_email_client_factory] = lambda: factory
    api_client.app.dependency_overrides[dependencies.get_optional_document_store] = lambda: None

    body = api_client.get("/test-email").json()
    assert body["redis"] == "NOT CONFIGURED"
    assert body["resend"] == "NOT CONFIGURED"
    assert "Configure Redis/KV environment variables" in body["recommendations"]
    assert "Set RESEND_API_KEY environment variable" in body["recommendations"]


def test_email_diagnostics_reports_failures(down_api, make_email_client):
    client = make_email_client(error=DeliveryError(DeliveryFailure.CREDENTIALS_INVALID, status=401))
    down_api.app.dependency_overrides[dependencies.get_email_client_factory] = lambda: (lambda: client)

    body = down_api.get("/test-email").json()
    assert body["redis"] == "UNAVAILABLE - Failed to get config (503)"
    assert body["resend"] == "CONFIGURED - API test failed (401)"
    assert "Check email API key validity" in body["recommendations"]

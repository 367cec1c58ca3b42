from datetime import date, datetime, timedelta

import pytest

from backoffice.domain.calendar_sync.router import get_calendar_factory
from backoffice.main import app
from backoffice.models import Job
from backoffice.models_google_calendar import CalendarSync
from backoffice.models_invoice import Invoice
from fakes import FakeCalendar, api_error, calendar_factory


@pytest.fixture
def calendar(client) -> FakeCalendar:
    """Connected calendar for the API under test"""
    fake = FakeCalendar()
    app.dependency_overrides[get_calendar_factory] = lambda: calendar_factory(fake)
    return fake


@pytest.fixture
def job_payload(customer) -> dict:
    return {
        "clientId": customer.id,
        "title": "Limpieza escalera",
        "serviceType": "deep_cleaning",
        "startAt": "2026-11-02T09:00:00Z",
        "endAt": "2026-11-02T11:30:00Z",
        "agreedPrice": "120.00",
    }


def sync_record(db, job_id):
    db.expire_all()
    return db.query(CalendarSync).filter(CalendarSync.job_id == job_id).first()


class TestCreateJob:
    def test_without_calendar_connection(self, client, auth_headers, job_payload, db):
        response = client.post("/jobs", json=job_payload, headers=auth_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["warning"] is None
        assert body["job"]["startAt"] == "2026-11-02T09:00:00"
        assert body["job"]["status"] == "pending"
        assert sync_record(db, body["job"]["id"]) is None

    def test_pushes_event_with_job_marker(self, client, auth_headers, job_payload, calendar, db):
        job = client.post("/jobs", json=job_payload, headers=auth_headers).json()["job"]

        record = sync_record(db, job["id"])
        assert record.sync_status == "synced"
        event = calendar.events[record.google_event_id]
        assert event["summary"] == "Limpieza escalera"
        assert event["start"]["dateTime"] == "2026-11-02T09:00:00Z"
        assert event["end"]["dateTime"] == "2026-11-02T11:30:00Z"
        assert event["location"] == "Calle Mayor 1"
        assert event["colorId"] == "11"
        assert event["extendedProperties"]["private"]["appJobId"] == str(job["id"])

    def test_push_failure_is_a_warning(self, client, auth_headers, job_payload, calendar, db):
        calendar.failures["insert"] = api_error(503)

        response = client.post("/jobs", json=job_payload, headers=auth_headers)
        assert response.status_code == 201
        body = response.json()
        assert "calendar sync failed" in body["warning"]
        assert db.get(Job, body["job"]["id"]) is not None
        record = sync_record(db, body["job"]["id"])
        assert record.sync_status == "error"
        assert record.google_event_id is None
        assert "503" in record.error_message

    def test_end_before_start(self, client, auth_headers, job_payload):
        job_payload["endAt"] = "2026-11-02T08:00:00Z"
        assert client.post("/jobs", json=job_payload, headers=auth_headers).status_code == 422

    def test_unknown_service_type(self, client, auth_headers, job_payload):
        job_payload["serviceType"] = "pool_cleaning"
        assert client.post("/jobs", json=job_payload, headers=auth_headers).status_code == 422

    def test_timezone_offsets_are_stored_as_utc(self, client, auth_headers, job_payload):
        job_payload["startAt"] = "2026-11-02T10:00:00+01:00"
        job_payload["endAt"] = "2026-11-02T12:00:00+01:00"
        job = client.post("/jobs", json=job_payload, headers=auth_headers).json()["job"]
        assert job["startAt"] == "2026-11-02T09:00:00"


class TestUpdateJob:
    def test_updates_existing_event(self, client, auth_headers, job_payload, calendar, db):
        job = client.post("/jobs", json=job_payload, headers=auth_headers).json()["job"]
        event_id = sync_record(db, job["id"]).google_event_id

        response = client.put(f"/jobs/{job['id']}", json={"title": "Limpieza a fondo"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["warning"] is None
        assert ("update", event_id) in calendar.calls
        assert calendar.events[event_id]["summary"] == "Limpieza a fondo"

    def test_recreates_event_deleted_in_calendar(self, client, auth_headers, job_payload, calendar, db):
        job = client.post("/jobs", json=job_payload, headers=auth_headers).json()["job"]
        old_event_id = sync_record(db, job["id"]).google_event_id
        del calendar.events[old_event_id]

        client.put(f"/jobs/{job['id']}", json={"address": "Calle Luna 3"}, headers=auth_headers)

        record = sync_record(db, job["id"])
        assert record.sync_status == "synced"
        assert record.google_event_id != old_event_id
        assert calendar.events[record.google_event_id]["location"] == "Calle Luna 3"

    def test_rejects_inverted_range(self, client, auth_headers, job_payload):
        job = client.post("/jobs", json=job_payload, headers=auth_headers).json()["job"]
        response = client.put(f"/jobs/{job['id']}", json={"endAt": "2026-11-01T09:00:00Z"}, headers=auth_headers)
        assert response.status_code == 400


class TestDeleteJob:
    def test_removes_event_and_sync_record(self, client, auth_headers, job_payload, calendar, db):
        job = client.post("/jobs", json=job_payload, headers=auth_headers).json()["job"]
        event_id = sync_record(db, job["id"]).google_event_id

        response = client.delete(f"/jobs/{job['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["warning"] is None
        assert event_id not in calendar.events
        assert sync_record(db, job["id"]) is None
        assert db.get(Job, job["id"]) is None

    def test_calendar_failure_still_deletes_job(self, client, auth_headers, job_payload, calendar, db):
        job = client.post("/jobs", json=job_payload, headers=auth_headers).json()["job"]
        calendar.failures["delete"] = api_error(500)

        response = client.delete(f"/jobs/{job['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["warning"]
        assert db.get(Job, job["id"]) is None


class TestCompleteJob:
    """Completing a job bills it"""

    def test_creates_invoice_and_links_job(self, client, auth_headers, make_job, db):
        job = make_job(title="Limpieza portal")

        response = client.post(f"/jobs/{job.id}/complete", headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["invoiceNumber"] == "F-001"

        invoice = db.get(Invoice, body["invoiceId"])
        assert invoice.status == "draft"
        assert str(invoice.total) == "96.80"
        assert invoice.notes == "Trabajo completado: Limpieza portal"
        assert invoice.due_date == date.today() + timedelta(days=30)
        assert [line.concept for line in invoice.lines] == ["Limpieza portal"]

        db.refresh(job)
        assert job.status == "completed"
        assert job.invoice_id == invoice.id

    def test_completing_twice_is_refused(self, client, auth_headers, make_job, db):
        job = make_job()
        client.post(f"/jobs/{job.id}/complete", headers=auth_headers)

        response = client.post(f"/jobs/{job.id}/complete", headers=auth_headers)
        assert response.status_code == 409
        assert db.query(Invoice).count() == 1

    def test_job_without_price(self, client, auth_headers, make_job, db):
        job = make_job(agreed_price=None)
        body = client.post(f"/jobs/{job.id}/complete", headers=auth_headers).json()
        assert str(db.get(Invoice, body["invoiceId"]).total) == "0.00"

    def test_completion_is_pushed(self, client, auth_headers, make_job, calendar, db):
        job = make_job()
        client.post(f"/jobs/{job.id}/complete", headers=auth_headers)

        record = sync_record(db, job.id)
        assert calendar.events[record.google_event_id]["extendedProperties"]["private"]["status"] == "completed"


class TestRecurrences:
    def test_weekly_copies(self, client, auth_headers, make_job, db):
        base = make_job(days=2)

        response = client.post(
            f"/jobs/{base.id}/recurrences", json={"occurrences": 3, "pattern": "weekly"}, headers=auth_headers
        )
        assert response.status_code == 201
        results = response.json()
        assert len(results) == 3
        assert all(not r["synced"] and r["error"] is None for r in results)

        copies = db.query(Job).filter(Job.parent_job_id == base.id).order_by(Job.start_at).all()
        assert [c.start_at - base.start_at for c in copies] == [timedelta(days=d) for d in (7, 14, 21)]
        assert all(c.end_at - c.start_at == timedelta(hours=2) for c in copies)
        assert all(c.is_recurring and c.recurrence_pattern == "weekly" for c in copies)
        assert all(c.status == "pending" for c in copies)

        db.refresh(base)
        assert base.is_recurring is False

    def test_monthly_uses_thirty_days(self, client, auth_headers, make_job, db):
        base = make_job()
        client.post(f"/jobs/{base.id}/recurrences", json={"occurrences": 2, "pattern": "monthly"}, headers=auth_headers)
        starts = sorted(j.start_at for j in db.query(Job).filter(Job.parent_job_id == base.id))
        assert starts == [base.start_at + timedelta(days=30), base.start_at + timedelta(days=60)]

    def test_each_occurrence_is_pushed(self, client, auth_headers, make_job, calendar):
        base = make_job()
        results = client.post(
            f"/jobs/{base.id}/recurrences", json={"occurrences": 2, "pattern": "biweekly"}, headers=auth_headers
        ).json()
        assert all(r["synced"] for r in results)
        assert len(calendar.events) == 2

    def test_push_failures_are_reported_per_occurrence(self, client, auth_headers, make_job, calendar, db):
        base = make_job()
        calendar.failures["insert"] = api_error(500)
        results = client.post(
            f"/jobs/{base.id}/recurrences", json={"occurrences": 2, "pattern": "weekly"}, headers=auth_headers
        ).json()
        assert all(not r["synced"] and r["error"] for r in results)
        assert db.query(Job).filter(Job.parent_job_id == base.id).count() == 2

    @pytest.mark.parametrize("payload", [{"occurrences": 0, "pattern": "weekly"}, {"occurrences": 53, "pattern": "weekly"}, {"occurrences": 2, "pattern": "daily"}])
    def test_invalid_requests(self, client, auth_headers, make_job, payload):
        base = make_job()
        assert client.post(f"/jobs/{base.id}/recurrences", json=payload, headers=auth_headers).status_code == 422


class TestListJobs:
    def test_range_overlap(self, client, auth_headers, make_job):
        make_job(days=1, title="Mañana")
        make_job(days=10, title="Más tarde")
        date_from = datetime.utcnow().isoformat()
        date_to = (datetime.utcnow() + timedelta(days=5)).isoformat()

        jobs = client.get("/jobs", params={"date_from": date_from, "date_to": date_to}, headers=auth_headers).json()
        assert [j["title"] for j in jobs] == ["Mañana"]

from datetime import datetime

from backoffice.domain.calendar_sync.event_mapping import (
    JOB_MARKER_KEY,
    fields_from_event,
    fields_from_job,
    job_id_from_event,
    job_to_event,
)
from backoffice.models import Client, Job


def build_job(**overrides) -> Job:
    client = Client(id=7, name="Oficinas Centro", address="Gran Vía 10")
    values = {
        "id": 42,
        "client_id": 7,
        "title": "  Limpieza oficinas ",
        "description": "Planta 2",
        "service_type": "office_cleaning",
        "status": "pending",
        "start_at": datetime(2026, 11, 2, 8, 0, 0, 500),
        "end_at": datetime(2026, 11, 2, 10, 0),
    }
    values.update(overrides)
    job = Job(**values)
    job.client = client
    return job


class TestJobToEvent:
    def test_event_body(self):
        event = job_to_event(build_job())
        assert event["summary"] == "Limpieza oficinas"
        assert event["description"] == "Planta 2"
        assert event["start"] == {"dateTime": "2026-11-02T08:00:00Z", "timeZone": "Europe/Madrid"}
        assert event["end"]["dateTime"] == "2026-11-02T10:00:00Z"
        assert event["colorId"] == "10"
        assert event["location"] == "Gran Vía 10"
        assert event["extendedProperties"]["private"] == {
            JOB_MARKER_KEY: "42",
            "clientId": "7",
            "clientName": "Oficinas Centro",
            "serviceType": "office_cleaning",
            "status": "pending",
        }

    def test_job_address_overrides_client_address(self):
        assert job_to_event(build_job(address="Calle Sol 5"))["location"] == "Calle Sol 5"

    def test_no_location(self):
        job = build_job()
        job.client.address = None
        assert "location" not in job_to_event(job)


class TestEventFields:
    def test_round_trip_through_event(self):
        job = build_job()
        assert fields_from_event({"id": "x", **job_to_event(job)}) == fields_from_job(job)

    def test_all_day_event(self):
        assert fields_from_event({"start": {"date": "2026-11-02"}, "end": {"date": "2026-11-03"}}) is None

    def test_offsets_are_normalised(self):
        fields = fields_from_event(
            {
                "summary": "Visita",
                "start": {"dateTime": "2026-11-02T09:00:00+01:00"},
                "end": {"dateTime": "2026-11-02T10:00:00+01:00"},
            }
        )
        assert fields.start_at == datetime(2026, 11, 2, 8, 0)
        assert fields.description is None


class TestJobMarker:
    def test_reads_marker(self):
        assert job_id_from_event({"extendedProperties": {"private": {JOB_MARKER_KEY: "12"}}}) == 12

    def test_missing_or_invalid_marker(self):
        assert job_id_from_event({}) is None
        assert job_id_from_event({"extendedProperties": {"shared": {JOB_MARKER_KEY: "12"}}}) is None
        assert job_id_from_event({"extendedProperties": {"private": {JOB_MARKER_KEY: "abc"}}}) is None

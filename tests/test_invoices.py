import io
import zipfile

import pytest

from backoffice.models import Job
from backoffice.models_invoice import Quote


@pytest.fixture
def invoice_payload(customer) -> dict:
    return {
        "clientId": customer.id,
        "issueDate": "2026-03-10",
        "dueDate": "2026-04-09",
        "lines": [{"concept": "Limpieza oficina", "quantity": "4", "unitPrice": "25"}],
    }


def create_invoice(client, headers, payload) -> dict:
    response = client.post("/invoices", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateInvoice:
    def test_creates_draft_with_totals(self, client, auth_headers, invoice_payload):
        invoice = create_invoice(client, auth_headers, invoice_payload)
        assert invoice["number"] == "F-001"
        assert invoice["status"] == "draft"
        assert invoice["subtotal"] == "100.00"
        assert invoice["taxAmount"] == "21.00"
        assert invoice["total"] == "121.00"

    def test_due_date_before_issue(self, client, auth_headers, invoice_payload):
        invoice_payload["dueDate"] = "2026-03-01"
        assert client.post("/invoices", json=invoice_payload, headers=auth_headers).status_code == 422

    def test_unknown_status(self, client, auth_headers, invoice_payload):
        invoice_payload["status"] = "cancelled"
        assert client.post("/invoices", json=invoice_payload, headers=auth_headers).status_code == 422

    def test_invoice_and_quote_sequences_are_independent(self, client, auth_headers, invoice_payload, quote_payload):
        client.post("/quotes", json=quote_payload, headers=auth_headers)
        client.post("/quotes", json=quote_payload, headers=auth_headers)
        assert create_invoice(client, auth_headers, invoice_payload)["number"] == "F-001"


class TestInvoiceStatus:
    """Invoice status is free-form among draft, sent and paid"""

    @pytest.mark.parametrize("path", [["sent", "paid"], ["paid", "draft"], ["sent", "draft", "paid"]])
    def test_any_transition(self, client, auth_headers, invoice_payload, path):
        invoice = create_invoice(client, auth_headers, invoice_payload)
        for status in path:
            response = client.patch(f"/invoices/{invoice['id']}/status", json={"status": status}, headers=auth_headers)
            assert response.status_code == 200
            assert response.json()["status"] == status

    def test_invalid_status(self, client, auth_headers, invoice_payload):
        invoice = create_invoice(client, auth_headers, invoice_payload)
        response = client.patch(f"/invoices/{invoice['id']}/status", json={"status": "void"}, headers=auth_headers)
        assert response.status_code == 422


class TestUpdateInvoice:
    def test_lines_recompute_totals(self, client, auth_headers, invoice_payload):
        invoice = create_invoice(client, auth_headers, invoice_payload)
        response = client.put(
            f"/invoices/{invoice['id']}",
            json={
                "notes": "Pago por transferencia",
                "lines": [
                    {"concept": "Limpieza", "quantity": "1", "unitPrice": "10.05"},
                    {"concept": "Material", "quantity": "2", "unitPrice": "5"},
                ],
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        updated = response.json()
        assert updated["subtotal"] == "20.05"
        assert updated["taxAmount"] == "4.21"
        assert updated["total"] == "24.26"
        assert updated["notes"] == "Pago por transferencia"

    def test_due_date_must_follow_issue_date(self, client, auth_headers, invoice_payload):
        invoice = create_invoice(client, auth_headers, invoice_payload)
        response = client.put(f"/invoices/{invoice['id']}", json={"dueDate": "2026-01-01"}, headers=auth_headers)
        assert response.status_code == 400


class TestDeleteInvoice:
    def test_unlinks_quote_and_job(self, client, auth_headers, quote_payload, db, make_job):
        quote = client.post("/quotes", json=quote_payload, headers=auth_headers).json()
        invoice = client.post(f"/quotes/{quote['id']}/convert", headers=auth_headers).json()["invoice"]
        job = make_job(invoice_id=invoice["id"], status="completed")

        assert client.delete(f"/invoices/{invoice['id']}", headers=auth_headers).status_code == 200

        stored_quote = db.get(Quote, quote["id"])
        db.refresh(stored_quote)
        assert stored_quote.invoice_id is None
        db.refresh(job)
        assert db.get(Job, job.id).invoice_id is None
        assert client.get(f"/invoices/{invoice['id']}", headers=auth_headers).status_code == 404


class TestInvoicePdf:
    def test_single_pdf(self, client, auth_headers, invoice_payload):
        invoice = create_invoice(client, auth_headers, invoice_payload)
        response = client.get(f"/invoices/{invoice['id']}/pdf", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_zip_export(self, client, auth_headers, invoice_payload):
        first = create_invoice(client, auth_headers, invoice_payload)
        second = create_invoice(client, auth_headers, invoice_payload)

        response = client.post("/invoices/export", json={"ids": [first["id"], second["id"]]}, headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
            assert sorted(archive.namelist()) == ["factura-F-001.pdf", "factura-F-002.pdf"]

    def test_export_unknown_ids(self, client, auth_headers, invoice_payload):
        invoice = create_invoice(client, auth_headers, invoice_payload)
        response = client.post("/invoices/export", json={"ids": [invoice["id"], 999]}, headers=auth_headers)
        assert response.status_code == 404

from decimal import Decimal

import pytest

from backoffice.auth import create_access_token
from backoffice.domain.documents.lines import LineDraft, validate_lines
from backoffice.domain.quotes.schemas import QuoteCreate
from backoffice.domain.quotes.service import QuoteService
from backoffice.models_invoice import Invoice, Quote, QuoteLine
from backoffice.shared.errors import ErrorCode, ValidationFailed


def create_quote(client, headers, payload) -> dict:
    response = client.post("/quotes", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateQuote:
    """Numbering, totals and defaults"""

    def test_creates_numbered_quote_with_totals(self, client, auth_headers, quote_payload):
        quote = create_quote(client, auth_headers, quote_payload)

        assert quote["number"] == "P-001"
        assert quote["status"] == "pending"
        assert quote["subtotal"] == "121.00"
        assert quote["taxAmount"] == "25.41"
        assert quote["total"] == "146.41"
        assert quote["validUntil"] == "2026-04-09"
        assert [line["concept"] for line in quote["lines"]] == ["Limpieza general", "Cristales"]
        assert quote["lines"][0]["lineTotal"] == "91.00"

    def test_numbers_are_sequential_and_never_reused(self, client, auth_headers, quote_payload):
        first = create_quote(client, auth_headers, quote_payload)
        assert client.delete(f"/quotes/{first['id']}", headers=auth_headers).status_code == 200

        second = create_quote(client, auth_headers, quote_payload)
        assert second["number"] == "P-002"

    def test_unknown_client(self, client, auth_headers, quote_payload):
        quote_payload["clientId"] = 9999
        response = client.post("/quotes", json=quote_payload, headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Client not found"

    def test_requires_lines(self, client, auth_headers, quote_payload):
        quote_payload["lines"] = []
        response = client.post("/quotes", json=quote_payload, headers=auth_headers)
        assert response.status_code == 422
        assert "errors" in response.json()

    def test_rejects_non_positive_price(self, client, auth_headers, quote_payload):
        quote_payload["lines"][0]["unitPrice"] = "0"
        assert client.post("/quotes", json=quote_payload, headers=auth_headers).status_code == 422

    def test_rejects_validity_before_issue(self, client, auth_headers, quote_payload):
        quote_payload["validUntil"] = "2026-03-01"
        assert client.post("/quotes", json=quote_payload, headers=auth_headers).status_code == 422

    def test_requires_authentication(self, client, quote_payload):
        assert client.post("/quotes", json=quote_payload).status_code == 401

    def test_fractional_quantity(self, client, auth_headers, quote_payload):
        quote_payload["lines"] = [{"concept": "Horas extra", "quantity": "1.5", "unitPrice": "10.00"}]
        line = create_quote(client, auth_headers, quote_payload)["lines"][0]
        assert (line["quantity"], line["unitPrice"], line["lineTotal"]) == ("1.50", "10.00", "15.00")

    @pytest.mark.parametrize("quantity", ["0.125", "0.001"])
    def test_rejects_quantity_below_cents(self, client, auth_headers, quote_payload, db, quantity):
        quote_payload["lines"][0]["quantity"] = quantity
        assert client.post("/quotes", json=quote_payload, headers=auth_headers).status_code == 422
        assert db.query(Quote).count() == 0

    def test_line_validation_checks_precision(self):
        with pytest.raises(ValidationFailed):
            validate_lines([LineDraft("Horas", Decimal("0.125"), Decimal("10"))])
        with pytest.raises(ValidationFailed):
            validate_lines([LineDraft("Horas", Decimal("1"), Decimal("9.999"))])

    def test_failed_line_insert_leaves_no_quote(self, db, user, customer, monkeypatch):
        service = QuoteService(db)

        def broken_add_lines(*args, **kwargs):
            raise RuntimeError("insert failed")

        monkeypatch.setattr(service.repo, "add_lines", broken_add_lines)
        result = service.create_quote(
            QuoteCreate(clientId=customer.id, lines=[{"concept": "Limpieza", "quantity": "1", "unitPrice": "100"}]),
            user,
        )

        assert not result.success
        assert result.code == ErrorCode.INTERNAL
        assert db.query(Quote).count() == 0
        assert db.query(QuoteLine).count() == 0


class TestQuoteQueries:
    def test_list_filters_by_status(self, client, auth_headers, quote_payload):
        first = create_quote(client, auth_headers, quote_payload)
        create_quote(client, auth_headers, quote_payload)
        client.patch(f"/quotes/{first['id']}/status", json={"status": "rejected"}, headers=auth_headers)

        pending = client.get("/quotes", params={"status": "pending"}, headers=auth_headers).json()
        assert [q["number"] for q in pending] == ["P-002"]

    def test_newest_first(self, client, auth_headers, quote_payload):
        create_quote(client, auth_headers, quote_payload)
        quote_payload["issueDate"] = "2026-05-02"
        create_quote(client, auth_headers, quote_payload)

        quotes = client.get("/quotes", headers=auth_headers).json()
        assert [q["number"] for q in quotes] == ["P-002", "P-001"]

    def test_months(self, client, auth_headers, quote_payload):
        create_quote(client, auth_headers, quote_payload)
        quote_payload["issueDate"] = "2026-05-02"
        create_quote(client, auth_headers, quote_payload)
        assert client.get("/quotes/months", headers=auth_headers).json() == ["2026-05", "2026-03"]

    def test_other_accounts_cannot_read(self, client, auth_headers, quote_payload, other_user):
        quote = create_quote(client, auth_headers, quote_payload)
        other_headers = {"Authorization": f"Bearer {create_access_token(other_user.auth_uid)}"}
        assert client.get(f"/quotes/{quote['id']}", headers=other_headers).status_code == 404


class TestQuoteLifecycle:
    """Status transitions and edit rules"""

    def test_update_replaces_lines_and_totals(self, client, auth_headers, quote_payload):
        quote = create_quote(client, auth_headers, quote_payload)
        response = client.put(
            f"/quotes/{quote['id']}",
            json={"lines": [{"concept": "Abrillantado", "quantity": "3", "unitPrice": "10"}]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        updated = response.json()
        assert len(updated["lines"]) == 1
        assert updated["subtotal"] == "30.00"
        assert updated["taxAmount"] == "6.30"
        assert updated["total"] == "36.30"
        assert updated["number"] == quote["number"]

    def test_pending_to_rejected(self, client, auth_headers, quote_payload):
        quote = create_quote(client, auth_headers, quote_payload)
        response = client.patch(f"/quotes/{quote['id']}/status", json={"status": "rejected"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"

    def test_rejected_is_final(self, client, auth_headers, quote_payload):
        quote = create_quote(client, auth_headers, quote_payload)
        client.patch(f"/quotes/{quote['id']}/status", json={"status": "rejected"}, headers=auth_headers)
        response = client.patch(f"/quotes/{quote['id']}/status", json={"status": "pending"}, headers=auth_headers)
        assert response.status_code == 403

    def test_expired_can_be_reopened(self, client, auth_headers, quote_payload):
        quote = create_quote(client, auth_headers, quote_payload)
        client.patch(f"/quotes/{quote['id']}/status", json={"status": "expired"}, headers=auth_headers)
        response = client.patch(f"/quotes/{quote['id']}/status", json={"status": "pending"}, headers=auth_headers)
        assert response.status_code == 200

    def test_rejected_quote_can_be_deleted(self, client, auth_headers, quote_payload, db):
        quote = create_quote(client, auth_headers, quote_payload)
        client.patch(f"/quotes/{quote['id']}/status", json={"status": "rejected"}, headers=auth_headers)

        assert client.delete(f"/quotes/{quote['id']}", headers=auth_headers).status_code == 200
        assert db.query(Quote).count() == 0
        assert db.query(QuoteLine).count() == 0

    def test_rejected_quote_cannot_be_edited(self, client, auth_headers, quote_payload):
        quote = create_quote(client, auth_headers, quote_payload)
        client.patch(f"/quotes/{quote['id']}/status", json={"status": "rejected"}, headers=auth_headers)

        response = client.put(f"/quotes/{quote['id']}", json={"notes": "Otra nota"}, headers=auth_headers)
        assert response.status_code == 403

    def test_expired_quote_can_be_edited(self, client, auth_headers, quote_payload):
        quote = create_quote(client, auth_headers, quote_payload)
        client.patch(f"/quotes/{quote['id']}/status", json={"status": "expired"}, headers=auth_headers)

        response = client.put(f"/quotes/{quote['id']}", json={"notes": "Precio revisado"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["notes"] == "Precio revisado"
        assert response.json()["status"] == "expired"

    def test_accepted_only_through_conversion(self, client, auth_headers, quote_payload):
        quote = create_quote(client, auth_headers, quote_payload)
        response = client.patch(f"/quotes/{quote['id']}/status", json={"status": "accepted"}, headers=auth_headers)
        assert response.status_code == 403

    def test_unknown_status(self, client, auth_headers, quote_payload):
        quote = create_quote(client, auth_headers, quote_payload)
        response = client.patch(f"/quotes/{quote['id']}/status", json={"status": "sent"}, headers=auth_headers)
        assert response.status_code == 422


class TestConvertQuote:
    """Quote → invoice"""

    def test_creates_draft_invoice_and_accepts_quote(self, client, auth_headers, quote_payload, db):
        quote = create_quote(client, auth_headers, quote_payload)

        response = client.post(f"/quotes/{quote['id']}/convert", headers=auth_headers)
        assert response.status_code == 201
        body = response.json()
        invoice = body["invoice"]
        assert body["warning"] is None
        assert invoice["number"] == "F-001"
        assert invoice["status"] == "draft"
        assert invoice["clientId"] == quote["clientId"]
        assert (invoice["subtotal"], invoice["taxAmount"], invoice["total"]) == ("121.00", "25.41", "146.41")
        assert invoice["notes"] == "Convertido desde presupuesto P-001\n\nIncluye productos"
        assert [line["concept"] for line in invoice["lines"]] == ["Limpieza general", "Cristales"]

        stored = db.get(Quote, quote["id"])
        db.refresh(stored)
        assert stored.status == "accepted"
        assert stored.invoice_id == invoice["id"]

    def test_converting_twice_is_refused(self, client, auth_headers, quote_payload, db):
        quote = create_quote(client, auth_headers, quote_payload)
        client.post(f"/quotes/{quote['id']}/convert", headers=auth_headers)

        response = client.post(f"/quotes/{quote['id']}/convert", headers=auth_headers)
        assert response.status_code == 409
        assert db.query(Invoice).count() == 1

    def test_rejected_quote_cannot_be_converted(self, client, auth_headers, quote_payload, db):
        quote = create_quote(client, auth_headers, quote_payload)
        client.patch(f"/quotes/{quote['id']}/status", json={"status": "rejected"}, headers=auth_headers)

        response = client.post(f"/quotes/{quote['id']}/convert", headers=auth_headers)
        assert response.status_code == 409
        assert db.query(Invoice).count() == 0

    def test_accepted_quote_is_frozen(self, client, auth_headers, quote_payload):
        quote = create_quote(client, auth_headers, quote_payload)
        client.post(f"/quotes/{quote['id']}/convert", headers=auth_headers)

        assert client.put(f"/quotes/{quote['id']}", json={"notes": "x"}, headers=auth_headers).status_code == 403
        assert client.delete(f"/quotes/{quote['id']}", headers=auth_headers).status_code == 403

    def test_link_failure_keeps_invoice_with_warning(self, db, user, customer):
        service = QuoteService(db)
        quote = service.create_quote(
            QuoteCreate(
                clientId=customer.id,
                lines=[{"concept": "Limpieza", "quantity": "1", "unitPrice": "100"}],
            ),
            user,
        ).data

        def broken_update(*args, **kwargs):
            raise RuntimeError("connection lost")

        service.repo.update_document = broken_update
        result = service.convert_quote_to_invoice(quote.id, user)

        assert result.success
        assert result.warning
        assert result.data.number == "F-001"
        db.refresh(quote)
        assert quote.status == "pending"
        assert db.query(Invoice).count() == 1


class TestDuplicateQuote:
    def test_copies_lines_as_new_pending_quote(self, client, auth_headers, quote_payload):
        original = create_quote(client, auth_headers, quote_payload)
        client.patch(f"/quotes/{original['id']}/status", json={"status": "rejected"}, headers=auth_headers)

        response = client.post(f"/quotes/{original['id']}/duplicate", headers=auth_headers)
        assert response.status_code == 201
        copy = response.json()
        assert copy["number"] == "P-002"
        assert copy["status"] == "pending"
        assert copy["notes"] == "Duplicado de presupuesto P-001"
        assert copy["total"] == original["total"]
        assert [line["concept"] for line in copy["lines"]] == [line["concept"] for line in original["lines"]]

        unchanged = client.get(f"/quotes/{original['id']}", headers=auth_headers).json()
        assert unchanged["status"] == "rejected"

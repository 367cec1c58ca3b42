from backoffice.models import Client


class TestClients:
    def test_create_and_list_by_name(self, client, auth_headers):
        for name in ("Zapatería Luz", "Academia Norte"):
            response = client.post("/clients", json={"name": name, "email": "Info@Example.com"}, headers=auth_headers)
            assert response.status_code == 201
            assert response.json()["email"] == "info@example.com"

        names = [c["name"] for c in client.get("/clients", headers=auth_headers).json()]
        assert names == ["Academia Norte", "Zapatería Luz"]

    def test_validation(self, client, auth_headers):
        assert client.post("/clients", json={"name": "  "}, headers=auth_headers).status_code == 422
        assert client.post("/clients", json={"name": "X", "email": "nope"}, headers=auth_headers).status_code == 422

    def test_update(self, client, auth_headers, customer):
        response = client.put(
            f"/clients/{customer.id}", json={"phone": "600123123", "postalCode": "28002"}, headers=auth_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["phone"] == "600123123"
        assert body["postalCode"] == "28002"
        assert body["name"] == customer.name

    def test_delete(self, client, auth_headers, customer, db):
        assert client.delete(f"/clients/{customer.id}", headers=auth_headers).status_code == 200
        assert db.get(Client, customer.id) is None

    def test_delete_refused_while_invoiced(self, client, auth_headers, customer, quote_payload):
        quote = client.post("/quotes", json=quote_payload, headers=auth_headers).json()
        client.post(f"/quotes/{quote['id']}/convert", headers=auth_headers)

        response = client.delete(f"/clients/{customer.id}", headers=auth_headers)
        assert response.status_code == 403

    def test_not_found(self, client, auth_headers):
        assert client.get("/clients/12345", headers=auth_headers).status_code == 404

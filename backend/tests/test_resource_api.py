"""
Tests for the generic resource HTTP endpoints.
"""

import uuid

from shared.utils.schemas import ErrorResponse
from tests.conftest import company_payload


class TestListEndpoint:
    async def test_envelope(self, client, seed_companies):
        response = await client.get("/companies", params={"sortBy": "name"})
        assert response.status_code == 200
        data = response.json()
        assert data["totalItems"] == 3
        assert [item["name"] for item in data["items"]][0] == "Acme Andina"

    async def test_query_parameters(self, client, seed_companies):
        response = await client.get(
            "/companies",
            params={"page": 0, "pageSize": 1, "search": "Cafe", "sortBy": "Name", "sortDesc": "true"},
        )
        data = response.json()
        assert data["totalItems"] == 1
        assert data["items"][0]["name"] == "Cafe_Norte"

    async def test_unknown_sort_field(self, client):
        response = await client.get("/companies", params={"sortBy": "revenue"})
        assert response.status_code == 400
        assert "revenue" in response.json()["detail"]

    async def test_negative_page(self, client):
        response = await client.get("/companies", params={"page": -1, "pageSize": 10})
        assert response.status_code == 400

    async def test_bad_boolean(self, client):
        response = await client.get("/companies", params={"sortDesc": "maybe"})
        assert response.status_code == 400

    async def test_request_id_header(self, client):
        response = await client.get("/companies", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


class TestFindAndExists:
    async def test_find(self, client, seed_user):
        response = await client.get("/users/find", params={"predicate": 'Nid == "A1"'})
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["items"][0]["first_name"] == "Ana"

    async def test_find_invalid(self, client):
        response = await client.get("/users/find", params={"predicate": "Nid =="})
        assert response.status_code == 400

    async def test_exists(self, client, seed_user):
        response = await client.get("/users/exists", params={"property": "Nid", "value": "A1"})
        assert response.status_code == 200
        assert response.json() is True

        response = await client.get("/users/exists", params={"property": "Nid", "value": "Z9"})
        assert response.json() is False

    async def test_exists_unknown_property(self, client):
        response = await client.get("/users/exists", params={"property": "shoeSize", "value": "42"})
        assert response.status_code == 400


class TestItemEndpoints:
    async def test_create_get_update_delete(self, client, auth_headers, actor_id):
        response = await client.post("/companies", json=company_payload(), headers=auth_headers)
        assert response.status_code == 201
        created = response.json()
        assert response.headers["Location"] == f"/companies/{created['id']}"
        assert created["created_by"] == str(actor_id)

        response = await client.get(f"/companies/{created['id']}")
        assert response.status_code == 200
        item = response.json()

        item["city"] = "Buga"
        response = await client.put(f"/companies/{created['id']}", json=item, headers=auth_headers)
        assert response.status_code == 204

        # The same (now stale) version is rejected
        response = await client.put(f"/companies/{created['id']}", json=item, headers=auth_headers)
        assert response.status_code == 409

        response = await client.delete(f"/companies/{created['id']}", headers=auth_headers)
        assert response.status_code == 204

        response = await client.get(f"/companies/{created['id']}")
        assert response.status_code == 404

    async def test_anonymous_create(self, client):
        response = await client.post("/companies", json=company_payload())
        assert response.status_code == 201
        assert response.json()["created_by"] == str(uuid.UUID(int=0))

    async def test_invalid_token_is_anonymous(self, client):
        response = await client.post(
            "/companies",
            json=company_payload(),
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 201
        assert response.json()["created_by"] == str(uuid.UUID(int=0))

    async def test_invalid_id(self, client):
        response = await client.get("/companies/abc")
        assert response.status_code == 400

    async def test_integer_ids(self, client):
        response = await client.post("/gadgets", json={"name": "Sprocket", "quantity": 2})
        assert response.status_code == 201
        gadget_id = response.json()["id"]
        assert isinstance(gadget_id, int)

        response = await client.get(f"/gadgets/{gadget_id}")
        assert response.json()["quantity"] == 2

        response = await client.get("/gadgets/not-a-number")
        assert response.status_code == 400

    async def test_integer_id_out_of_range(self, client):
        response = await client.get("/gadgets/99999999999999999999")
        assert response.status_code == 400
        ErrorResponse.model_validate(response.json())

    async def test_user_full_name(self, client, seed_user):
        response = await client.get(f"/users/{seed_user.id}")
        assert response.status_code == 200
        assert response.json()["full_name"] == "Ana Rios"

    async def test_user_round_trip_with_full_name(self, client, seed_user):
        item = (await client.get(f"/users/{seed_user.id}")).json()
        item["lastName"] = "Rojas"
        item.pop("last_name")

        response = await client.put(f"/users/{seed_user.id}", json=item)
        assert response.status_code == 204

        response = await client.get(f"/users/{seed_user.id}")
        assert response.json()["full_name"] == "Ana Rojas"

    async def test_update_requires_version(self, client, seed_companies):
        company_id = seed_companies[0].id
        response = await client.put(f"/companies/{company_id}", json={"city": "Tulua"})
        assert response.status_code == 428

    async def test_update_id_mismatch(self, client, seed_companies):
        company_id = seed_companies[0].id
        response = await client.put(
            f"/companies/{company_id}",
            json={"id": str(uuid.uuid4()), "city": "Tulua", "version": 1},
        )
        assert response.status_code == 400

    async def test_create_type_mismatch(self, client):
        response = await client.post("/gadgets", json={"name": "Sprocket", "quantity": "many"})
        assert response.status_code == 400

    async def test_hard_delete(self, client, seed_companies):
        company_id = seed_companies[1].id
        response = await client.delete(f"/companies/{company_id}", params={"softDelete": "false"})
        assert response.status_code == 204

    async def test_soft_delete_unsupported(self, client):
        response = await client.delete(f"/resource-cultures/{uuid.uuid4()}", params={"softDelete": "true"})
        assert response.status_code == 400

    async def test_delete_missing(self, client):
        response = await client.delete(f"/companies/{uuid.uuid4()}")
        assert response.status_code == 404



async def test_error_body_documented(client):
    schema = (await client.get("/openapi.json")).json()
    responses = schema["paths"]["/companies/{item_id}"]["put"]["responses"]
    for code in ("400", "404", "409", "428", "500"):
        ref = responses[code]["content"]["application/json"]["schema"]["$ref"]
        assert ref.endswith("/ErrorResponse")

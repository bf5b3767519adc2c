import pytest

from tests.conftest import SAMPLE_FEEDBACK


def test_submit_is_public_and_normalises(client):
    payload = {**SAMPLE_FEEDBACK, "name": "  Jane Doe ", "email": "Jane@Example.COM"}
    response = client.post("/api/feedback/submit", json=payload)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Jane Doe"
    assert data["email"] == "jane@example.com"
    assert data["status"] == "pending"


@pytest.mark.parametrize(
    "field,value",
    [
        ("name", "J"),
        ("name", "Jane123"),
        ("email", "not-an-email"),
        ("category", "Gossip"),
        ("rating", 0),
        ("rating", 6),
        ("message", "too short"),
        ("message", "x" * 1001),
    ],
)
def test_submit_rejects_invalid_fields(client, field, value):
    response = client.post("/api/feedback/submit", json={**SAMPLE_FEEDBACK, field: value})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_ERROR"
    assert any(error.startswith(field) for error in body["errors"])


def test_submit_ignores_client_status(client):
    response = client.post("/api/feedback/submit", json={**SAMPLE_FEEDBACK, "status": "approved"})
    assert response.status_code == 201
    assert response.json()["data"]["status"] == "pending"


def test_list_paginates_and_filters(client, auth_headers, submit_feedback):
    for category in ("Billing", "Sales", "Billing"):
        submit_feedback(category=category)

    response = client.get("/api/feedback", headers=auth_headers, params={"category": "Billing", "limit": 1})
    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 1
    assert body["pagination"]["totalFeedback"] == 2
    assert body["pagination"]["totalPages"] == 2
    assert body["pagination"]["hasNextPage"] is True


def test_list_search(client, auth_headers, submit_feedback):
    submit_feedback(message="Checkout button is broken on mobile.")
    submit_feedback()

    body = client.get("/api/feedback", headers=auth_headers, params={"search": "checkout"}).json()
    assert body["pagination"]["totalFeedback"] == 1


def test_list_requires_token(client):
    assert client.get("/api/feedback").status_code == 401


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route not found", "code": "HTTP_404"}


def test_health(client):
    assert client.get("/api/health").json() == {"status": "healthy"}


def test_list_rejects_out_of_range_page(client, auth_headers):
    for page in (str(2 ** 63), "99999999999999999999999", "1000001"):
        response = client.get("/api/feedback", headers=auth_headers, params={"page": page})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


def test_list_accepts_last_allowed_page(client, auth_headers):
    response = client.get("/api/feedback", headers=auth_headers, params={"page": "1000000"})
    assert response.status_code == 200
    assert response.json()["data"] == []

import csv
import io

from feedback_system.export import EXPORT_COLUMNS, parse_export_filters
from feedback_system.errors import ValidationError

import pytest


def test_export_with_no_matches_is_not_found(client, auth_headers, submit_feedback, audit_logs):
    submit_feedback(category="Technical")
    response = client.get(
        "/api/feedback/export",
        headers=auth_headers,
        params={"status": "approved", "category": "Billing"},
    )
    assert response.status_code == 404
    assert response.json()["message"] == "No data to export"
    assert audit_logs(action="export") == []


def test_export_returns_csv_attachment(client, auth_headers, submit_feedback, audit_logs):
    submit_feedback(name="First Person", message="Commas, and \"quotes\" survive.")
    submit_feedback(name="Second Person", category="Billing")

    response = client.get("/api/feedback/export", headers=auth_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith("attachment;")
    assert "feedback_export_" in disposition

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == EXPORT_COLUMNS
    assert len(rows) == 3
    # Newest first
    assert rows[1][1] == "Second Person"
    assert rows[2][5] == "Commas, and \"quotes\" survive."

    export = audit_logs(action="export")[0]
    assert export["details"]["exportCount"] == 2
    assert export["entityId"] is None


def test_export_filters_by_category(client, auth_headers, submit_feedback):
    submit_feedback(category="Billing")
    submit_feedback(category="Sales")

    response = client.get("/api/feedback/export", headers=auth_headers, params={"category": "Billing"})
    rows = list(csv.reader(io.StringIO(response.text)))
    assert len(rows) == 2
    assert rows[1][3] == "Billing"


def test_export_rejects_bad_filters(client, auth_headers):
    for params in ({"status": "archived"}, {"category": "Nope"}, {"startDate": "yesterday"}):
        response = client.get("/api/feedback/export", headers=auth_headers, params=params)
        assert response.status_code == 400


def test_export_requires_token(client):
    assert client.get("/api/feedback/export").status_code == 401


def test_end_date_covers_whole_day():
    filters = parse_export_filters(start_date="2024-01-01", end_date="2024-01-31")
    assert filters.start_date.hour == 0
    assert filters.end_date.hour == 23
    assert filters.end_date.minute == 59


def test_start_after_end_is_invalid():
    with pytest.raises(ValidationError):
        parse_export_filters(start_date="2024-02-01", end_date="2024-01-01")


def test_trailing_z_is_read_as_utc():
    filters = parse_export_filters(start_date="2024-01-01T10:30:00Z", end_date="2024-01-02T00:00:00z")
    assert filters.start_date.isoformat() == "2024-01-01T10:30:00"
    assert filters.start_date.tzinfo is None
    assert filters.end_date.isoformat() == "2024-01-02T00:00:00"


def test_export_accepts_utc_timestamps(client, auth_headers, submit_feedback):
    submit_feedback()
    response = client.get(
        "/api/feedback/export",
        headers=auth_headers,
        params={"startDate": "2000-01-01T00:00:00Z", "endDate": "2999-01-01T00:00:00Z"},
    )
    assert response.status_code == 200

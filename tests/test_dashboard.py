from sqlalchemy import text

from feedback_system.aggregation import summarize

from tests.conftest import _sync_engine


def test_empty_store_reports_zeros(client, auth_headers):
    response = client.get("/api/dashboard/stats", headers=auth_headers)
    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["totalFeedback"] == 0
    assert stats["averageRating"] == 0
    assert stats["pendingCount"] == 0
    assert stats["approvedCount"] == 0
    assert stats["rejectedCount"] == 0
    assert stats["categoryDistribution"] == []


def test_stats_follow_moderation(client, auth_headers, submit_feedback):
    submit_feedback(rating=5, category="Sales")
    jane = submit_feedback()
    before = client.get("/api/admin/dashboard/stats", headers=auth_headers).json()["data"]
    assert before["totalFeedback"] == 2
    assert before["averageRating"] == 4.5
    assert before["pendingCount"] == 2

    client.put(f"/api/feedback/{jane['id']}/approve", headers=auth_headers)

    after = client.get("/api/admin/dashboard/stats", headers=auth_headers).json()["data"]
    assert after["approvedCount"] == before["approvedCount"] + 1
    assert after["pendingCount"] == before["pendingCount"] - 1
    assert after["totalFeedback"] == before["totalFeedback"]
    assert (
        after["pendingCount"] + after["approvedCount"] + after["rejectedCount"] == after["totalFeedback"]
    )


def test_category_distribution_sorted_by_count(client, auth_headers, submit_feedback):
    submit_feedback(category="Billing")
    submit_feedback(category="Support")
    submit_feedback(category="Support")

    response = client.get("/api/admin/dashboard/category-distribution", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"] == [
        {"category": "Support", "count": 2},
        {"category": "Billing", "count": 1},
    ]


def test_missing_category_counts_as_unknown(client, auth_headers, submit_feedback):
    feedback_id = submit_feedback()["id"]
    with _sync_engine.begin() as conn:
        conn.execute(text("UPDATE feedback SET category = NULL WHERE id = :id"), {"id": feedback_id})

    stats = client.get("/api/dashboard/stats", headers=auth_headers).json()["data"]
    assert stats["categoryDistribution"] == [{"category": "Unknown", "count": 1}]


def test_dashboard_requires_token(client):
    assert client.get("/api/dashboard/stats").status_code == 401


def test_analytics_and_summary_report(client, auth_headers, submit_feedback):
    submit_feedback(rating=2, category="Billing")
    submit_feedback(rating=4, category="Billing")
    submit_feedback(rating=5, category="Other")

    analytics = client.get("/api/feedback/analytics", headers=auth_headers).json()["data"]
    assert analytics["totalFeedback"] == 3
    assert analytics["averageRating"] == 3.67
    assert analytics["statusCount"] == [{"status": "pending", "count": 3}]

    report = client.get("/api/feedback/report/summary", headers=auth_headers).json()["data"]
    assert report["total"] == 3
    assert report["byStatus"] == {"pending": 3, "approved": 0, "rejected": 0}
    assert report["byCategory"][0] == {"category": "Billing", "count": 2, "averageRating": 3.0}


def test_summarize_single_snapshot():
    rows = [
        ("pending", "General", 2, 6),
        ("approved", "General", 1, 5),
        ("rejected", None, 1, 1),
    ]
    stats = summarize(rows)
    assert stats.total_feedback == 4
    assert stats.average_rating == 3.0
    assert stats.counts_by_status.pending == 2
    assert [(c.category, c.count) for c in stats.category_distribution] == [("General", 3), ("Unknown", 1)]


def test_summarize_empty():
    stats = summarize([])
    assert stats.total_feedback == 0
    assert stats.average_rating == 0.0
    assert stats.category_distribution == []

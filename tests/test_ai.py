from app.services import ai_service
from tests.factories import auth_headers, make_product


def test_briefing_falls_back_without_api_key(client, db, admin_a, store_a, monkeypatch):
    monkeypatch.setattr(ai_service.settings, "GROQ_API_KEY", "")
    make_product(db, store_a, "EMPTY", stock_quantity=0)

    response = client.post("/api/v1/ai/inventory-briefing", headers=auth_headers(admin_a))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["generated_by"] == "fallback"
    assert data["briefing"].startswith("1 products need reordering (1 urgent")
    assert data["recommendations_summary"]["urgent_items"] == 1
    assert data["turnover_stats"]["total_products"] == 1


def test_briefing_uses_model_text(client, admin_a, monkeypatch):
    captured = {}

    def fake_chat(messages, **kwargs):
        captured["prompt"] = messages[-1]["content"]
        return "Stock looks healthy."

    monkeypatch.setattr(ai_service, "call_groq_chat", fake_chat)

    data = client.post("/api/v1/ai/inventory-briefing", headers=auth_headers(admin_a)).json()["data"]

    assert data["briefing"] == "Stock looks healthy."
    assert data["generated_by"] == "ai"
    assert "Reorder recommendations: 0" in captured["prompt"]


def test_model_errors_fall_back(monkeypatch):
    def broken_chat(messages, **kwargs):
        raise RuntimeError("SDK call failed: timeout")

    monkeypatch.setattr(ai_service, "call_groq_chat", broken_chat)
    recommendations = {
        "recommendations": [],
        "summary": {"total_recommendations": 0, "urgent_items": 0, "high_priority_items": 0, "estimated_cost": 0},
    }
    turnover = {
        "stats": {
            "total_products": 0, "average_turnover_ratio": 0, "fast_moving_count": 0, "medium_moving_count": 0,
            "slow_moving_count": 0, "dead_stock_count": 0, "total_sales_revenue": 0,
        },
        "period": {"start_date": "2024-01-01", "end_date": "2024-01-31"},
    }

    result = ai_service.generate_inventory_briefing(recommendations, turnover)

    assert result["generated_by"] == "fallback"
    assert "0 products need reordering" in result["briefing"]


def test_staff_cannot_use_ai(client, staff_a):
    assert client.post("/api/v1/ai/inventory-briefing", headers=auth_headers(staff_a)).status_code == 403

"""Tests for analytics, weekly limit and split endpoints."""

from decimal import Decimal


class TestAnalyticsAPI:

    def test_spending_by_category(self, client, sample_transaction):
        response = client.get("/api/v1/analytics/by-category", params={
            "start_date": "2024-03-01",
            "end_date": "2024-03-31",
        })
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["category"] == "Uncategorized"
        assert Decimal(data[0]["total"]) == Decimal("250.00")
        assert data[0]["count"] == 1

    def test_invalid_range(self, client):
        response = client.get("/api/v1/analytics/by-category", params={
            "start_date": "2024-03-31",
            "end_date": "2024-03-01",
        })
        assert response.status_code == 400

    def test_monthly(self, client, sample_transaction):
        data = client.get("/api/v1/analytics/monthly", params={"year": 2024}).json()
        assert [(row["year"], row["month"]) for row in data] == [(2024, 3)]

    def test_summary(self, client, sample_transaction):
        data = client.get("/api/v1/analytics/summary").json()
        assert Decimal(data["total_balance"]) == Decimal("1000.00")
        assert data["uncategorized_count"] == 1
        assert data["transaction_count"] == 1


class TestWeeklyLimitsAPI:

    def test_set_limit_snaps_to_week(self, client):
        response = client.put("/api/v1/weekly-limits", json={"week_of": "2024-03-07", "target_amount": "2000"})
        assert response.status_code == 200
        data = response.json()
        assert data["week_start"] == "2024-03-04"
        assert data["week_end"] == "2024-03-10"

    def test_set_limit_replaces_existing(self, client):
        client.put("/api/v1/weekly-limits", json={"week_of": "2024-03-04", "target_amount": "2000"})
        client.put("/api/v1/weekly-limits", json={"week_of": "2024-03-10", "target_amount": "1500"})

        limits = client.get("/api/v1/weekly-limits").json()
        assert len(limits) == 1
        assert Decimal(limits[0]["target_amount"]) == Decimal("1500")

    def test_no_current_limit(self, client):
        assert client.get("/api/v1/weekly-limits/current").status_code == 404

    def test_weekly_summary(self, client, sample_transaction):
        client.put("/api/v1/weekly-limits", json={"week_of": "2024-03-07", "target_amount": "2000"})

        data = client.get("/api/v1/analytics/weekly", params={"week_of": "2024-03-05"}).json()
        assert Decimal(data["spent"]) == Decimal("250.00")
        assert Decimal(data["remaining"]) == Decimal("1750.00")

    def test_weekly_summary_honours_exclusion_setting(self, client, sample_transaction):
        client.patch(f"/api/v1/transactions/{sample_transaction.id}", json={"exclude_from_weekly": True})
        client.patch("/api/v1/settings", json={"exclude_selected_from_weekly": True})

        data = client.get("/api/v1/analytics/weekly", params={"week_of": "2024-03-05"}).json()
        assert Decimal(data["spent"]) == Decimal("0")
        assert data["target_amount"] is None

    def test_delete_limit(self, client):
        limit = client.put("/api/v1/weekly-limits", json={"week_of": "2024-03-07", "target_amount": "2000"}).json()
        assert client.delete(f"/api/v1/weekly-limits/{limit['id']}").status_code == 204
        assert client.delete(f"/api/v1/weekly-limits/{limit['id']}").status_code == 404


class TestMultiCategorizationAPI:

    def test_split_and_apply(self, client, sample_transaction, sample_category):
        matatu, uber = sample_category.items

        response = client.post("/api/v1/multi-categorization", json={
            "name": "Trip home",
            "transaction_id": sample_transaction.id,
        })
        assert response.status_code == 201
        list_id = response.json()["id"]

        client.post(f"/api/v1/multi-categorization/{list_id}/items", json={"category_item_id": uber.id, "amount": "100"})
        data = client.get(f"/api/v1/multi-categorization/{list_id}").json()
        assert data["can_apply"] is False
        assert client.post(f"/api/v1/multi-categorization/{list_id}/apply").status_code == 400

        response = client.post(
            f"/api/v1/multi-categorization/{list_id}/items",
            json={"category_item_id": matatu.id, "amount": "150"},
        )
        assert response.status_code == 201
        data = client.get(f"/api/v1/multi-categorization/{list_id}").json()
        assert Decimal(data["total"]) == Decimal("250")
        assert data["can_apply"] is True

        data = client.post(f"/api/v1/multi-categorization/{list_id}/apply").json()
        assert data["is_applied"] is True
        txn = client.get(f"/api/v1/transactions/{sample_transaction.id}").json()
        assert txn["category_item_id"] == matatu.id
        assert client.get("/api/v1/multi-categorization").json() == []

    def test_split_for_missing_transaction(self, client):
        response = client.post("/api/v1/multi-categorization", json={"name": "x", "transaction_id": 999})
        assert response.status_code == 404

    def test_remove_item_and_delete_list(self, client, sample_transaction, sample_category):
        list_id = client.post("/api/v1/multi-categorization", json={
            "name": "Trip", "transaction_id": sample_transaction.id,
        }).json()["id"]
        item = client.post(f"/api/v1/multi-categorization/{list_id}/items", json={
            "category_item_id": sample_category.items[0].id, "amount": "50",
        }).json()

        assert client.delete(f"/api/v1/multi-categorization/{list_id}/items/{item['id']}").status_code == 204
        assert client.get(f"/api/v1/multi-categorization/{list_id}").json()["items"] == []
        assert client.delete(f"/api/v1/multi-categorization/{list_id}").status_code == 204
        assert client.get(f"/api/v1/multi-categorization/{list_id}").status_code == 404

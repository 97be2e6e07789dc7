"""
Analytics tests (pure functions, no database).

Verifies:
- Empty and malformed input yield zero totals, never an exception
- Margin-based profit with the assumed cost ratio fallback
- Reference resolution order and sentinels
- Stable descending rankings
"""

import pytest

from stockroom.services import analytics
from stockroom.services.analytics import (
    UNKNOWN_BUYER,
    UNKNOWN_CATEGORY,
    UNKNOWN_PRODUCT,
    UNKNOWN_SELLER,
    Resolved,
    Unresolved,
)


CATEGORIES = [{"id": 1, "name": "Electronics"}, {"id": 2, "name": "Garden"}]

PRODUCTS = [
    {"id": 10, "name": "Laptop", "category_id": 1, "price": 100.0, "quantity": 6},
    {"id": 11, "name": "Phone", "category_id": 1, "price": 50.0, "quantity": 0},
    {"id": 20, "name": "Rake", "category_id": 2, "price": 20.0, "quantity": 3},
]

USERS = [
    {"id": 1, "username": "ann", "first_name": "Ann", "last_name": "Lee"},
    {"id": 2, "username": "bob"},
]

PURCHASES = [
    {"product_id": 10, "buyer_id": 1, "quantity": 10, "purchase_price": 60.0},
    {"product_id": 20, "buyer_id": 2, "quantity": 5, "purchase_price": 10.0},
]

SELLS = [
    {"product_id": 10, "seller_id": 2, "quantity": 4, "sell_price": 100.0},
    {"product_id": 11, "seller_id": 1, "quantity": 2, "sell_price": 50.0},
]


class TestCategorySummaryEmpty:

    def test_empty_collections(self):
        summary = analytics.category_summary("Electronics", [], [], [], [])

        assert summary["product_count"] == 0
        assert summary["total_money_spent"] == 0
        assert summary["total_money_gained"] == 0
        assert summary["top_sold_product"] is None
        assert summary["top_purchased_product"] is None
        assert summary["profitable_products"] == []
        assert summary["big_buyer"] is None
        assert summary["big_seller"] is None
        assert summary["best_profit_person"] is None

    def test_none_and_garbage_records_are_ignored(self):
        summary = analytics.category_summary("Electronics", None, [None, 5, "x"], None, None)
        assert summary["product_count"] == 0
        assert summary["profit"] == 0

    def test_unhashable_ids_are_skipped(self):
        products = [{"id": [1], "name": "Laptop", "category": "Electronics", "price": 100, "quantity": 1}]
        purchases = [{"id": 1, "product_id": [1], "buyer_id": {"a": 1}, "quantity": 2, "purchase_price": 60}]
        sells = [{"id": 1, "product_id": {"x"}, "seller_id": [2], "quantity": 1, "sell_price": 100}]
        users = [{"id": [3], "first_name": "Ann", "last_name": "Lee"}]

        summary = analytics.category_summary("Electronics", products, purchases, sells, users)

        assert summary["product_count"] == 0
        assert summary["total_money_spent"] == 0
        assert analytics.top_n_buyers(purchases, users) == []
        assert analytics.top_n_profit_people(products, purchases, sells, users) == []


class TestCategorySummary:

    def test_totals_and_leaders(self):
        summary = analytics.category_summary("Electronics", PRODUCTS, PURCHASES, SELLS, USERS, CATEGORIES)

        assert summary["product_count"] == 2
        assert summary["total_money_spent"] == 600.0
        assert summary["total_money_gained"] == 500.0
        assert summary["net_cash_flow"] == -100.0
        assert summary["top_sold_product"] == {"product_id": 10, "name": "Laptop", "sold_count": 4.0}
        assert summary["top_purchased_product"]["product_id"] == 10
        assert summary["big_buyer"]["name"] == "Ann Lee"
        assert summary["big_seller"] == {"user_id": 2, "name": "bob", "total_sold": 400.0}

    def test_profit_uses_average_cost_then_price_ratio(self):
        summary = analytics.category_summary("Electronics", PRODUCTS, PURCHASES, SELLS, USERS, CATEGORIES)

        # Laptop: (100 - 60) * 4 = 160; Phone never bought: (50 - 37.5) * 2 = 25
        assert summary["profit"] == pytest.approx(185.0)
        assert [p["name"] for p in summary["profitable_products"]] == ["Laptop", "Phone"]
        assert summary["best_profit_person"]["user_id"] == 2

    def test_custom_cost_ratio(self):
        summary = analytics.category_summary(
            "Electronics", PRODUCTS, PURCHASES, SELLS, USERS, CATEGORIES, assumed_cost_ratio=0.5
        )
        assert summary["profit"] == pytest.approx(160.0 + 50.0)

    def test_unsold_products_still_ranked(self):
        summary = analytics.category_summary("Garden", PRODUCTS, PURCHASES, SELLS, USERS, CATEGORIES)
        assert summary["profitable_products"] == [{"product_id": 20, "name": "Rake", "profit": 0.0}]
        assert summary["top_sold_product"] is None

    def test_loss_making_seller_is_still_best_person(self):
        sells = [{"product_id": 10, "seller_id": 1, "quantity": 1, "sell_price": 10.0}]
        summary = analytics.category_summary("Electronics", PRODUCTS, PURCHASES, sells, USERS, CATEGORIES)
        assert summary["best_profit_person"]["profit"] == pytest.approx(-50.0)

    def test_zero_quantity_sells_do_not_make_a_top_product(self):
        sells = [{"product_id": 10, "seller_id": 1, "quantity": 0, "sell_price": 10.0}]
        summary = analytics.category_summary("Electronics", PRODUCTS, [], sells, USERS, CATEGORIES)
        assert summary["top_sold_product"] is None

    def test_first_to_reach_maximum_wins(self):
        sells = [
            {"product_id": 11, "seller_id": 1, "quantity": 3, "sell_price": 1.0},
            {"product_id": 10, "seller_id": 1, "quantity": 3, "sell_price": 1.0},
        ]
        summary = analytics.category_summary("Electronics", PRODUCTS, [], sells, USERS, CATEGORIES)
        assert summary["top_sold_product"]["product_id"] == 11


class TestResolution:

    def test_embedded_object_wins(self):
        product = {"category": {"id": 2, "name": "Embedded"}, "category_id": 1}
        assert analytics.resolve_category_name(product, CATEGORIES) == "Embedded"

    def test_id_lookup_before_denormalized_string(self):
        product = {"category_id": 1, "category": "Stale"}
        assert analytics.resolve_category_name(product, CATEGORIES) == "Electronics"

    def test_denormalized_string_when_id_dangles(self):
        product = {"category_id": 99, "category": "Legacy"}
        assert analytics.resolve_category_name(product, CATEGORIES) == "Legacy"

    def test_name_field_fallback(self):
        assert analytics.resolve_brand_name({"brand_name": "Acme"}) == "Acme"

    @pytest.mark.parametrize("product", [{}, {"category_id": 99}, {"category": "  "}, None])
    def test_sentinel(self, product):
        assert analytics.resolve_category_name(product, CATEGORIES) == UNKNOWN_CATEGORY

    def test_to_ref(self):
        lookup = {1: "Ann"}
        assert analytics.to_ref(1, lookup) == Resolved(1, "Ann")
        assert analytics.to_ref(2, lookup) == Unresolved(2)
        assert analytics.to_ref({"id": 3, "name": "Cy"}) == Resolved(3, "Cy")
        assert analytics.to_ref(None) == Unresolved(None)

    def test_product_name(self):
        assert analytics.product_name(10, PRODUCTS) == "Laptop"
        assert analytics.product_name(404, PRODUCTS) == UNKNOWN_PRODUCT

    def test_user_display_name(self):
        assert analytics.user_display_name(1, USERS) == "Ann Lee"
        assert analytics.user_display_name(2, USERS) == "bob"
        assert analytics.user_display_name(3, USERS) == UNKNOWN_BUYER
        assert analytics.user_display_name(3, USERS, UNKNOWN_SELLER) == UNKNOWN_SELLER
        assert analytics.user_display_name({"id": 9, "first_name": "Eve"}, USERS) == "Eve"


class TestParseNumber:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (12, 12.0),
            (1.5, 1.5),
            ("12,5", 12.5),
            ("1.234", 1234.0),
            ("1.234,5", 1234.5),
            ("$ 99.90", 99.9),
            ("-3", -3.0),
            ("abc", 0.0),
            ("", 0.0),
            (None, 0.0),
            (float("nan"), 0.0),
            ([], 0.0),
        ],
    )
    def test_lenient(self, raw, expected):
        assert analytics.parse_number(raw) == pytest.approx(expected)


class TestEffectiveUnitCost:

    def test_weighted_average(self):
        purchases = [
            {"product_id": 10, "quantity": 1, "purchase_price": 10.0},
            {"product_id": 10, "quantity": 3, "purchase_price": 30.0},
        ]
        assert analytics.effective_unit_cost(PRODUCTS[0], purchases) == pytest.approx(25.0)

    def test_ratio_fallback(self):
        assert analytics.effective_unit_cost(PRODUCTS[0], []) == pytest.approx(75.0)
        assert analytics.effective_unit_cost(PRODUCTS[0], [], 0.5) == pytest.approx(50.0)


class TestRankings:

    def test_top_products_by_spend(self):
        rows = analytics.top_n_products(PURCHASES, PRODUCTS, n=1)
        assert rows == [{"product_id": 10, "name": "Laptop", "total_spent": 600.0}]

    def test_ties_keep_input_order(self):
        purchases = [
            {"product_id": 20, "buyer_id": 2, "quantity": 1, "purchase_price": 5.0},
            {"product_id": 10, "buyer_id": 1, "quantity": 1, "purchase_price": 5.0},
        ]
        assert [r["product_id"] for r in analytics.top_n_products(purchases, PRODUCTS)] == [20, 10]
        assert [r["user_id"] for r in analytics.top_n_buyers(purchases, USERS)] == [2, 1]

    def test_unknown_product_name(self):
        rows = analytics.top_n_products([{"product_id": 77, "quantity": 1, "purchase_price": 1}], PRODUCTS)
        assert rows[0]["name"] == UNKNOWN_PRODUCT

    def test_top_sellers(self):
        rows = analytics.top_n_sellers(SELLS, USERS)
        assert [(r["name"], r["total_sold"]) for r in rows] == [("bob", 400.0), ("Ann Lee", 100.0)]

    def test_top_profitable_products(self):
        rows = analytics.top_n_profitable_products(PRODUCTS, PURCHASES, SELLS)
        assert [r["name"] for r in rows] == ["Laptop", "Phone"]
        assert rows[0]["profit"] == pytest.approx(160.0)

    def test_top_profit_people(self):
        rows = analytics.top_n_profit_people(PRODUCTS, PURCHASES, SELLS, USERS, n=1)
        assert rows == [{"user_id": 2, "name": "bob", "profit": pytest.approx(160.0)}]

    @pytest.mark.parametrize("n", [0, -1])
    def test_non_positive_n_is_empty(self, n):
        assert analytics.top_n_sellers(SELLS, USERS, n=n) == []

    def test_empty(self):
        assert analytics.top_n_products([], []) == []
        assert analytics.top_n_buyers(None, None) == []


class TestCategoryBreakdown:

    def test_rows_per_category(self):
        rows = analytics.category_breakdown(PRODUCTS, PURCHASES, SELLS, CATEGORIES)

        by_name = {r["category"]: r for r in rows}
        assert [r["category"] for r in rows] == ["Electronics", "Garden"]
        assert by_name["Electronics"]["stock_value"] == 600.0
        assert by_name["Electronics"]["total_money_spent"] == 600.0
        assert by_name["Garden"]["total_money_spent"] == 50.0
        assert by_name["Electronics"]["profit"] == pytest.approx(185.0)

    def test_orphan_trades_go_to_unknown(self):
        rows = analytics.category_breakdown(
            [], [{"product_id": 5, "quantity": 1, "purchase_price": 3.0}], [], CATEGORIES
        )
        assert rows == [{
            "category": UNKNOWN_CATEGORY,
            "product_count": 0,
            "stock_value": 0.0,
            "total_money_spent": 3.0,
            "total_money_gained": 0.0,
            "profit": 0.0,
        }]

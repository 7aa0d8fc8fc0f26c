"""
Dashboard aggregation tests.
"""

from decimal import Decimal

from logistics.services import dashboard_service, delivery_service, inventory_service, order_service

from conftest import make_product


def _order_with_total(client_id, product_id, unit_price, status=None):
    order = order_service.create_order(client_id=client_id, shipping_address="Yard 2")
    order_service.add_order_item(order_id=order.id, product_id=product_id, quantity=1, unit_price=unit_price)
    if status:
        order_service.update_order(order_id=order.id, patch={"status": status})
    return order


class TestClientDashboard:
    def test_empty_client(self, client_user):
        stats = dashboard_service.client_dashboard_stats(client_id=client_user.id)
        assert stats == {
            "totalOrders": 0,
            "pendingOrders": 0,
            "deliveredOrders": 0,
            "totalRevenue": Decimal("0.00"),
            "lowStockItems": 0,
        }

    def test_revenue_counts_shipped_and_delivered_only(self, client_user, other_client, product):
        _order_with_total(client_user.id, product.id, "10.00")
        _order_with_total(client_user.id, product.id, "20.00", status="shipped")
        _order_with_total(client_user.id, product.id, "30.00", status="delivered")
        _order_with_total(client_user.id, product.id, "40.00", status="cancelled")
        _order_with_total(other_client.id, product.id, "99.00", status="delivered")

        stats = dashboard_service.client_dashboard_stats(client_id=client_user.id)

        assert stats["totalOrders"] == 4
        assert stats["pendingOrders"] == 1
        assert stats["deliveredOrders"] == 1
        assert stats["totalRevenue"] == Decimal("50.00")
        assert dashboard_service.revenue_by_client(client_id=client_user.id) == Decimal("100.00")

    def test_low_stock_count(self, db_session, client_user):
        p1 = make_product(db_session, sku="D-1")
        p2 = make_product(db_session, sku="D-2")
        inventory_service.create_inventory(client_id=client_user.id, product_id=p1.id, quantity=10)
        inventory_service.create_inventory(client_id=client_user.id, product_id=p2.id, quantity=30)

        assert dashboard_service.client_dashboard_stats(client_id=client_user.id)["lowStockItems"] == 1


class TestAdminDashboard:
    def test_system_wide_figures(self, client_user, other_client, admin_user, product, second_product):
        first = _order_with_total(client_user.id, product.id, "15.25")
        _order_with_total(other_client.id, second_product.id, "4.75", status="cancelled")
        delivery_service.create_delivery(order_id=first.id, tracking_number="ADM-1")

        stats = dashboard_service.admin_dashboard_stats()

        assert stats == {
            "totalClients": 2,
            "totalOrders": 2,
            "totalRevenue": Decimal("20.00"),
            "pendingDeliveries": 1,
            "totalProducts": 2,
        }
        assert dashboard_service.total_system_revenue() == Decimal("20.00")

    def test_status_counts(self, client_user, other_client, product):
        _order_with_total(client_user.id, product.id, "1.00")
        _order_with_total(client_user.id, product.id, "1.00", status="shipped")
        other = _order_with_total(other_client.id, product.id, "1.00")
        delivery_service.create_delivery(order_id=other.id, tracking_number="CNT-1")

        assert dashboard_service.order_status_counts() == {"pending": 2, "shipped": 1}
        assert dashboard_service.order_status_counts(client_id=client_user.id) == {"pending": 1, "shipped": 1}
        assert dashboard_service.delivery_status_counts() == {"pending": 1}

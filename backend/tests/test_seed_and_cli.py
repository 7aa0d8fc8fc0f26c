"""
Seeding and CLI tests.
"""

from decimal import Decimal

from logistics.cli import data_group, orders_group
from logistics.extensions import db
from logistics.models import Order, User
from logistics.services import auth_service, order_service, seed_service


class TestSeed:
    def test_creates_demo_accounts(self, db_session):
        result = seed_service.seed_database()

        assert result == {"success": True, "message": "Database seeding completed. Created 2 new users."}
        admin = db.session.query(User).filter_by(email="admin@demo.com").one()
        client = db.session.query(User).filter_by(email="client@demo.com").one()
        assert admin.role == "admin"
        assert admin.password_hash == "hashed_demo123"
        assert client.company_name == "Demo Logistics Inc."
        assert client.phone == "1-800-DEMO-LOG"
        assert client.address == "123 Demo St, Demo City, DC 00000"

    def test_idempotent(self, db_session):
        seed_service.seed_database()
        again = seed_service.seed_database()

        assert again["message"] == "Database seeding completed. Created 0 new users."
        assert db.session.query(User).count() == 2

    def test_demo_login(self, db_session):
        seed_service.seed_database()
        result = auth_service.login(email="client@demo.com", password="demo123")
        assert result["user"].role == "client"


class TestCli:
    def test_seed_command(self, app, db_session):
        result = app.test_cli_runner().invoke(data_group, ["seed"])
        assert result.exit_code == 0
        assert "Created 2 new users" in result.output

    def test_recompute_command(self, app, order, product):
        order_service.add_order_item(order_id=order.id, product_id=product.id, quantity=2, unit_price="3.00")
        db.session.query(Order).filter_by(id=order.id).update({"total_amount": Decimal("0")})
        db.session.commit()

        result = app.test_cli_runner().invoke(orders_group, ["recompute"])

        assert result.exit_code == 0
        assert f"Order {order.id}: 6.00" in result.output
        db.session.expire_all()
        assert db.session.get(Order, order.id).total_amount == Decimal("6.00")

    def test_recompute_missing_order(self, app, db_session):
        result = app.test_cli_runner().invoke(orders_group, ["recompute", "--order-id", "404"])
        assert result.exit_code != 0
        assert "Order not found" in result.output

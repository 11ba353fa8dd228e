import pytest
from decimal import Decimal
from unittest.mock import MagicMock
from flask_jwt_extended import create_access_token

from orderdesk import create_app
from orderdesk.config import TestConfig
from orderdesk.extensions import db as _db, bcrypt
from orderdesk.models import Company, DistributorOrder, DistributorOrderItem, User
from orderdesk.services.stripe_gateway import StripeGateway


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def gateway(app):
    """Stripe stand-in installed where get_gateway() looks for it."""
    gw = MagicMock(spec=StripeGateway)
    gw.create_customer.return_value = "cus_test_1"
    gw.create_invoice.return_value = "in_test_1"
    gw.add_invoice_item.side_effect = lambda *a, **kw: f"ii_{gw.add_invoice_item.call_count}"
    gw.finalize_invoice.return_value = {
        "id": "in_test_1",
        "number": "INV-0001",
        "status": "open",
        "created": 1767225600,
        "due_date": 1769817600,
    }
    gw.retrieve_invoice.return_value = {"id": "in_test_1", "status": "open"}
    app.extensions["payment_gateway"] = gw
    return gw


def _make_user(db, username, role):
    user = User(
        username=username,
        email=f"{username}@finishing.example",
        full_name=username.title(),
        role=role,
        password_hash=bcrypt.generate_password_hash("secret").decode("utf-8"),
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_user(db):
    return _make_user(db, "reviewer", "admin")


@pytest.fixture
def auth_headers(app, admin_user):
    token = create_access_token(
        identity=str(admin_user.id), additional_claims={"role": admin_user.role}
    )
    return {
        "Authorization": f"Bearer {token}",
        "user_id": admin_user.id,
        "username": admin_user.username,
        "email": admin_user.email,
    }


@pytest.fixture
def staff_headers(app, db):
    user = _make_user(db, "intern", "staff")
    token = create_access_token(identity=str(user.id), additional_claims={"role": "staff"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def company(db):
    company = Company(
        company_name="Print Finishers Ltd",
        email="accounts@printfinishers.example",
        billing_address_line_1="1 Company Road",
        billing_city="Leeds",
        billing_postal_code="LS1 1AA",
        billing_country="GB",
    )
    db.session.add(company)
    db.session.commit()
    return company


@pytest.fixture
def pending_order(db, company):
    """Two lines: A (2 x 10.00) and B (1 x 5.00), shipping 5.00, VAT 6.00 (20%)."""
    order = DistributorOrder(
        company_id=company.id,
        user_email="buyer@printfinishers.example",
        user_name="Buyer",
        po_number="PO-7781",
        status="pending_review",
        billing_address_line_1="10 Billing Street",
        billing_city="Leeds",
        billing_postal_code="LS2 2BB",
        billing_country="GB",
        shipping_address_line_1="20 Warehouse Lane",
        shipping_city="Bradford",
        shipping_postal_code="BD1 1CC",
        shipping_country="GB",
        subtotal=Decimal("25.00"),
        predicted_shipping=Decimal("5.00"),
        vat_amount=Decimal("6.00"),
        total_amount=Decimal("36.00"),
    )
    order.items.append(
        DistributorOrderItem(
            product_code="QC-BLADE",
            description="Quad creaser blade",
            quantity=2,
            unit_price=Decimal("10.00"),
            line_total=Decimal("20.00"),
        )
    )
    order.items.append(
        DistributorOrderItem(
            product_code="MP-WHEEL",
            description="Micro perforator wheel",
            quantity=1,
            unit_price=Decimal("5.00"),
            line_total=Decimal("5.00"),
        )
    )
    db.session.add(order)
    db.session.commit()
    return order


@pytest.fixture
def item_ids(pending_order):
    first, second = pending_order.items
    return first.id, second.id


@pytest.fixture
def partial_body(item_ids):
    """A in stock, B back-ordered."""
    a, b = item_ids
    return {
        "item_statuses": {str(a): "in_stock", str(b): "back_order"},
        "back_order_dates": {str(b): "2026-12-01"},
        "back_order_notes": {str(b): "Supplier delay"},
    }

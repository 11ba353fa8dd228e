from orderdesk.extensions import db
from datetime import datetime

PENDING_REVIEW = "pending_review"
PARTIALLY_FULFILLED = "partially_fulfilled"
FULLY_FULFILLED = "fully_fulfilled"

ITEM_PENDING = "pending"
ITEM_FULFILLED = "fulfilled"
ITEM_BACK_ORDER = "back_order"

ADDRESS_FIELDS = ("line1", "line2", "city", "state", "postal_code", "country")


class DistributorOrder(db.Model):
    __tablename__ = "distributor_orders"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False)
    user_email = db.Column(db.String(255))
    user_name = db.Column(db.String(200))
    po_number = db.Column(db.String(100))
    status = db.Column(db.String(30), nullable=False, default=PENDING_REVIEW)

    # Addresses as submitted by the distributor
    billing_address_line_1 = db.Column(db.String(255))
    billing_address_line_2 = db.Column(db.String(255))
    billing_city = db.Column(db.String(100))
    billing_state_province = db.Column(db.String(100))
    billing_postal_code = db.Column(db.String(20))
    billing_country = db.Column(db.String(2))

    shipping_address_line_1 = db.Column(db.String(255))
    shipping_address_line_2 = db.Column(db.String(255))
    shipping_city = db.Column(db.String(100))
    shipping_state_province = db.Column(db.String(100))
    shipping_postal_code = db.Column(db.String(20))
    shipping_country = db.Column(db.String(2))

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    predicted_shipping = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    vat_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # Review outcome
    confirmed_shipping = db.Column(db.Numeric(12, 2))
    shipping_override_reason = db.Column(db.Text)
    admin_billing_override = db.Column(db.JSON)
    admin_shipping_override = db.Column(db.JSON)
    reviewed_by = db.Column(db.String(255))
    reviewed_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    items = db.relationship(
        "DistributorOrderItem",
        backref="order",
        cascade="all, delete-orphan",
        lazy=True,
        order_by="DistributorOrderItem.id",
    )

    def billing_address(self):
        return {
            "line1": self.billing_address_line_1,
            "line2": self.billing_address_line_2,
            "city": self.billing_city,
            "state": self.billing_state_province,
            "postal_code": self.billing_postal_code,
            "country": self.billing_country,
        }

    def shipping_address(self):
        return {
            "line1": self.shipping_address_line_1,
            "line2": self.shipping_address_line_2,
            "city": self.shipping_city,
            "state": self.shipping_state_province,
            "postal_code": self.shipping_postal_code,
            "country": self.shipping_country,
        }


class DistributorOrderItem(db.Model):
    __tablename__ = "distributor_order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer, db.ForeignKey("distributor_orders.id"), nullable=False
    )
    product_code = db.Column(db.String(50), nullable=False)
    description = db.Column(db.String(255))
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=ITEM_PENDING)

    fulfilled_invoice_id = db.Column(db.Integer)
    fulfilled_at = db.Column(db.DateTime)
    back_order_date = db.Column(db.DateTime)
    predicted_delivery_date = db.Column(db.Date)
    back_order_notes = db.Column(db.Text)

from orderdesk.extensions import db
from datetime import datetime

INVOICE_PENDING = "pending"
INVOICE_PAID = "paid"
INVOICE_VOID = "void"


class Invoice(db.Model):
    __tablename__ = "invoices"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False)
    # Plain reference, the order does not own its invoice
    order_id = db.Column(db.Integer, index=True)

    stripe_invoice_id = db.Column(db.String(100), unique=True)
    invoice_number = db.Column(db.String(100))
    invoice_date = db.Column(db.DateTime)
    due_date = db.Column(db.DateTime)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    shipping_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    currency = db.Column(db.String(3), default="GBP")
    status = db.Column(db.String(20), nullable=False, default=INVOICE_PENDING)

    billing_address = db.Column(db.JSON)
    shipping_address = db.Column(db.JSON)

    voided_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    items = db.relationship(
        "InvoiceItem",
        backref="invoice",
        cascade="all, delete-orphan",
        lazy=True,
        order_by="InvoiceItem.line_number",
    )
    company = db.relationship("Company", backref="invoices")


class InvoiceItem(db.Model):
    __tablename__ = "invoice_items"

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False)
    line_number = db.Column(db.Integer, nullable=False)
    order_item_id = db.Column(db.Integer)
    product_code = db.Column(db.String(50))
    description = db.Column(db.String(255))
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

from orderdesk.extensions import db
from datetime import datetime


class Company(db.Model):
    __tablename__ = "companies"

    id = db.Column(db.Integer, primary_key=True)
    company_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255))
    vat_number = db.Column(db.String(50))
    # Filled on first invoice, reused afterwards
    stripe_customer_id = db.Column(db.String(100))

    billing_address_line_1 = db.Column(db.String(255))
    billing_address_line_2 = db.Column(db.String(255))
    billing_city = db.Column(db.String(100))
    billing_state_province = db.Column(db.String(100))
    billing_postal_code = db.Column(db.String(20))
    billing_country = db.Column(db.String(2))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    orders = db.relationship("DistributorOrder", backref="company", lazy=True)

    def billing_address(self):
        """Default billing address, used where the order left a field blank."""
        return {
            "line1": self.billing_address_line_1,
            "line2": self.billing_address_line_2,
            "city": self.billing_city,
            "state": self.billing_state_province,
            "postal_code": self.billing_postal_code,
            "country": self.billing_country,
        }

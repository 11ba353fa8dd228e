from orderdesk.extensions import db
from datetime import datetime

INTENT_STARTED = "started"
INTENT_COMMITTED = "committed"
INTENT_FAILED = "failed"
INTENT_COMPENSATED = "compensated"
INTENT_COMPENSATION_FAILED = "compensation_failed"

# An order with one of these attempts on file cannot be approved again
UNRESOLVED_STATUSES = (INTENT_STARTED, INTENT_COMPENSATION_FAILED)


class ApprovalIntent(db.Model):
    """One approval attempt of a distributor order.

    Written before the first Stripe call and moved to ``committed`` in the
    same transaction as the local invoice rows, so any attempt left in
    another state points at an external invoice that may need voiding.
    """

    __tablename__ = "approval_intents"
    __table_args__ = (
        db.UniqueConstraint("order_id", "attempt", name="uq_approval_intent_attempt"),
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, nullable=False, index=True)
    attempt = db.Column(db.Integer, nullable=False)
    idempotency_key = db.Column(db.String(120), unique=True, nullable=False)
    status = db.Column(db.String(30), nullable=False, default=INTENT_STARTED)
    stripe_invoice_id = db.Column(db.String(100))
    reviewed_by = db.Column(db.String(255))
    error = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

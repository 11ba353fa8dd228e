from datetime import datetime, timedelta

from flask import current_app

from orderdesk.errors import ProviderError
from orderdesk.extensions import db
from orderdesk.models import ApprovalIntent
from orderdesk.models.approval import (
    INTENT_COMPENSATED,
    INTENT_COMPENSATION_FAILED,
    INTENT_FAILED,
    INTENT_STARTED,
)
from orderdesk.services.stripe_gateway import get_gateway

SWEEP_STATUSES = (INTENT_STARTED, INTENT_FAILED, INTENT_COMPENSATION_FAILED)


def _stale_intents(cutoff):
    return (
        ApprovalIntent.query.filter(
            ApprovalIntent.status.in_(SWEEP_STATUSES),
            ApprovalIntent.updated_at < cutoff,
        )
        .order_by(ApprovalIntent.id)
        .all()
    )


def _undo_external_invoice(gateway, intent, summary):
    """Returns True once nothing billable is left at Stripe for this intent."""
    invoice_id = intent.stripe_invoice_id
    remote = gateway.retrieve_invoice(invoice_id)
    status = remote["status"]

    if status == "draft":
        gateway.delete_draft_invoice(invoice_id)
        summary["deleted"] += 1
        return True
    if status == "open":
        gateway.void_invoice(invoice_id)
        summary["voided"] += 1
        return True
    if status == "void":
        summary["already_void"] += 1
        return True

    # paid / uncollectible: money may have moved, leave it to a person
    current_app.logger.critical(
        f"[reconcile] Intent {intent.id} (order {intent.order_id}): Stripe invoice "
        f"{invoice_id} is {status}, manual intervention required"
    )
    summary["needs_attention"] += 1
    return False


def reconcile_approval_intents(older_than_minutes=None, gateway=None):
    """Undo Stripe invoices of approval attempts that never committed locally."""
    gateway = gateway or get_gateway()
    if older_than_minutes is None:
        older_than_minutes = current_app.config["APPROVAL_RECONCILE_AFTER_MINUTES"]
    cutoff = datetime.utcnow() - timedelta(minutes=older_than_minutes)

    summary = {
        "checked": 0,
        "voided": 0,
        "deleted": 0,
        "already_void": 0,
        "abandoned": 0,
        "needs_attention": 0,
        "errors": 0,
    }

    for intent in _stale_intents(cutoff):
        summary["checked"] += 1

        if not intent.stripe_invoice_id:
            if intent.status == INTENT_STARTED:
                intent.status = INTENT_FAILED
                intent.error = "Abandoned before a Stripe invoice was created"
                summary["abandoned"] += 1
                db.session.commit()
            continue

        try:
            resolved = _undo_external_invoice(gateway, intent, summary)
        except ProviderError as e:
            summary["errors"] += 1
            if intent.status == INTENT_STARTED:
                intent.status = INTENT_COMPENSATION_FAILED
            intent.error = str(e)
            db.session.commit()
            continue

        if resolved:
            current_app.logger.info(
                f"[reconcile] Intent {intent.id} (order {intent.order_id}) compensated"
            )
            intent.status = INTENT_COMPENSATED
            db.session.commit()

    current_app.logger.info(f"[reconcile] Sweep finished: {summary}")
    return summary

from datetime import datetime
from flask import request, jsonify, current_app
from orderdesk.extensions import db
from orderdesk.models import Invoice, ActivityLog
from orderdesk.models.invoice import INVOICE_PAID, INVOICE_VOID
from orderdesk.schemas.order_schema import InvoiceSchema
from orderdesk.services.stripe_gateway import get_gateway
from orderdesk.controllers.shared.auth_controller import current_user
from orderdesk.errors import InvalidRequest, NotFound
from orderdesk.utils.pagination import paginate

invoice_schema = InvoiceSchema()
invoice_list_schema = InvoiceSchema(exclude=("items",))


def _get_invoice(invoice_id):
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFound("Invoice not found")
    return invoice


def list_invoices():
    status = request.args.get("status", "all")
    company_id = request.args.get("company_id", type=int)
    order_id = request.args.get("order_id", type=int)

    query = Invoice.query
    if status != "all":
        query = query.filter(Invoice.status == status)
    if company_id:
        query = query.filter(Invoice.company_id == company_id)
    if order_id:
        query = query.filter(Invoice.order_id == order_id)

    query = query.order_by(Invoice.created_at.desc(), Invoice.id.desc())
    return jsonify(paginate(query, invoice_list_schema)), 200


def get_invoice(invoice_id):
    return jsonify(invoice_schema.dump(_get_invoice(invoice_id))), 200


def void_invoice(invoice_id):
    invoice = _get_invoice(invoice_id)

    if invoice.status == INVOICE_VOID:
        raise InvalidRequest("Invoice is already voided")
    if invoice.status == INVOICE_PAID:
        raise InvalidRequest("Cannot void a paid invoice. Issue a refund instead.")
    if not invoice.stripe_invoice_id:
        raise InvalidRequest("Invoice does not have a Stripe invoice ID. Cannot void via Stripe.")

    gateway = get_gateway()
    remote = gateway.retrieve_invoice(invoice.stripe_invoice_id)
    if remote["status"] != "open":
        raise InvalidRequest(
            f'Cannot void invoice with status "{remote["status"]}". Only "open" invoices can be voided.'
        )

    gateway.void_invoice(invoice.stripe_invoice_id)

    invoice.status = INVOICE_VOID
    invoice.voided_at = datetime.utcnow()

    user = current_user()
    db.session.add(
        ActivityLog(
            user_id=user.id if user else None,
            user_email=user.email if user else None,
            user_name=user.full_name if user else None,
            action_type="invoice_voided",
            entity_type="invoice",
            entity_id=str(invoice.id),
            description=(
                f"Voided invoice {invoice.invoice_number or invoice.id} for "
                f"{invoice.company.company_name if invoice.company else 'Unknown Company'} "
                f"(£{invoice.total_amount})"
            ),
            details={
                "stripe_invoice_id": invoice.stripe_invoice_id,
                "company_id": invoice.company_id,
                "amount": float(invoice.total_amount or 0),
            },
        )
    )
    db.session.commit()

    current_app.logger.info(f"[void-invoice] Invoice {invoice.id} voided by {user.username if user else 'unknown'}")
    return (
        jsonify(
            {
                "success": True,
                "message": "Invoice voided successfully",
                "invoice_id": invoice.id,
                "stripe_invoice_id": invoice.stripe_invoice_id,
            }
        ),
        200,
    )

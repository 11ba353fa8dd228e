"""Distributor order approval.

Turns an admin's per-line stock decisions into a Stripe invoice for the
in-stock lines and records the outcome locally. Stripe has no way to join
a database transaction, so every attempt is tracked by an ApprovalIntent:

    started -> committed              (invoice sent, local rows written)
    started -> failed | compensated   (Stripe failed before finalization)
    started -> compensated            (local write failed, invoice voided)
    started -> compensation_failed    (local write failed, void failed too)

Anything left in ``started`` or ``compensation_failed`` is cleaned up by
``reconcile_approval_intents``.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from orderdesk.errors import Conflict, InvalidRequest, NotFound, PersistenceError, ProviderError
from orderdesk.extensions import db
from orderdesk.models import (
    ApprovalIntent,
    DistributorOrder,
    Invoice,
    InvoiceItem,
)
from orderdesk.models.approval import (
    INTENT_COMMITTED,
    INTENT_COMPENSATED,
    INTENT_COMPENSATION_FAILED,
    INTENT_FAILED,
    UNRESOLVED_STATUSES,
)
from orderdesk.models.distributor_order import (
    ADDRESS_FIELDS,
    FULLY_FULFILLED,
    ITEM_BACK_ORDER,
    ITEM_FULFILLED,
    PARTIALLY_FULFILLED,
    PENDING_REVIEW,
)
from orderdesk.schemas.approval_schema import BACK_ORDER, IN_STOCK
from orderdesk.services.stripe_gateway import get_gateway

TWO_PLACES = Decimal("0.01")


def _money(value):
    return Decimal(str(value or 0)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _cents(amount):
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _from_timestamp(ts):
    return datetime.fromtimestamp(ts, timezone.utc).replace(tzinfo=None) if ts else None


def _int_keys(mapping, label):
    try:
        return {int(k): v for k, v in (mapping or {}).items()}
    except (TypeError, ValueError):
        raise InvalidRequest(f"Invalid item id in {label}")


def load_pending_order(order_id):
    order = db.session.get(DistributorOrder, order_id)
    if order is None:
        raise NotFound("Order not found")
    if order.status != PENDING_REVIEW:
        raise Conflict("Order has already been reviewed")
    return order


def resolve_address(original, override, default=None):
    """Field-by-field: a non-blank override wins over the submitted value,
    which wins over the company default."""
    override = override or {}
    default = default or {}
    return {
        field: override.get(field) or original.get(field) or default.get(field)
        for field in ADDRESS_FIELDS
    }


def partition_items(items, item_statuses, back_order_dates):
    decisions = _int_keys(item_statuses, "item_statuses")
    dates = _int_keys(back_order_dates, "back_order_dates")

    known_ids = {item.id for item in items}
    unknown = sorted(set(decisions) - known_ids)
    if unknown:
        raise InvalidRequest(f"Items not on this order: {unknown}")

    in_stock = [item for item in items if decisions.get(item.id) == IN_STOCK]
    back_order = [item for item in items if decisions.get(item.id) == BACK_ORDER]

    if not in_stock:
        raise InvalidRequest("No items marked as in stock")

    undecided = [item.id for item in items if item.id not in decisions]
    if undecided:
        raise InvalidRequest(f"Missing stock decision for items: {undecided}")

    missing_dates = [item.id for item in back_order if not dates.get(item.id)]
    if missing_dates:
        raise InvalidRequest(
            f"Predicted delivery date required for back-ordered items: {missing_dates}"
        )

    return in_stock, back_order


def compute_totals(order, in_stock, confirmed_shipping=None):
    """Invoice totals for the in-stock lines.

    VAT is not recomputed from the customer's country or VAT number: the
    rate implied by the submitted order (vat / (subtotal + shipping)) is
    applied to the new taxable base.
    """
    subtotal = _money(sum((Decimal(item.line_total) for item in in_stock), Decimal("0")))
    if confirmed_shipping is not None:
        shipping = _money(confirmed_shipping)
    else:
        shipping = _money(order.predicted_shipping)

    original_taxable = Decimal(order.subtotal or 0) + Decimal(order.predicted_shipping or 0)
    if original_taxable > 0:
        vat_rate = Decimal(order.vat_amount or 0) / original_taxable
    else:
        vat_rate = Decimal("0")

    vat_amount = _money((subtotal + shipping) * vat_rate)
    return {
        "subtotal": subtotal,
        "shipping": shipping,
        "vat_rate": vat_rate,
        "vat_amount": vat_amount,
        "total": subtotal + shipping + vat_amount,
    }


def build_approval_plan(order, data):
    """Validate the review decisions and work out what would be invoiced.

    No writes happen here; both preview and approve go through it.
    """
    items = list(order.items)
    in_stock, back_order = partition_items(
        items, data["item_statuses"], data.get("back_order_dates")
    )

    confirmed_shipping = data.get("confirmed_shipping")
    if confirmed_shipping is not None:
        try:
            changed = _money(confirmed_shipping) != _money(order.predicted_shipping)
        except InvalidOperation:
            raise InvalidRequest("Invalid shipping amount")
        reason = (data.get("shipping_override_reason") or "").strip()
        if changed and not reason:
            raise InvalidRequest("A reason is required when overriding the shipping cost")

    totals = compute_totals(order, in_stock, confirmed_shipping)
    status = FULLY_FULFILLED if len(in_stock) == len(items) else PARTIALLY_FULFILLED

    return {
        "items": items,
        "in_stock": in_stock,
        "back_order": back_order,
        "back_order_dates": _int_keys(data.get("back_order_dates"), "back_order_dates"),
        "back_order_notes": _int_keys(data.get("back_order_notes"), "back_order_notes"),
        "billing_address": resolve_address(
            order.billing_address(),
            data.get("billing_override"),
            order.company.billing_address() if order.company else None,
        ),
        "shipping_address": resolve_address(order.shipping_address(), data.get("shipping_override")),
        "totals": totals,
        "status": status,
    }


def plan_summary(plan):
    totals = plan["totals"]
    return {
        "status": plan["status"],
        "in_stock_count": len(plan["in_stock"]),
        "back_order_count": len(plan["back_order"]),
        "subtotal": float(totals["subtotal"]),
        "shipping": float(totals["shipping"]),
        "vat_amount": float(totals["vat_amount"]),
        "total_amount": float(totals["total"]),
        "billing_address": plan["billing_address"],
        "shipping_address": plan["shipping_address"],
    }


def preview_approval(order_id, data):
    order = load_pending_order(order_id)
    return plan_summary(build_approval_plan(order, data))


# Intent bookkeeping


def idempotency_key_for(order_id, attempt):
    return f"distributor-order-{order_id}-approval-{attempt}"


def _begin_attempt(order, reviewed_by):
    unresolved = ApprovalIntent.query.filter(
        ApprovalIntent.order_id == order.id,
        ApprovalIntent.status.in_(UNRESOLVED_STATUSES),
    ).first()
    if unresolved is not None:
        raise Conflict(
            "A previous approval attempt for this order is still unresolved"
        )

    attempt = ApprovalIntent.query.filter_by(order_id=order.id).count() + 1
    intent = ApprovalIntent(
        order_id=order.id,
        attempt=attempt,
        idempotency_key=idempotency_key_for(order.id, attempt),
        reviewed_by=reviewed_by,
    )
    db.session.add(intent)
    try:
        db.session.commit()
    except IntegrityError:
        # Another reviewer claimed the same attempt number first
        db.session.rollback()
        raise Conflict("Order is already being reviewed")
    return intent


def _mark_intent(intent_id, status, error=None, stripe_invoice_id=None):
    try:
        intent = db.session.get(ApprovalIntent, intent_id)
        intent.status = status
        if error is not None:
            intent.error = error
        if stripe_invoice_id is not None:
            intent.stripe_invoice_id = stripe_invoice_id
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(
            f"[approve] Could not mark approval intent {intent_id} as {status}: {e}"
        )


def _record_external_invoice(intent, stripe_invoice_id):
    intent.stripe_invoice_id = stripe_invoice_id
    db.session.commit()


# Stripe side


def _ensure_customer(gateway, order, plan):
    company = order.company
    email = order.user_email or company.email

    if company.stripe_customer_id:
        gateway.update_customer(
            company.stripe_customer_id,
            name=company.company_name,
            email=email,
            billing_address=plan["billing_address"],
            shipping_address=plan["shipping_address"],
        )
        return company.stripe_customer_id

    customer_id = gateway.create_customer(
        name=company.company_name,
        email=email,
        billing_address=plan["billing_address"],
        shipping_address=plan["shipping_address"],
        metadata={"company_id": str(company.id), "source": "distributor_order"},
    )
    company.stripe_customer_id = customer_id
    try:
        db.session.commit()
    except SQLAlchemyError:
        current_app.logger.error(
            f"[approve] Stripe customer {customer_id} created for company {company.id} "
            f"but its id could not be saved"
        )
        raise
    return customer_id


def _attach_lines(gateway, customer_id, invoice_id, plan):
    for item in plan["in_stock"]:
        gateway.add_invoice_item(
            customer_id,
            invoice_id,
            description=f"{item.product_code} - {item.description}",
            amount_cents=_cents(item.unit_price),
            quantity=item.quantity,
        )

    totals = plan["totals"]
    if totals["shipping"] > 0:
        gateway.add_invoice_item(
            customer_id, invoice_id, description="Shipping", amount_cents=_cents(totals["shipping"])
        )
    if totals["vat_amount"] > 0:
        gateway.add_invoice_item(
            customer_id, invoice_id, description="VAT", amount_cents=_cents(totals["vat_amount"])
        )


def _abandon_attempt(gateway, intent_id, draft_id, err):
    """Stripe failed before finalization: nothing was sent to the customer."""
    if draft_id is None:
        _mark_intent(intent_id, INTENT_FAILED, error=str(err))
        return
    try:
        gateway.delete_draft_invoice(draft_id)
    except ProviderError as delete_err:
        current_app.logger.warning(
            f"[approve] Draft invoice {draft_id} left behind for reconciliation: {delete_err}"
        )
        _mark_intent(intent_id, INTENT_FAILED, error=str(err))
        return
    _mark_intent(intent_id, INTENT_COMPENSATED, error=str(err))


def _compensate(gateway, order_id, intent_id, stripe_invoice_id, err):
    """Void the already-finalized invoice. Never raises."""
    current_app.logger.error(
        f"[approve] Order {order_id}: recording approval failed after Stripe invoice "
        f"{stripe_invoice_id} was finalized: {err}"
    )
    try:
        gateway.void_invoice(stripe_invoice_id)
    except ProviderError as void_err:
        current_app.logger.critical(
            f"[approve] Order {order_id}: could not void Stripe invoice {stripe_invoice_id}, "
            f"manual intervention required: {void_err}"
        )
        _mark_intent(intent_id, INTENT_COMPENSATION_FAILED, error=f"{err}; void failed: {void_err}")
        return
    current_app.logger.warning(f"[approve] Order {order_id}: voided Stripe invoice {stripe_invoice_id}")
    _mark_intent(intent_id, INTENT_COMPENSATED, error=str(err))


# Local side


def persist_approval(order, plan, intent, finalized, reviewed_by, data):
    """Write the invoice, its lines and the review outcome in one transaction."""
    now = datetime.utcnow()
    totals = plan["totals"]

    invoice = Invoice(
        company_id=order.company_id,
        order_id=order.id,
        stripe_invoice_id=finalized["id"],
        invoice_number=finalized.get("number"),
        invoice_date=_from_timestamp(finalized.get("created")) or now,
        due_date=_from_timestamp(finalized.get("due_date")),
        subtotal=totals["subtotal"],
        shipping_amount=totals["shipping"],
        tax_amount=totals["vat_amount"],
        total_amount=totals["total"],
        currency=current_app.config["STRIPE_CURRENCY"].upper(),
        billing_address=plan["billing_address"],
        shipping_address=plan["shipping_address"],
    )
    db.session.add(invoice)
    db.session.flush()

    for line_number, item in enumerate(plan["in_stock"], start=1):
        db.session.add(
            InvoiceItem(
                invoice_id=invoice.id,
                line_number=line_number,
                order_item_id=item.id,
                product_code=item.product_code,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.line_total,
            )
        )

    # Conditional update so two reviewers cannot both move the order on
    claimed = (
        DistributorOrder.query.filter_by(id=order.id, status=PENDING_REVIEW).update(
            {
                "status": plan["status"],
                "reviewed_by": reviewed_by,
                "reviewed_at": now,
                "confirmed_shipping": data.get("confirmed_shipping"),
                "shipping_override_reason": data.get("shipping_override_reason"),
                "admin_billing_override": data.get("billing_override"),
                "admin_shipping_override": data.get("shipping_override"),
            },
            synchronize_session=False,
        )
    )
    if claimed != 1:
        raise Conflict("Order has already been reviewed")

    in_stock_ids = {item.id for item in plan["in_stock"]}
    for item in plan["items"]:
        if item.id in in_stock_ids:
            item.status = ITEM_FULFILLED
            item.fulfilled_invoice_id = invoice.id
            item.fulfilled_at = now
        else:
            item.status = ITEM_BACK_ORDER
            item.back_order_date = now
            item.predicted_delivery_date = plan["back_order_dates"].get(item.id)
            item.back_order_notes = plan["back_order_notes"].get(item.id) or None

    intent.status = INTENT_COMMITTED
    db.session.commit()
    return invoice


def approve_order(order_id, data, reviewed_by, gateway=None):
    gateway = gateway or get_gateway()

    order = load_pending_order(order_id)
    plan = build_approval_plan(order, data)

    intent = _begin_attempt(order, reviewed_by)
    intent_id = intent.id
    current_app.logger.info(
        f"[approve] Order {order_id} attempt {intent.attempt} by {reviewed_by}: "
        f"{len(plan['in_stock'])} in stock, {len(plan['back_order'])} back-ordered"
    )

    draft_id = None
    try:
        customer_id = _ensure_customer(gateway, order, plan)
        draft_id = gateway.create_invoice(
            customer_id,
            description=f"Distributor Order {order.id}",
            metadata={
                "order_id": str(order.id),
                "company_id": str(order.company_id),
                "po_number": order.po_number or "",
                "source": "distributor_order",
            },
            idempotency_key=intent.idempotency_key,
        )
        _record_external_invoice(intent, draft_id)
        _attach_lines(gateway, customer_id, draft_id, plan)
        finalized = gateway.finalize_invoice(draft_id)
    except ProviderError as e:
        _abandon_attempt(gateway, intent_id, draft_id, e)
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        _abandon_attempt(gateway, intent_id, draft_id, e)
        raise PersistenceError(f"Failed to record approval of order {order_id}") from e

    stripe_invoice_id = finalized["id"]
    try:
        gateway.send_invoice(stripe_invoice_id)
        invoice = persist_approval(order, plan, intent, finalized, reviewed_by, data)
    except Exception as e:
        db.session.rollback()
        _compensate(gateway, order_id, intent_id, stripe_invoice_id, e)
        if isinstance(e, SQLAlchemyError):
            raise PersistenceError(f"Failed to record approval of order {order_id}") from e
        raise

    current_app.logger.info(
        f"[approve] Order {order_id} approved: invoice {invoice.id} / {stripe_invoice_id}"
    )
    summary = plan_summary(plan)
    summary.update(
        {
            "success": True,
            "invoice_id": invoice.id,
            "external_invoice_id": stripe_invoice_id,
            "invoice_number": finalized.get("number"),
        }
    )
    return summary

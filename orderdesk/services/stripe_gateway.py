import stripe
from flask import current_app

from orderdesk.errors import ProviderError


def _clean_address(address):
    """Stripe rejects empty strings, so drop blank fields."""
    if not address:
        return None
    return {k: v for k, v in address.items() if v}


def _invoice_summary(invoice):
    return {
        "id": invoice.id,
        "number": getattr(invoice, "number", None),
        "status": getattr(invoice, "status", None),
        "created": getattr(invoice, "created", None),
        "due_date": getattr(invoice, "due_date", None),
    }


class StripeGateway:
    """The handful of Stripe calls the order desk depends on.

    Every method either returns plain ids/dicts or raises ProviderError, so
    callers never see stripe exceptions or StripeObjects.
    """

    def __init__(self, api_key, currency="gbp", days_until_due=30):
        self.api_key = api_key
        self.currency = currency
        self.days_until_due = days_until_due

    def _call(self, label, fn, *args, **kwargs):
        current_app.logger.info(f"[stripe] {label}")
        try:
            return fn(*args, api_key=self.api_key, **kwargs)
        except stripe.StripeError as e:
            current_app.logger.error(f"[stripe] {label} failed: {e}")
            raise ProviderError(f"Stripe {label} failed: {getattr(e, 'user_message', None) or e}")

    # Customers

    def create_customer(self, name, email, billing_address, shipping_address, metadata):
        customer = self._call(
            "customer create",
            stripe.Customer.create,
            name=name,
            email=email,
            address=_clean_address(billing_address),
            shipping={"name": name, "address": _clean_address(shipping_address)},
            metadata=metadata,
        )
        return customer.id

    def update_customer(self, customer_id, name, email, billing_address, shipping_address):
        self._call(
            f"customer update {customer_id}",
            stripe.Customer.modify,
            customer_id,
            email=email,
            address=_clean_address(billing_address),
            shipping={"name": name, "address": _clean_address(shipping_address)},
        )

    # Invoices

    def create_invoice(self, customer_id, description, metadata, idempotency_key=None):
        invoice = self._call(
            "invoice create",
            stripe.Invoice.create,
            customer=customer_id,
            collection_method="send_invoice",
            days_until_due=self.days_until_due,
            auto_advance=False,
            currency=self.currency,
            description=description,
            metadata=metadata,
            idempotency_key=idempotency_key,
        )
        return invoice.id

    def add_invoice_item(self, customer_id, invoice_id, description, amount_cents, quantity=None):
        """Attach a line. With a quantity the amount is the unit price."""
        params = {
            "customer": customer_id,
            "invoice": invoice_id,
            "description": description,
            "currency": self.currency,
        }
        if quantity is None:
            params["amount"] = amount_cents
        else:
            params["quantity"] = quantity
            params["unit_amount"] = amount_cents
        item = self._call(f"invoice item create on {invoice_id}", stripe.InvoiceItem.create, **params)
        return item.id

    def finalize_invoice(self, invoice_id):
        invoice = self._call(
            f"invoice finalize {invoice_id}",
            stripe.Invoice.finalize_invoice,
            invoice_id,
            auto_advance=False,
        )
        return _invoice_summary(invoice)

    def send_invoice(self, invoice_id):
        self._call(f"invoice send {invoice_id}", stripe.Invoice.send_invoice, invoice_id)

    def void_invoice(self, invoice_id):
        self._call(f"invoice void {invoice_id}", stripe.Invoice.void_invoice, invoice_id)

    def retrieve_invoice(self, invoice_id):
        invoice = self._call(f"invoice retrieve {invoice_id}", stripe.Invoice.retrieve, invoice_id)
        return _invoice_summary(invoice)

    def delete_draft_invoice(self, invoice_id):
        self._call(f"draft invoice delete {invoice_id}", stripe.Invoice.delete, invoice_id)


def get_gateway():
    gateway = current_app.extensions.get("payment_gateway")
    if gateway is None:
        gateway = StripeGateway(
            api_key=current_app.config["STRIPE_SECRET_KEY"],
            currency=current_app.config["STRIPE_CURRENCY"],
            days_until_due=current_app.config["INVOICE_DAYS_UNTIL_DUE"],
        )
        current_app.extensions["payment_gateway"] = gateway
    return gateway

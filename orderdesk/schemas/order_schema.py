from orderdesk.extensions import ma
from orderdesk.models.distributor_order import DistributorOrder, DistributorOrderItem
from orderdesk.models.invoice import Invoice, InvoiceItem


class DistributorOrderItemSchema(ma.SQLAlchemyAutoSchema):
    unit_price = ma.Float()
    line_total = ma.Float()

    class Meta:
        model = DistributorOrderItem
        include_fk = True


class DistributorOrderSchema(ma.SQLAlchemyAutoSchema):
    items = ma.Nested(DistributorOrderItemSchema, many=True)
    company_name = ma.String(attribute="company.company_name", dump_only=True)
    subtotal = ma.Float()
    predicted_shipping = ma.Float()
    vat_amount = ma.Float()
    total_amount = ma.Float()
    confirmed_shipping = ma.Float(allow_none=True)

    class Meta:
        model = DistributorOrder
        include_fk = True


class InvoiceItemSchema(ma.SQLAlchemyAutoSchema):
    unit_price = ma.Float()
    line_total = ma.Float()

    class Meta:
        model = InvoiceItem
        include_fk = True


class InvoiceSchema(ma.SQLAlchemyAutoSchema):
    items = ma.Nested(InvoiceItemSchema, many=True)
    company_name = ma.String(attribute="company.company_name", dump_only=True)
    subtotal = ma.Float()
    shipping_amount = ma.Float()
    tax_amount = ma.Float()
    total_amount = ma.Float()

    class Meta:
        model = Invoice
        include_fk = True

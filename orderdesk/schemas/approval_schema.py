from marshmallow import fields, pre_load, validate, EXCLUDE
from orderdesk.extensions import ma

IN_STOCK = "in_stock"
BACK_ORDER = "back_order"


class AddressOverrideSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    line1 = fields.String(allow_none=True)
    line2 = fields.String(allow_none=True)
    city = fields.String(allow_none=True)
    state = fields.String(allow_none=True)
    postal_code = fields.String(allow_none=True)
    country = fields.String(allow_none=True, validate=validate.Length(equal=2))

    @pre_load
    def blanks_to_none(self, data, **kwargs):
        # Review forms post untouched fields as ""
        if not isinstance(data, dict):
            return data
        return {
            k: (None if isinstance(v, str) and not v.strip() else v)
            for k, v in data.items()
        }


class ApprovalRequestSchema(ma.Schema):
    """Body of the approve and preview endpoints.

    Item ids arrive as JSON object keys, hence strings.
    """

    class Meta:
        unknown = EXCLUDE

    item_statuses = fields.Dict(
        keys=fields.String(),
        values=fields.String(validate=validate.OneOf([IN_STOCK, BACK_ORDER])),
        required=True,
    )
    back_order_dates = fields.Dict(
        keys=fields.String(), values=fields.Date(), load_default=dict
    )
    back_order_notes = fields.Dict(
        keys=fields.String(), values=fields.String(allow_none=True), load_default=dict
    )
    billing_override = fields.Nested(AddressOverrideSchema, allow_none=True, load_default=None)
    shipping_override = fields.Nested(AddressOverrideSchema, allow_none=True, load_default=None)
    confirmed_shipping = fields.Decimal(
        allow_none=True, load_default=None, places=2, validate=validate.Range(min=0)
    )
    shipping_override_reason = fields.String(allow_none=True, load_default=None)
    reviewed_by = fields.String(allow_none=True, load_default=None)

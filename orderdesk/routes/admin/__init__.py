from flask import Blueprint
from .distributor_order_routes import distributor_order_bp
from .invoice_routes import invoice_bp

admin_group_bp = Blueprint("admin_group", __name__)

# Register sub-blueprints
admin_group_bp.register_blueprint(distributor_order_bp, url_prefix="/distributor-orders")
admin_group_bp.register_blueprint(invoice_bp, url_prefix="/invoices")

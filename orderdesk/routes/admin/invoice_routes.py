from flask import Blueprint
from flask_jwt_extended import jwt_required
from orderdesk.controllers.admin import invoice_controller
from orderdesk.utils.decorators import roles_required

invoice_bp = Blueprint("invoices", __name__)


@invoice_bp.route("", methods=["GET"])
@jwt_required()
@roles_required("admin", "director")
def list_invoices():
    return invoice_controller.list_invoices()


@invoice_bp.route("/<int:invoice_id>", methods=["GET"])
@jwt_required()
@roles_required("admin", "director")
def get_invoice(invoice_id):
    return invoice_controller.get_invoice(invoice_id)


@invoice_bp.route("/<int:invoice_id>/void", methods=["POST"])
@jwt_required()
@roles_required("admin", "director")
def void_invoice(invoice_id):
    return invoice_controller.void_invoice(invoice_id)

from flask import Blueprint
from flask_jwt_extended import jwt_required
from orderdesk.controllers.admin import distributor_order_controller
from orderdesk.utils.decorators import roles_required

distributor_order_bp = Blueprint("distributor_orders", __name__)


@distributor_order_bp.route("", methods=["GET"])
@jwt_required()
@roles_required("admin", "director")
def list_orders():
    return distributor_order_controller.list_orders()


@distributor_order_bp.route("/<int:order_id>", methods=["GET"])
@jwt_required()
@roles_required("admin", "director")
def get_order(order_id):
    return distributor_order_controller.get_order(order_id)


@distributor_order_bp.route("/<int:order_id>/preview", methods=["POST"])
@jwt_required()
@roles_required("admin", "director")
def preview_order(order_id):
    return distributor_order_controller.preview_order(order_id)


@distributor_order_bp.route("/<int:order_id>/approve", methods=["POST"])
@jwt_required()
@roles_required("admin", "director")
def approve_order(order_id):
    return distributor_order_controller.approve_order(order_id)

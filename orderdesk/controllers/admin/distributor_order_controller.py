from flask import request, jsonify
from orderdesk.models import DistributorOrder
from orderdesk.models.distributor_order import PENDING_REVIEW
from orderdesk.schemas.approval_schema import ApprovalRequestSchema
from orderdesk.schemas.order_schema import DistributorOrderSchema
from orderdesk.services import order_approval
from orderdesk.controllers.shared.auth_controller import current_user
from orderdesk.errors import NotFound
from orderdesk.extensions import db
from orderdesk.utils.pagination import paginate

approval_schema = ApprovalRequestSchema()
order_schema = DistributorOrderSchema()
order_list_schema = DistributorOrderSchema(exclude=("items",))


def list_orders():
    status = request.args.get("status", PENDING_REVIEW)
    company_id = request.args.get("company_id", type=int)

    query = DistributorOrder.query
    if status != "all":
        query = query.filter(DistributorOrder.status == status)
    if company_id:
        query = query.filter(DistributorOrder.company_id == company_id)

    query = query.order_by(DistributorOrder.created_at.desc(), DistributorOrder.id.desc())
    return jsonify(paginate(query, order_list_schema)), 200


def get_order(order_id):
    order = db.session.get(DistributorOrder, order_id)
    if order is None:
        raise NotFound("Order not found")
    return jsonify(order_schema.dump(order)), 200


def preview_order(order_id):
    data = approval_schema.load(request.get_json(silent=True) or {})
    return jsonify(order_approval.preview_approval(order_id, data)), 200


def approve_order(order_id):
    data = approval_schema.load(request.get_json(silent=True) or {})

    reviewed_by = data.get("reviewed_by")
    if not reviewed_by:
        user = current_user()
        reviewed_by = user.email or user.username

    result = order_approval.approve_order(order_id, data, reviewed_by)
    return jsonify(result), 200

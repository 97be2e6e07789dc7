# Overview: Flask API routes for purchase operations; parses input and returns JSON responses.

# backend/stockroom/routes/purchases.py
"""
Purchase routes.

Every write moves product stock in the same transaction (see
inventory_service). Non-admins trade as themselves: naming another buyer
returns 403. Roles without VIEW_ALL_TRADES only see and change purchases
they recorded or bought.
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..models import Purchase
from ..responses import data_response, error_response, list_response
from ..services import inventory_service
from ..services.query_service import parse_list_args
from ..validation import ModelValidationPolicy, validate_payload
from .errors import domain_error_response

PURCHASE_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "firm_id", "buyer_id", "quantity", "purchase_price"},
    required_on_create={"product_id", "firm_id", "quantity", "purchase_price"},
)
PURCHASE_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"firm_id", "buyer_id", "quantity", "purchase_price"},
)

purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


def _handle(exc: Exception, action: str):
    resp = domain_error_response(exc)
    if resp is not None:
        return resp
    current_app.logger.exception("Failed to %s purchase", action)
    return error_response("Internal server error", 500)


@purchases_bp.get("")
@require_auth
def list_purchases():
    """Query params: filter[field], search[field], sort[field], limit, page"""
    try:
        lq = parse_list_args(request.args, Purchase, default_limit=current_app.config["PAGE_SIZE"])
        rows, details = inventory_service.list_purchases(g.current_user, lq)
    except Exception as e:
        return _handle(e, "list")
    return list_response([p.to_dict() for p in rows], details)


@purchases_bp.get("/<int:purchase_id>")
@require_auth
def get_purchase_route(purchase_id: int):
    try:
        purchase = inventory_service.get_purchase(g.current_user, purchase_id)
    except Exception as e:
        return _handle(e, "read")
    return data_response(purchase.to_dict())


@purchases_bp.post("")
@require_auth
def create_purchase_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Purchase, payload=payload, policy=PURCHASE_CREATE_POLICY, partial=False)
        purchase = inventory_service.record_purchase(
            g.current_user,
            product_id=patch["product_id"],
            quantity=patch["quantity"],
            purchase_price=patch["purchase_price"],
            firm_id=patch["firm_id"],
            buyer_id=patch.get("buyer_id"),
        )
    except Exception as e:
        return _handle(e, "record")
    return data_response(purchase.to_dict(), 201)


@purchases_bp.route("/<int:purchase_id>", methods=["PUT", "PATCH"])
@require_auth
def update_purchase_route(purchase_id: int):
    """Partial update; product_id cannot change."""
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Purchase, payload=payload, policy=PURCHASE_UPDATE_POLICY, partial=True)
        purchase = inventory_service.update_purchase(g.current_user, purchase_id, **patch)
    except Exception as e:
        return _handle(e, "update")
    return data_response(purchase.to_dict())


@purchases_bp.delete("/<int:purchase_id>")
@require_auth
def delete_purchase_route(purchase_id: int):
    try:
        inventory_service.delete_purchase(g.current_user, purchase_id)
    except Exception as e:
        return _handle(e, "delete")
    return {"error": False, "message": "Purchase deleted"}, 200

# Overview: Flask API routes for sell operations; parses input and returns JSON responses.

# backend/stockroom/routes/sells.py
"""
Sell routes.

Every write moves product stock in the same transaction (see
inventory_service). Non-admins trade as themselves: naming another seller
returns 403. Roles without VIEW_ALL_TRADES only see and change sells
they recorded or sold.
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..models import Sell
from ..responses import data_response, error_response, list_response
from ..services import inventory_service
from ..services.query_service import parse_list_args
from ..validation import ModelValidationPolicy, validate_payload
from .errors import domain_error_response

SELL_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "seller_id", "quantity", "sell_price"},
    required_on_create={"product_id", "quantity", "sell_price"},
)
SELL_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"seller_id", "quantity", "sell_price"},
)

sells_bp = Blueprint("sells", __name__, url_prefix="/api/sells")


def _handle(exc: Exception, action: str):
    resp = domain_error_response(exc)
    if resp is not None:
        return resp
    current_app.logger.exception("Failed to %s sell", action)
    return error_response("Internal server error", 500)


@sells_bp.get("")
@require_auth
def list_sells():
    """Query params: filter[field], search[field], sort[field], limit, page"""
    try:
        lq = parse_list_args(request.args, Sell, default_limit=current_app.config["PAGE_SIZE"])
        rows, details = inventory_service.list_sells(g.current_user, lq)
    except Exception as e:
        return _handle(e, "list")
    return list_response([s.to_dict() for s in rows], details)


@sells_bp.get("/<int:sell_id>")
@require_auth
def get_sell_route(sell_id: int):
    try:
        sell = inventory_service.get_sell(g.current_user, sell_id)
    except Exception as e:
        return _handle(e, "read")
    return data_response(sell.to_dict())


@sells_bp.post("")
@require_auth
def create_sell_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Sell, payload=payload, policy=SELL_CREATE_POLICY, partial=False)
        sell = inventory_service.record_sell(
            g.current_user,
            product_id=patch["product_id"],
            quantity=patch["quantity"],
            sell_price=patch["sell_price"],
            seller_id=patch.get("seller_id"),
        )
    except Exception as e:
        return _handle(e, "record")
    return data_response(sell.to_dict(), 201)


@sells_bp.route("/<int:sell_id>", methods=["PUT", "PATCH"])
@require_auth
def update_sell_route(sell_id: int):
    """Partial update; product_id cannot change. Growing a sell past the stock on hand returns 409."""
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Sell, payload=payload, policy=SELL_UPDATE_POLICY, partial=True)
        sell = inventory_service.update_sell(g.current_user, sell_id, **patch)
    except Exception as e:
        return _handle(e, "update")
    return data_response(sell.to_dict())


@sells_bp.delete("/<int:sell_id>")
@require_auth
def delete_sell_route(sell_id: int):
    try:
        inventory_service.delete_sell(g.current_user, sell_id)
    except Exception as e:
        return _handle(e, "delete")
    return {"error": False, "message": "Sell deleted"}, 200

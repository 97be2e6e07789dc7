# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/stockroom/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations require VIEW_CATALOG
- Create/update require MANAGE_CATALOG
- Delete requires DELETE_PRODUCTS (admin only)

Stock (quantity) can be given at creation only; afterwards it moves through
purchases and sells.
"""
from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_permission
from ..models import Product
from ..responses import data_response, error_response, list_response
from ..services import catalog_service
from ..services.query_service import parse_list_args
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=set(catalog_service.PRODUCT_CREATE_FIELDS),
    required_on_create={"name"},
)
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=set(catalog_service.PRODUCT_MUTABLE_FIELDS),
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("VIEW_CATALOG")
def list_products():
    """
    List products.

    Query params: filter[field], search[field], sort[field], limit, page
    """
    try:
        lq = parse_list_args(request.args, Product, default_limit=current_app.config["PAGE_SIZE"])
        rows, details = catalog_service.list_products(lq)
    except ValidationError as e:
        return error_response(str(e), 400)
    return list_response([p.to_dict() for p in rows], details)


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_CATALOG")
def get_product_route(product_id: int):
    """Single product; ?history=1 embeds the purchase/sell history."""
    include_history = request.args.get("history", "").lower() in ("1", "true", "yes")
    try:
        product = catalog_service.get_product(product_id)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return data_response(product.to_dict(include_history=include_history))


@products_bp.post("")
@require_auth
@require_permission("MANAGE_CATALOG")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        product = catalog_service.create_product(patch)
    except ValidationError as e:
        return error_response(str(e), 400)
    except NotFoundError as e:
        return error_response(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return error_response("Internal server error", 500)

    return data_response(product.to_dict(), 201)


@products_bp.route("/<int:product_id>", methods=["PUT", "PATCH"])
@require_auth
@require_permission("MANAGE_CATALOG")
def update_product_route(product_id: int):
    """Partial update; quantity is not writable here."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        product = catalog_service.update_product(product_id, patch)
    except ValidationError as e:
        return error_response(str(e), 400)
    except NotFoundError as e:
        return error_response(str(e), 404)
    except ConflictError as e:
        return error_response(str(e), 409)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return error_response("Internal server error", 500)

    return data_response(product.to_dict())


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("DELETE_PRODUCTS")
def delete_product_route(product_id: int):
    """Hard delete. Purchases and sells of the product are kept."""
    try:
        catalog_service.delete_product(product_id)
    except NotFoundError as e:
        return error_response(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return error_response("Internal server error", 500)

    return {"error": False, "message": "Product deleted"}, 200

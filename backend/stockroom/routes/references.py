# Overview: Flask API routes for categories, brands and firms; parses input and returns JSON responses.

# backend/stockroom/routes/references.py
"""
Reference tables share one set of handlers.

SECURITY: All routes require authentication.
- Read operations require VIEW_CATALOG
- Writes require MANAGE_CATALOG
- Deleting a record that products or purchases still point at returns 409
"""
from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_permission
from ..models import Brand, Category, Firm
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

REFERENCE_POLICIES = {
    Category: ModelValidationPolicy(
        writable_fields={"name", "description", "image"},
        required_on_create={"name"},
    ),
    Brand: ModelValidationPolicy(
        writable_fields={"name", "description", "image"},
        required_on_create={"name"},
    ),
    Firm: ModelValidationPolicy(
        writable_fields={"name", "phone", "address", "description", "image"},
        required_on_create={"name"},
    ),
}


def make_reference_blueprint(model, name: str) -> Blueprint:
    bp = Blueprint(name, __name__, url_prefix=f"/api/{name}")
    policy = REFERENCE_POLICIES[model]
    label = catalog_service.REFERENCE_LABELS[model]

    @bp.get("")
    @require_auth
    @require_permission("VIEW_CATALOG")
    def list_route():
        try:
            lq = parse_list_args(request.args, model, default_limit=current_app.config["PAGE_SIZE"])
            rows, details = catalog_service.list_references(model, lq)
        except ValidationError as e:
            return error_response(str(e), 400)
        return list_response([r.to_dict() for r in rows], details)

    @bp.get("/<int:ref_id>")
    @require_auth
    @require_permission("VIEW_CATALOG")
    def get_route(ref_id: int):
        try:
            obj = catalog_service.get_reference(model, ref_id)
        except NotFoundError as e:
            return error_response(str(e), 404)
        return data_response(obj.to_dict())

    @bp.post("")
    @require_auth
    @require_permission("MANAGE_CATALOG")
    def create_route():
        payload = request.get_json(silent=True) or {}
        try:
            patch = validate_payload(model=model, payload=payload, policy=policy, partial=False)
            obj = catalog_service.create_reference(model, patch)
        except ValidationError as e:
            return error_response(str(e), 400)
        except ConflictError as e:
            return error_response(str(e), 409)
        except Exception:
            current_app.logger.exception("Failed to create %s", label)
            return error_response("Internal server error", 500)
        return data_response(obj.to_dict(), 201)

    @bp.route("/<int:ref_id>", methods=["PUT", "PATCH"])
    @require_auth
    @require_permission("MANAGE_CATALOG")
    def update_route(ref_id: int):
        payload = request.get_json(silent=True) or {}
        try:
            patch = validate_payload(model=model, payload=payload, policy=policy, partial=True)
            obj = catalog_service.update_reference(model, ref_id, patch)
        except ValidationError as e:
            return error_response(str(e), 400)
        except NotFoundError as e:
            return error_response(str(e), 404)
        except ConflictError as e:
            return error_response(str(e), 409)
        except Exception:
            current_app.logger.exception("Failed to update %s", label)
            return error_response("Internal server error", 500)
        return data_response(obj.to_dict())

    @bp.delete("/<int:ref_id>")
    @require_auth
    @require_permission("MANAGE_CATALOG")
    def delete_route(ref_id: int):
        try:
            catalog_service.delete_reference(model, ref_id)
        except NotFoundError as e:
            return error_response(str(e), 404)
        except ConflictError as e:
            return error_response(str(e), 409)
        except Exception:
            current_app.logger.exception("Failed to delete %s", label)
            return error_response("Internal server error", 500)
        return {"error": False, "message": f"{label.capitalize()} deleted"}, 200

    return bp


categories_bp = make_reference_blueprint(Category, "categories")
brands_bp = make_reference_blueprint(Brand, "brands")
firms_bp = make_reference_blueprint(Firm, "firms")

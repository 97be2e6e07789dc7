# Overview: Flask API routes for analytics reports; parses input and returns JSON responses.

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..responses import data_response, error_response
from ..services import reporting_service
from ..services.permission_service import PermissionDeniedError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _range():
    return request.args.get("start"), request.args.get("end")


def _run(report_fn, *args, with_n: bool = False):
    """Call a reporting_service function with the common query params."""
    start, end = _range()
    try:
        kwargs = {"start": start, "end": end}
        if with_n:
            kwargs["n"] = reporting_service.parse_top_n(request.args.get("n"))
        report = report_fn(g.current_user, *args, **kwargs)
    except reporting_service.ReportError as exc:
        return error_response(str(exc), 400)
    except PermissionDeniedError as exc:
        return error_response(str(exc), 403)
    return data_response(report)


@reports_bp.get("/categories/<path:category_name>")
@require_auth
@require_permission("VIEW_REPORTS")
def category_summary_report(category_name: str):
    """Summary for one category, by display name."""
    return _run(reporting_service.category_report, category_name)


@reports_bp.get("/categories")
@require_auth
@require_permission("VIEW_REPORTS")
def categories_report():
    return _run(reporting_service.categories_report)


@reports_bp.get("/top-products")
@require_auth
@require_permission("VIEW_REPORTS")
def top_products_report():
    return _run(reporting_service.top_products_report, with_n=True)


@reports_bp.get("/top-buyers")
@require_auth
@require_permission("VIEW_REPORTS")
def top_buyers_report():
    return _run(reporting_service.top_buyers_report, with_n=True)


@reports_bp.get("/top-sellers")
@require_auth
@require_permission("VIEW_REPORTS")
def top_sellers_report():
    return _run(reporting_service.top_sellers_report, with_n=True)


@reports_bp.get("/top-profitable-products")
@require_auth
@require_permission("VIEW_REPORTS")
def top_profitable_products_report():
    return _run(reporting_service.top_profitable_products_report, with_n=True)


@reports_bp.get("/top-profit-people")
@require_auth
@require_permission("VIEW_REPORTS")
def top_profit_people_report():
    """Sellers ranked by realised profit on what they sold."""
    return _run(reporting_service.top_profit_people_report, with_n=True)


@reports_bp.get("/overview")
@require_auth
@require_permission("VIEW_REPORTS")
def overview_report():
    return _run(reporting_service.overview_report, with_n=True)

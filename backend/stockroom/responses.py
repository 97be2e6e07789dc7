# Overview: JSON envelope helpers shared by all blueprints.
#
# Every response carries an "error" flag. Failures add a human-readable
# "message"; list responses add "details" with the paging metadata.

from flask import jsonify


def error_response(message: str, status: int, **extra):
    body = {"error": True, "message": message}
    body.update(extra)
    return jsonify(body), status


def data_response(data, status: int = 200, **extra):
    body = {"error": False, "data": data}
    body.update(extra)
    return jsonify(body), status


def list_response(items, details: dict):
    return jsonify({"error": False, "details": details, "data": items}), 200

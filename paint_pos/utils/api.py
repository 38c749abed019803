"""
utils/api.py

Shared plumbing for the HTTP blueprints: per-request SQLite connection, request
body validation with pydantic, JSON error mapping and read-path degradation.
"""
from __future__ import annotations

import functools
import sqlite3
from typing import Any, Callable, Type, TypeVar

from flask import Flask, current_app, g, jsonify, request
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError
from werkzeug.exceptions import HTTPException

from paint_pos.database import connect
from paint_pos.database.repositories.errors import DomainError, ValidationError

M = TypeVar("M", bound=BaseModel)


def get_db() -> sqlite3.Connection:
    """One connection per request, closed on app-context teardown."""
    if "db" not in g:
        g.db = connect(current_app.config["DATABASE_PATH"])
    return g.db


def close_db(_exc: BaseException | None = None) -> None:
    conn = g.pop("db", None)
    if conn is not None:
        conn.close()


def parse_body(schema: Type[M]) -> M:
    """Validate the JSON body against `schema`; a non-object body is a ValidationError."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return schema.model_validate(data)


def parse_args(schema: Type[M]) -> M:
    """Validate query-string parameters against `schema` (blank values dropped)."""
    data = {k: v for k, v in request.args.items() if v != ""}
    return schema.model_validate(data)


def degrade_to(default: Callable[[], Any] | Any):
    """
    Read endpoints: a database failure is logged and answered with `default`
    (an empty list/object) instead of a 500, so dashboards keep rendering.
    """
    def deco(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except sqlite3.Error:
                current_app.logger.exception("Read failed in %s; returning empty result", fn.__name__)
                return jsonify(default() if callable(default) else default)
        return wrapper
    return deco


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(exc: DomainError):
        body = {"error": exc.message}
        if exc.details:
            body["details"] = exc.details
        return jsonify(body), exc.status_code

    @app.errorhandler(SchemaError)
    def _schema_error(exc: SchemaError):
        details = exc.errors(include_url=False, include_context=False, include_input=False)
        first = details[0] if details else {}
        loc = ".".join(str(p) for p in first.get("loc", ()))
        message = f"{loc}: {first.get('msg')}" if loc else (first.get("msg") or "Invalid request")
        return jsonify({"error": message, "details": details}), 400

    @app.errorhandler(404)
    def _not_found(_exc):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def _method_not_allowed(_exc):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.description}), exc.code
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500

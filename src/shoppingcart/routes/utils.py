from typing import Any, Optional

from flask import abort, jsonify, request
from marshmallow import Schema, ValidationError
from datetime import datetime, timezone

IDENTIFIER_HEADER = "X-Cart-Identifier"


def success_response(data, message: Optional[str] = None, status: int = 200):
    """Consistent success response envelope."""
    response = {
        "success": True,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if message:
        response["message"] = message
    return jsonify(response), status


def load_json(schema: Schema, many: Optional[bool] = False, required: bool = True) -> Any:
    """
    Validate the JSON body with a marshmallow schema, aborting with 400.

    many=None accepts either a single object or a list of objects.
    """
    body = request.get_json(silent=True)
    if body is None:
        if required:
            abort(400, "Content-Type must be application/json.")
        body = {}

    if many is None:
        many = isinstance(body, list)

    try:
        return schema.load(body, many=many)
    except ValidationError as err:
        abort(400, str(err.messages))


def get_cart_identifier() -> str:
    """Extract the stored-cart identifier from the X-Cart-Identifier header."""
    identifier = request.headers.get(IDENTIFIER_HEADER, "").strip()
    if not identifier:
        abort(400, f"Missing {IDENTIFIER_HEADER} header.")
    return identifier

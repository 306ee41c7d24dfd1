"""
Stakeholder Mapping & Reporting API
Blueprint registry and shared request helpers.
"""

from flask import request

from stakemap.utils.helpers import optional_int


def query_int(name: str):
    """Read an optional positive integer query parameter.

    Raises ValidationError (→ 400) on non-integer input.
    """
    return optional_int(request.args.get(name), name)


def json_body() -> dict:
    """Return the JSON body as a dict ({} when missing or not an object)."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

from flask import jsonify


def envelope(status: int, message: str, data=None):
    """Uniform response body: statusCode, message, data, success."""
    payload = {
        "statusCode": status,
        "message": message,
        "data": data,
        "success": status < 400,
    }
    return jsonify(payload), status

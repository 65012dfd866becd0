import uuid
from typing import Optional

from flask import jsonify

from planboard.exceptions import InvalidPayloadError


def parse_uuid(value: Optional[str], field: str = "id") -> uuid.UUID:
    """
    Преобразует строку в UUID.

    Raises:
        InvalidPayloadError: если значение не является UUID
    """
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        raise InvalidPayloadError(f"Invalid {field}: {value}")


def error_response(message: str, status: int):
    return jsonify({'error': message}), status

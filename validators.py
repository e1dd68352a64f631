from bson import ObjectId
from fastapi import Request

from errors import bad_request


def parse_object_id(value, message: str = "invalid id") -> ObjectId:
    """Return ``value`` as an ObjectId or raise a 400."""
    if not ObjectId.is_valid(value):
        raise bad_request(message)
    return ObjectId(value)


def validate_object_id(param_name: str = "id"):
    """Dependency rejecting requests whose ``param_name`` path segment is not an ObjectId."""

    def dependency(request: Request) -> None:
        parse_object_id(request.path_params.get(param_name), f"invalid {param_name}")

    return dependency

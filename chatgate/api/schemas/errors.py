"""Shared error response definitions for OpenAPI documentation."""

from .common import ErrorResponse

BASE_ERROR_RESPONSES = {
    500: {"model": ErrorResponse, "description": "Internal server error"},
    503: {"model": ErrorResponse, "description": "Storage temporarily unavailable, retry with backoff"},
}

USAGE_ERROR_RESPONSES = {
    **BASE_ERROR_RESPONSES,
    401: {"model": ErrorResponse, "description": "Missing or invalid credential"},
    404: {"model": ErrorResponse, "description": "No subscription; choose a plan"},
}

INCREMENT_ERROR_RESPONSES = {
    **USAGE_ERROR_RESPONSES,
    403: {"model": ErrorResponse, "description": "Daily limit reached or no active plan"},
}

ADMIN_ERROR_RESPONSES = {
    **BASE_ERROR_RESPONSES,
    400: {"model": ErrorResponse, "description": "Password missing"},
    401: {"model": ErrorResponse, "description": "Invalid credentials"},
}

CRON_ERROR_RESPONSES = {
    **BASE_ERROR_RESPONSES,
    401: {"model": ErrorResponse, "description": "Missing or wrong cron secret"},
}

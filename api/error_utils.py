"""
Standardized error handling utilities for EcoNova API endpoints.
Provides consistent error formats, HTTP status codes, and error codes across all endpoints.
"""

import logging
from flask import jsonify
from typing import Dict, Any, Optional

from exceptions import EcoNovaError
from models import OperationResult

# Standard error codes for consistent API responses
ERROR_CODES = {
    # Validation errors (400-499)
    "INVALID_REQUEST": "Invalid request body or parameters",
    "VALIDATION_ERROR": "Request validation failed",

    # Resource errors (400-499)
    "NOT_FOUND": "Resource not found",
    "USER_EXISTS": "A user with this id already exists",
    "RATE_LIMITED": "Too many requests",

    # System errors (500-599)
    "SERVER_ERROR": "Internal server error",
    "DATABASE_ERROR": "Database operation failed",
    "TASK_QUEUE_ERROR": "Error queuing background task",
    "EXTERNAL_SERVICE_ERROR": "External service unavailable",
}

# OperationResult / EcoNovaError code -> HTTP status
STATUS_FOR_CODE = {
    "INVALID_REQUEST": 400,
    "VALIDATION_ERROR": 400,
    "NOT_FOUND": 404,
    "USER_EXISTS": 409,
    "RATE_LIMITED": 429,
    "DATABASE_ERROR": 500,
    "TASK_QUEUE_ERROR": 500,
    "EXTERNAL_SERVICE_ERROR": 502,
}

def create_error_response(
    error_code: str,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    status_code: int = 500
) -> tuple:
    """
    Create a standardized error response with consistent format.

    Args:
        error_code: One of the standard ERROR_CODES keys
        message: Optional custom message (defaults to standard message)
        details: Optional additional error details
        status_code: HTTP status code

    Returns:
        Tuple of (JSON response, HTTP status code)
    """
    if error_code not in ERROR_CODES:
        logging.warning(f"Unknown error code used: {error_code}")
        error_code = "SERVER_ERROR"

    error_message = message or ERROR_CODES[error_code]

    response_data = {
        "error_code": error_code,
        "message": error_message
    }

    if details:
        response_data["details"] = details

    logging.error(f"API Error [{error_code}]: {error_message} - Status: {status_code}")

    return jsonify(response_data), status_code

def error_from_exception(e: EcoNovaError) -> tuple:
    return create_error_response(e.error_code, e.message, e.details,
                                 status_code=STATUS_FOR_CODE.get(e.error_code, e.status_code))

def result_response(result: OperationResult, success_status: int = 200) -> tuple:
    """Render an OperationResult: its data on success, the standard error body otherwise."""
    if result.success:
        return jsonify(result.data), success_status
    return create_error_response(result.error_code, result.message, result.details,
                                 status_code=STATUS_FOR_CODE.get(result.error_code, 500))

# Common error response shortcuts
def not_found_error(message: Optional[str] = None) -> tuple:
    return create_error_response("NOT_FOUND", message, status_code=404)

def bad_request_error(message: Optional[str] = None) -> tuple:
    return create_error_response("INVALID_REQUEST", message, status_code=400)

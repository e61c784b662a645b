"""
Application Exception Handling

Single AppException class for all application errors with FastAPI integration.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API.

    Usage:
        raise AppException("Product not found", "PRODUCT_NOT_FOUND", 404)
        raise AppException("Name taken", "CATEGORY_NAME_EXISTS", 409, {"name": "Dairy"})

    Error Codes:
        Product:
            - PRODUCT_NOT_FOUND (404)
            - PRODUCTS_NOT_FOUND (404, none of a batch of ids exist)

        Category:
            - CATEGORY_NOT_FOUND (404)
            - CATEGORIES_NOT_FOUND (404, none of a batch of ids exist)
            - CATEGORY_NAME_EXISTS (409)

        General:
            - INVALID_SORT_FIELD (400)
            - CONSTRAINT_VIOLATION (409)
            - VALIDATION_ERROR (422)
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "PRODUCT_NOT_FOUND")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """
    Translate store constraint violations into a 409 response.

    The services let IntegrityError propagate unchanged; this is the one
    place it becomes a transport-level error.
    """
    error = constraint_violation(str(exc.orig) if exc.orig is not None else str(exc))
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def product_not_found(product_id: int) -> AppException:
    """Create product not found exception."""
    return AppException(
        f"Product with id: {product_id} not found",
        "PRODUCT_NOT_FOUND",
        404,
        {"product_id": product_id}
    )


def products_not_found(product_ids: Iterable[int]) -> AppException:
    """Create exception for a batch where none of the ids exist."""
    ids = list(product_ids)
    return AppException(
        f"No products with ids: {ids} found",
        "PRODUCTS_NOT_FOUND",
        404,
        {"product_ids": ids}
    )


def category_not_found(category_id: int) -> AppException:
    """Create category not found exception."""
    return AppException(
        f"Category with id: {category_id} not found",
        "CATEGORY_NOT_FOUND",
        404,
        {"category_id": category_id}
    )


def categories_not_found(category_ids: Iterable[int]) -> AppException:
    """Create exception for a batch where none of the ids exist."""
    ids = list(category_ids)
    return AppException(
        f"No categories with ids: {ids} found",
        "CATEGORIES_NOT_FOUND",
        404,
        {"category_ids": ids}
    )


def category_name_exists(name: str) -> AppException:
    """Create category name already exists exception."""
    return AppException(
        f"Category '{name}' already exists",
        "CATEGORY_NAME_EXISTS",
        409,
        {"name": name}
    )


def invalid_sort_field(field: str, allowed: Iterable[str]) -> AppException:
    """Create invalid sort field exception."""
    return AppException(
        f"Cannot sort by '{field}'",
        "INVALID_SORT_FIELD",
        400,
        {"sort_by": field, "allowed": sorted(allowed)}
    )


def constraint_violation(reason: str) -> AppException:
    """Create store constraint violation exception."""
    return AppException(
        "Database constraint violated",
        "CONSTRAINT_VIOLATION",
        409,
        {"reason": reason}
    )

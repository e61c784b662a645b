"""
==============================================================================
Core Package
==============================================================================

Core utilities and infrastructure for the application.

This package provides:
- Custom exception handling with consistent error responses
- Exception factory functions for common error scenarios
- FastAPI dependencies (import ``productmanager.core.dependencies``
  directly; it depends on the service layer)

Usage:
------
    from productmanager.core import AppException, register_exception_handlers

    # Or use exception factory functions via module
    from productmanager.core import exceptions
    raise exceptions.product_not_found(42)

==============================================================================
"""

from . import exceptions
from .exceptions import (
    AppException,
    register_exception_handlers,
)

__all__ = [
    "exceptions",
    "AppException",
    "register_exception_handlers",
]

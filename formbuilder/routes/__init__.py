"""Routes package for FastAPI endpoints.

This package contains all API route modules for the forms builder.
"""

from formbuilder.routes import forms, health, sections

__all__ = ["forms", "health", "sections"]

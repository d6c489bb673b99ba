"""Iris Preview - FastAPI REST API layer.

This package contains the FastAPI application and the Pydantic response
models.

Modules
-------
main
    Application factory, routes, and the ``main()`` CLI entry point.
models
    Pydantic models for the JSON responses.
"""

"""Astro Image - FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request/response
models, and the request logging route class.

Modules
-------
main
    Application factory, route handlers and the ``main()`` CLI entry point.
models
    Pydantic models for API requests and the response envelopes.
request_logging
    Route class logging each request's arrival and completion.
"""

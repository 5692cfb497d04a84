"""StitchViz: FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request/response
models, and the prompt compilation logic.

Modules
-------
main
    FastAPI application factory, route handlers, and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request and response validation.
prompt_builder
    Crochet mockup prompt template compilation.
"""

"""Core logic for the API Spec Document Converter.

The Gradio UI lives in `app.py`. This package contains pure functions that:
- parse JSON/YAML OpenAPI specs
- flatten schemas into path rows and rebuild schemas from rows
- render specs to HTML documents and read them back
- score round-trip fidelity
"""

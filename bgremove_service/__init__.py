"""
Background removal upload service package.

Exposes the intake, processing and storage primitives behind the FastAPI
application that accepts an image and returns it without its background.
"""

"""Carousel slide generation package.

This package contains the building blocks behind the ``/carousel``
endpoint: downloading background photos, estimating text layout,
building the vector text overlay, compositing the final PNG, uploading
results to Google Drive and admitting requests through a per-client
rate limiter. See individual modules for details.
"""

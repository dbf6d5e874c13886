"""
Backend package for the photography portfolio API.

This package provides a FastAPI application with storage and database
abstractions: a catalog of images and categories, an upload pipeline with a
storage backend fallback chain, and the editable site configuration.
"""

"""
Service layer for business logic.

This package contains the service that orchestrates the CSV ingestion
pipeline: bounds checking, sanitization, extraction, normalization and
persistence.
"""

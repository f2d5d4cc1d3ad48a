"""
Core processing modules for CSV transaction ingestion.

This package contains:
- bounds: Byte-size and row-count ceilings
- categorize: Rule-based categorization
- config: Application configuration and settings
- db: Ledger store access layer
- exceptions: Error taxonomy
- logger: Logging configuration
- normalize: Extracted record to ledger row mapping
- sanitize: Formula-injection guard
- schema: Pydantic models for data validation
"""

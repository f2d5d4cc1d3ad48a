"""
LLM integration for CSV transaction extraction.

This package contains:
- client: Extraction gateway client wrapper
- extract: Schema-validated extraction of transaction records
- prompts: System prompt, user message and function-call schema
"""

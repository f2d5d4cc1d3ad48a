"""
Prompts and function-call schema for CSV transaction extraction.
"""
from typing import Any, Dict

from core.schema import SanitizedCsv

TOOL_NAME = "parse_transactions"

SYSTEM_PROMPT = (
    "Extract transactions from CSV. Return date (YYYY-MM-DD), description, "
    "amount (positive credit, negative debit), and vendor if possible. "
    "Only return a category if the CSV states one. Do NOT invent categories. "
    "Cells may start with a single quote; ignore it when reading values."
)


def build_system_prompt() -> str:
    """Return the fixed extraction instruction."""
    return SYSTEM_PROMPT


def build_user_message(csv: SanitizedCsv) -> str:
    """
    Build the user message embedding the sanitized CSV.

    Args:
        csv: Sanitized CSV lines

    Returns:
        Message text
    """
    return f"Parse this CSV data and extract transactions.\n\nCSV Data:\n{csv.text}"


def create_tool_schema() -> Dict[str, Any]:
    """
    Create the function tool the service is forced to call.

    Returns:
        OpenAI-style tool definition
    """
    return {
        "type": "function",
        "function": {
            "name": TOOL_NAME,
            "description": "Parse bank transactions from CSV",
            "parameters": {
                "type": "object",
                "properties": {
                    "transactions": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "date": {
                                    "type": "string",
                                    "description": "Transaction date as YYYY-MM-DD",
                                },
                                "description": {"type": "string"},
                                "amount": {
                                    "type": "number",
                                    "description": "Signed amount, negative for money out",
                                },
                                "category": {"type": "string"},
                                "vendor": {"type": "string"},
                            },
                            "required": ["date", "description", "amount"],
                        },
                    }
                },
                "required": ["transactions"],
            },
        },
    }

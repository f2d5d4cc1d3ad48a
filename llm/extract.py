"""
CSV-to-records extraction through the structured function-call contract.
"""
from typing import Optional

from pydantic import ValidationError

from core.exceptions import ExtractionContractViolation
from core.logger import setup_logger
from core.schema import ExtractionResult, SanitizedCsv
from llm.client import ExtractionClient
from llm.prompts import build_system_prompt, build_user_message, create_tool_schema

logger = setup_logger(__name__)


def extract_transactions(
    csv: SanitizedCsv,
    client: Optional[ExtractionClient] = None,
) -> ExtractionResult:
    """
    Turn sanitized CSV text into validated transaction records.

    The service is asked to answer through a forced function call, but its
    payload is still treated as untrusted until it validates.

    Args:
        csv: Sanitized CSV lines
        client: Extraction client (a new one is created if omitted)

    Returns:
        Validated extraction result

    Raises:
        ConfigurationError: If the service credential is missing
        ExtractionServiceError: If the call fails
        ExtractionContractViolation: If the payload does not match the schema
    """
    client = client or ExtractionClient()

    logger.info(f"Requesting extraction for {len(csv)} CSV lines")
    arguments = client.call_with_function(
        system_prompt=build_system_prompt(),
        user_message=build_user_message(csv),
        tool=create_tool_schema(),
    )

    try:
        result = ExtractionResult.model_validate(arguments)
    except ValidationError as e:
        logger.error(f"Extraction payload failed validation: {e.error_count()} errors")
        raise ExtractionContractViolation(
            "Extraction payload does not match the transaction schema",
            details={"errors": e.errors(include_input=False)},
        )

    logger.info(f"Extracted {len(result.transactions)} transactions")
    return result

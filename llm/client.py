"""
Extraction service client using direct REST calls to an OpenAI-compatible gateway.
Issues exactly one request per call; retry policy belongs to the caller.
"""
import json
from typing import Any, Dict, Optional

import requests
import urllib3

from core.config import get_settings
from core.exceptions import (
    ConfigurationError,
    ExtractionContractViolation,
    ExtractionServiceError,
)
from core.logger import setup_logger

logger = setup_logger(__name__)


class ExtractionClient:
    """Wrapper for the chat-completions API with a forced function call."""

    def __init__(self):
        """Initialize REST API client."""
        settings = get_settings()
        if not settings.extraction_api_key:
            raise ConfigurationError(
                "EXTRACTION_API_KEY environment variable not set",
                details={"required_key": "EXTRACTION_API_KEY"}
            )

        self.gateway_url = settings.extraction_gateway_url
        self.api_key = settings.extraction_api_key
        self.model = settings.extraction_model
        self.timeout = settings.extraction_timeout
        self.verify_ssl = settings.extraction_verify_ssl

        if not self.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        logger.info(f"Initialized extraction client with model: {self.model}")

    def call_with_function(
        self,
        system_prompt: str,
        user_message: str,
        tool: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Call the gateway and return the decoded arguments of the forced function call.

        Args:
            system_prompt: System instruction
            user_message: User message with CSV data
            tool: Function tool definition the model must call

        Returns:
            Decoded function-call arguments (not yet schema-validated)

        Raises:
            ExtractionServiceError: On network failure, timeout or non-2xx status
            ExtractionContractViolation: If no well-formed function call is returned
        """
        tool_name = tool["function"]["name"]
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "tools": [tool],
            "tool_choice": {"type": "function", "function": {"name": tool_name}},
        }

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}"
        }

        try:
            response = requests.post(
                self.gateway_url,
                headers=headers,
                data=json.dumps(payload),
                verify=self.verify_ssl,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Extraction request timeout after {self.timeout}s: {e}")
            raise ExtractionServiceError(
                f"Extraction request timeout after {self.timeout}s",
                details={"timeout": self.timeout}
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Extraction request failed: {e}")
            raise ExtractionServiceError(
                "Failed to connect to extraction service",
                details={"error": str(e)}
            )

        if not response.ok:
            logger.error(
                f"Extraction service returned HTTP {response.status_code}: {response.text[:500]}"
            )
            raise ExtractionServiceError(
                f"Extraction service returned HTTP {response.status_code}",
                details={"status_code": response.status_code}
            )

        return self._parse_function_arguments(response, tool_name)

    def _parse_function_arguments(self, response: requests.Response, tool_name: str) -> Dict[str, Any]:
        try:
            completion_data = response.json()
        except ValueError as e:
            raise ExtractionContractViolation(
                "Extraction service returned a non-JSON body",
                details={"error": str(e)}
            )

        tool_call = self._first_tool_call(completion_data)
        if tool_call is None:
            keys = list(completion_data.keys()) if isinstance(completion_data, dict) else None
            logger.error(f"No function call in extraction response, keys: {keys}")
            raise ExtractionContractViolation("No structured data returned from extraction service")

        function = tool_call.get("function") or {}
        if function.get("name") not in (None, tool_name):
            raise ExtractionContractViolation(
                "Extraction service called an unexpected function",
                details={"function": function.get("name")}
            )

        arguments = function.get("arguments")
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments)
            except json.JSONDecodeError as e:
                raise ExtractionContractViolation(
                    "Function-call arguments are not valid JSON",
                    details={"error": str(e)}
                )

        if not isinstance(arguments, dict):
            raise ExtractionContractViolation(
                "Function-call arguments are not a JSON object",
                details={"type": type(arguments).__name__}
            )

        usage = completion_data.get("usage")
        if isinstance(usage, dict):
            logger.debug(
                f"Token usage - Input: {usage.get('prompt_tokens', 'N/A')}, "
                f"Output: {usage.get('completion_tokens', 'N/A')}"
            )

        return arguments

    @staticmethod
    def _first_tool_call(completion_data: Any) -> Optional[Dict[str, Any]]:
        try:
            tool_calls = completion_data["choices"][0]["message"]["tool_calls"]
            call = tool_calls[0]
        except (KeyError, IndexError, TypeError):
            return None
        return call if isinstance(call, dict) else None

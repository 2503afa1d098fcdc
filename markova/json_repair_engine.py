"""
JSON Repair Engine for structured model output
Tries progressively more lenient strategies: direct parsing, extraction of the
outermost JSON object from wrapped text, then the json-repair library.
Unlike free-form text generation there is no default fallback: a response that
cannot be parsed into an object with the required keys is rejected.
"""
import json
import logging
from typing import Dict, Any, Optional, Iterable, List
from json_repair import repair_json

from markova.core.domain.errors import NoOutputError, IncompleteOutputError


logger = logging.getLogger(__name__)


class JSONRepairEngine:
    """
    Multi-layered JSON repair engine for model responses
    """

    def __init__(self):
        self.repair_attempts = 0
        self.strategies_used: List[str] = []

    def repair_json_response(self, response: str, required_keys: Iterable[str] = ()) -> Dict[str, Any]:
        """
        Main entry point for JSON repair with multiple fallback strategies
        Returns the parsed object or raises NoOutputError
        """
        self.repair_attempts += 1
        self.strategies_used = []
        required_keys = tuple(required_keys)

        if not response or not response.strip():
            raise NoOutputError("Model returned an empty response")

        logger.info("Starting JSON repair process", extra={
            "response_length": len(response),
            "attempt": self.repair_attempts
        })

        strategies = [
            ("direct_parse", self._strategy_direct_parse),
            ("extract_json", self._strategy_extract_json),
            ("json_repair_lib", self._strategy_json_repair_lib),
        ]

        parsed = None
        for name, strategy in strategies:
            try:
                parsed = strategy(response)
            except (ValueError, TypeError) as e:
                logger.debug("JSON strategy failed", extra={"strategy": name, "error": str(e)})
                parsed = None
            if parsed is not None:
                self.strategies_used.append(name)
                break

        if parsed is None:
            logger.warning("All repair strategies failed", extra={
                "response_preview": response[:300]
            })
            raise NoOutputError("Model response was not valid JSON")

        missing = [key for key in required_keys if key not in parsed]
        if missing:
            raise IncompleteOutputError(
                f"Model response is missing required fields: {', '.join(missing)}",
                missing_fields=missing
            )
        return parsed

    def _strategy_direct_parse(self, response: str) -> Optional[Dict[str, Any]]:
        """Strategy 1: Try parsing the response directly"""
        parsed_data = json.loads(response)
        return parsed_data if isinstance(parsed_data, dict) else None

    def _strategy_extract_json(self, response: str) -> Optional[Dict[str, Any]]:
        """Strategy 2: Extract the outermost object from fenced or chatty output"""
        start_idx = response.find('{')
        if start_idx == -1:
            return None

        brace_count = 0
        in_string = False
        escaped = False
        end_idx = -1

        for i in range(start_idx, len(response)):
            char = response[i]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == '{':
                brace_count += 1
            elif char == '}':
                brace_count -= 1
                if brace_count == 0:
                    end_idx = i
                    break

        if end_idx == -1:
            return None

        parsed_data = json.loads(response[start_idx:end_idx + 1])
        return parsed_data if isinstance(parsed_data, dict) else None

    def _strategy_json_repair_lib(self, response: str) -> Optional[Dict[str, Any]]:
        """Strategy 3: Use the json-repair library"""
        repaired = repair_json(response, return_objects=True)
        return repaired if isinstance(repaired, dict) and repaired else None

    def get_stats(self) -> Dict[str, Any]:
        """Get repair engine statistics"""
        return {
            "total_attempts": self.repair_attempts,
            "last_strategies_used": self.strategies_used,
            "strategies_available": ["direct_parse", "extract_json", "json_repair_lib"]
        }


def parse_model_json(response: str, required_keys: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Parse a model's JSON response, repairing it when needed
    Raises NoOutputError when nothing usable can be recovered
    """
    engine = JSONRepairEngine()
    result = engine.repair_json_response(response, required_keys)

    logger.info("JSON repair successful", extra={
        "strategies_used": engine.strategies_used,
        "result_keys": list(result.keys())
    })

    return result

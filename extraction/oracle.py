"""Activity extraction oracle.

The language model is treated as an untrusted oracle: it returns zero or
more loosely structured candidate dicts and everything it says is
re-validated downstream.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Protocol

import openai

from core.config import REPO_ROOT, Settings, get_settings
from core.errors import InputValidationError, UpstreamTimeoutError
from core.observability.logging import get_logger
from models.activity import ActivityKind, Animal, FeedUnit


logger = get_logger(__name__)

PROMPTS_DIR = REPO_ROOT / "prompts"
PROMPT_NAME = "farmhand_activity_prompt.txt"


def read_prompt(name: str) -> str:
    """Read a prompt template from the prompts directory."""
    return (PROMPTS_DIR / name).read_text(encoding="utf-8")


def build_log_activity_tool(animal_known: bool) -> Dict[str, Any]:
    """Function-tool schema for one extracted activity."""
    return {
        "type": "function",
        "function": {
            "name": "log_activity",
            "description": "Log one farmhand activity with extracted details",
            "parameters": {
                "type": "object",
                "properties": {
                    "activity_type": {
                        "type": "string",
                        "enum": [kind.value for kind in ActivityKind],
                    },
                    "animal_identifier": {
                        "type": "string",
                        "description": (
                            "Only if the farmhand names a DIFFERENT animal than the selected one"
                            if animal_known else "Ear tag and/or name as spoken"
                        ),
                    },
                    "quantity": {"type": "number", "description": "Count of units as spoken"},
                    "unit": {"type": "string", "enum": [unit.value for unit in FeedUnit]},
                    "feed_type": {"type": "string", "description": "Feed material, or omit if not said"},
                    "medicine_name": {"type": "string"},
                    "dosage": {"type": "string"},
                    "notes": {"type": "string"},
                    "date_reference": {"type": "string", "description": "Date phrase verbatim"},
                    "livestock_type": {"type": "string", "enum": ["cattle", "goat", "carabao", "sheep"]},
                },
                "required": ["activity_type"],
            },
        },
    }


class ExtractionOracle(Protocol):
    """Turns a transcription into candidate activity dicts."""

    async def extract(self, transcription: str, animal_context: Optional[Animal] = None) -> List[Dict[str, Any]]:
        ...


class OpenAIExtractionOracle:
    """Extraction through OpenAI chat completions with tool calls.

    Each log_activity tool call becomes one candidate.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[openai.AsyncOpenAI] = None):
        self.settings = settings or get_settings()
        self.client = client or openai.AsyncOpenAI(
            api_key=self.settings.openai_api_key,
            base_url=self.settings.openai_base_url,
            timeout=self.settings.llm_timeout_seconds,
            max_retries=2,
        )
        self.model = self.settings.openai_model
        self._system_prompt: Optional[str] = None

    @property
    def system_prompt(self) -> str:
        if self._system_prompt is None:
            self._system_prompt = read_prompt(PROMPT_NAME)
        return self._system_prompt

    def _messages(self, transcription: str, animal_context: Optional[Animal]) -> List[Dict[str, str]]:
        system = self.system_prompt
        if animal_context is not None:
            system += (
                f"\n\nThe farmhand already selected animal {animal_context.label}. "
                "Only set animal_identifier if they name a different animal."
            )
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": f'Extract activity information from: "{transcription}"'},
        ]

    async def extract(self, transcription: str, animal_context: Optional[Animal] = None) -> List[Dict[str, Any]]:
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=self._messages(transcription, animal_context),
                    tools=[build_log_activity_tool(animal_context is not None)],
                    tool_choice="required",
                    temperature=0,
                ),
                timeout=self.settings.llm_timeout_seconds,
            )
        except (asyncio.TimeoutError, openai.APITimeoutError, openai.APIConnectionError, openai.RateLimitError) as e:
            logger.warning(f"Extraction call failed: {type(e).__name__}")
            raise UpstreamTimeoutError("extraction service") from e
        except openai.InternalServerError as e:
            logger.warning(f"Extraction service error: {e}")
            raise UpstreamTimeoutError("extraction service") from e

        message = response.choices[0].message if response.choices else None
        tool_calls = (message.tool_calls or []) if message else []

        candidates = []
        for call in tool_calls:
            if call.function.name != "log_activity":
                continue
            try:
                arguments = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError as e:
                raise InputValidationError(
                    [f"extraction returned malformed arguments: {e.msg}"],
                    code="EXTRACTION_PARSE_ERROR",
                ) from e
            candidates.append(arguments)

        logger.info(f"Extracted {len(candidates)} candidate(s)", extra_fields={"model": self.model})
        return candidates

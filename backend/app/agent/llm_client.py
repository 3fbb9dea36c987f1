import json
import logging
import re
from typing import Any, TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from app.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class LLMConfigurationError(RuntimeError):
    """Raised when no API key is available for the generation endpoint."""


def _extract_fenced_block(text: str) -> str | None:
    blocks = re.findall(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL | re.IGNORECASE)
    return blocks[0].strip() if blocks else None


def _extract_balanced_json_span(text: str) -> str | None:
    """Best-effort extraction of the first balanced top-level JSON object."""
    if not text:
        return None

    start_idx = text.find("{")
    if start_idx == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i in range(start_idx, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start_idx:i + 1]
    return None


def _structured_text_candidates(raw_text: str) -> list[str]:
    text = (raw_text or "").strip()
    if not text:
        return []

    candidates: list[str] = []
    fenced = _extract_fenced_block(text)
    if fenced:
        candidates.append(fenced)
        balanced_fenced = _extract_balanced_json_span(fenced)
        if balanced_fenced:
            candidates.append(balanced_fenced)

    candidates.append(text)

    balanced = _extract_balanced_json_span(text)
    if balanced:
        candidates.append(balanced)

    # Deduplicate while preserving order.
    seen = set()
    unique: list[str] = []
    for candidate in candidates:
        c = candidate.strip()
        if not c or c in seen:
            continue
        seen.add(c)
        unique.append(c)
    return unique


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """Locate the first `{...}` object in free-form model output and parse it.

    Returns None when no candidate parses to a JSON object.
    """
    for candidate in _structured_text_candidates(text or ""):
        try:
            parsed = json.loads(candidate, strict=False)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


class LLMClient:
    """LLM client for structured generation against any OpenAI-compatible endpoint."""

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        self.model_name = model_name or settings.MODEL_DEFAULT

        resolved_api_key = api_key or settings.LLM_API_KEY
        if not resolved_api_key:
            raise LLMConfigurationError("LLM_API_KEY is not configured")
        resolved_base_url = base_url or settings.LLM_BASE_URL

        self.client = AsyncOpenAI(
            base_url=resolved_base_url,
            api_key=resolved_api_key,
            timeout=timeout or settings.LLM_TIMEOUT_SECONDS,
        )

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        response_schema: type[T],
        *,
        temperature: float = 0.7,
    ) -> T:
        """
        Generate a structured response matching the provided Pydantic schema.
        Injects the schema requirement into the system prompt and retries once
        with stricter instructions when the output cannot be parsed.
        """
        schema_json = json.dumps(response_schema.model_json_schema())

        augmented_system_prompt = (
            f"{system_prompt}\n\n"
            "Respond with ONLY valid JSON matching the following JSON Schema. "
            "Do not wrap it in markdown code blocks or add conversational text.\n\n"
            f"EXPECTED SCHEMA:\n{schema_json}"
        )

        attempt_prompts = [
            augmented_system_prompt,
            (
                f"{augmented_system_prompt}\n\n"
                "RETRY INSTRUCTIONS: Your previous response was invalid or incomplete. "
                "Return ONLY a single JSON object matching the schema."
            ),
        ]

        for attempt_idx, system_prompt_attempt in enumerate(attempt_prompts, start=1):
            try:
                logger.info(
                    "Issuing structured request to model %s (attempt %s/%s)...",
                    self.model_name,
                    attempt_idx,
                    len(attempt_prompts),
                )
                response = await self.client.chat.completions.create(
                    model=self.model_name,
                    messages=[
                        {"role": "system", "content": system_prompt_attempt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=0 if attempt_idx > 1 else temperature,
                )

                if not getattr(response, "choices", None):
                    logger.error("Received no choices from %s: %s", self.model_name, response)
                    raise ValueError(f"Provider {self.model_name} returned no output")

                text_response = response.choices[0].message.content or ""
                parsed_data = extract_json_object(text_response)
                if parsed_data is None:
                    raise ValueError("Model response did not contain a JSON object")
                return response_schema.model_validate(parsed_data)

            except (ValidationError, ValueError) as e:
                if attempt_idx < len(attempt_prompts):
                    logger.warning(
                        "Structured parsing failed for %s on attempt %s/%s: %s. Retrying...",
                        self.model_name,
                        attempt_idx,
                        len(attempt_prompts),
                        e,
                    )
                    continue
                logger.error("Error parsing structured LLM response from %s: %s", self.model_name, e)
                raise
            except Exception as e:
                logger.error("Error calling LLM provider %s: %s", self.model_name, e)
                raise

        raise RuntimeError("Structured generation failed without a captured error")

"""Structured generation backed by an OpenAI-compatible chat API."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol, TypeVar

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from media_agent.config import SessionConfig
from media_agent.errors import ProviderError, SchemaError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class StructuredProvider(Protocol):
    def generate(
        self,
        response_model: type[ModelT],
        messages: list[dict[str, Any]],
        max_retries: int = 0,
    ) -> ModelT: ...


def _response_format(response_model: type[BaseModel]) -> dict[str, Any]:
    response_format = getattr(response_model, "RESPONSE_FORMAT", None)
    if response_format:
        return response_format
    return {
        "type": "json_schema",
        "json_schema": {
            "name": response_model.__name__.lower(),
            "schema": response_model.model_json_schema(),
        },
    }


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                if item.get("type") == "text" and isinstance(item.get("text"), str):
                    parts.append(item["text"])
                continue
            if getattr(item, "type", None) == "text" and isinstance(getattr(item, "text", None), str):
                parts.append(item.text)
        return "\n".join(parts)
    return ""


def parse_json_payload(text: str) -> dict[str, Any]:
    """Parse a JSON object from model output, tolerating surrounding prose."""
    stripped = text.strip()
    if not stripped:
        raise SchemaError("Model returned an empty response", raw_output=text)
    try:
        payload = json.loads(stripped)
    except json.JSONDecodeError:
        match = re.search(r"\{[\s\S]*\}", stripped)
        if not match:
            raise SchemaError("Model response is not JSON", raw_output=text)
        try:
            payload = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise SchemaError(f"Model response is not valid JSON: {exc}", raw_output=text) from exc
    if not isinstance(payload, dict):
        raise SchemaError("Model response is not a JSON object", raw_output=text)
    return payload


def validate_payload(response_model: type[ModelT], text: str) -> ModelT:
    payload = parse_json_payload(text)
    try:
        return response_model.model_validate(payload)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise SchemaError(
            f"Response does not match {response_model.__name__}: {details}",
            raw_output=text,
        ) from exc


class OpenAIStructuredProvider:
    """Ask a chat model for JSON and validate it against a pydantic model.

    The SDK's own request retries are disabled so that the caller's retry
    budget is the only thing that re-sends a request.
    """

    def __init__(
        self,
        model: str,
        client: OpenAI | None = None,
        base_url: str | None = None,
        api_key: str = "",
    ):
        self.model = model
        self.base_url = base_url
        self.api_key = api_key
        self._client = client

    @classmethod
    def from_config(cls, config: SessionConfig) -> "OpenAIStructuredProvider":
        return cls(model=config.model, base_url=config.base_url, api_key=config.api_key)

    def _get_client(self) -> OpenAI:
        # Built on first use: the SDK refuses to construct without credentials.
        if self._client is None:
            self._client = OpenAI(
                base_url=self.base_url,
                api_key=self.api_key,
                max_retries=0,
            )
        return self._client

    def generate(
        self,
        response_model: type[ModelT],
        messages: list[dict[str, Any]],
        max_retries: int = 0,
    ) -> ModelT:
        """Return a validated ``response_model`` instance.

        On a schema mismatch the model is re-asked with the error, at most
        ``max_retries`` times.

        Raises:
            SchemaError: The output never matched the schema.
            ProviderError: The API call itself failed.
        """
        conversation = list(messages)
        response_format = _response_format(response_model)

        for attempt in range(max_retries + 1):
            try:
                response = self._get_client().chat.completions.create(
                    model=self.model,
                    messages=conversation,
                    response_format=response_format,
                )
            except OpenAIError as exc:
                logger.error("Structured generation request failed: %s", exc)
                raise ProviderError(f"Error communicating with AI service: {exc}") from exc

            if not response.choices:
                raise ProviderError("AI service returned no choices")
            text = _message_text(response.choices[0].message.content)

            try:
                return validate_payload(response_model, text)
            except SchemaError as exc:
                if attempt >= max_retries:
                    raise
                logger.warning(
                    "%s schema mismatch (attempt %d/%d): %s",
                    response_model.__name__,
                    attempt + 1,
                    max_retries + 1,
                    exc,
                )
                conversation.append({"role": "assistant", "content": text})
                conversation.append({
                    "role": "user",
                    "content": (
                        f"That response was rejected: {exc}. "
                        "Reply again with a single JSON object matching the schema."
                    ),
                })

        raise SchemaError(f"No valid {response_model.__name__} produced")

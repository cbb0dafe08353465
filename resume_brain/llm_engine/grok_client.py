"""Grok API client for resume analysis.

This module provides a thin wrapper around the xAI chat completions API used
as the LLM-powered scoring engine.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from ..core.config import settings


class GrokClient:
    """Client for interacting with the Grok chat completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key: str | None = api_key or settings.GROK_API_KEY
        self.model: str = model or settings.MODEL_NAME
        self.base_url: str = base_url or settings.GROK_API_URL
        self.timeout: float = timeout or settings.GROK_TIMEOUT

        if not self.api_key:
            logger.error("GROK_API_KEY is not configured. GrokClient will not be able to send requests.")
            raise ValueError("GROK_API_KEY environment variable is not set")

    def run(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Run a chat completion request against Grok.

        Parameters
        ----------
        prompt: str
            The user prompt to send to the model.
        system_prompt: str, optional
            Instruction sent as the system message ahead of the prompt.

        Returns
        -------
        str
            The message content returned by the model, stripped.
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": settings.GROK_TEMPERATURE,
            "max_tokens": settings.GROK_MAX_TOKENS,
            "stream": False,
        }

        try:
            response = requests.post(self.base_url, headers=headers, data=json.dumps(payload), timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "unknown"
            detail = _error_message(exc.response)
            logger.error("Grok API returned an error: {} - {}", status, detail)
            raise RuntimeError(f"Grok API error: {status} - {detail}") from exc
        except requests.exceptions.RequestException as exc:
            logger.error("Error while calling Grok API: {}", exc)
            raise RuntimeError("No response from Grok API - network issue") from exc

        logger.debug("Grok raw response text: {}", response.text)

        try:
            data: Dict[str, Any] = response.json()
        except ValueError as exc:
            logger.error("Failed to parse Grok API response as JSON. Raw text: {}", response.text)
            raise RuntimeError("Invalid response from Grok API") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            logger.error("Unexpected Grok API response structure: {}", data)
            raise RuntimeError("Invalid response structure from Grok API") from exc

        if not isinstance(content, str):
            raise RuntimeError("Invalid response structure from Grok API")
        return content.strip()


def _error_message(response: Optional[requests.Response]) -> str:
    if response is None:
        return "Unknown error"
    try:
        body = response.json()
    except ValueError:
        return "Unknown error"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return "Unknown error"

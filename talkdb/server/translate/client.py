"""
Natural-language to SQL translation via an OpenAI-compatible chat API.

The translator sends the catalog's schema text and the user's question to
a chat-completions endpoint and returns the bare SQL it answers with.

Invariants:
    - The returned SQL has surrounding markdown code fences removed
    - An empty string means the model judged the question unanswerable
    - Transport and protocol failures surface as TranslationError

How to change safely:
    - Keep the system prompt strict about "SQL only"; the orchestrator
      executes the answer verbatim
    - Tests inject an httpx transport; keep the transport parameter
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a SQL query generator. Given a database schema and a natural "
    "language question, generate a valid SQL query.\n"
    "Return ONLY the SQL query without any explanations, markdown formatting, "
    "or additional text.\n"
    "If the question cannot be answered with the given schema, return an empty string."
)


class TranslationError(Exception):
    """Translation request failed or returned no usable answer."""
    pass


def build_user_message(schema_text: str, question: str) -> str:
    """Compose the user turn from schema context and question."""
    return f"Database Schema:\n{schema_text}\n\nQuestion: {question}\n\nGenerate a SQL query:"


def strip_code_fences(answer: str) -> str:
    """Remove ```sql ... ``` wrapping from a model answer."""
    sql = answer.strip()
    if sql.startswith("```sql"):
        sql = sql[len("```sql"):]
    elif sql.startswith("```"):
        sql = sql[len("```"):]
    if sql.endswith("```"):
        sql = sql[: -len("```")]
    return sql.strip()


class SqlTranslator:
    """Client for an OpenAI-compatible chat-completions endpoint.

    Attributes:
        base_url: API root, e.g. "https://api.openai.com/v1"
        model: Model name sent with every request
        temperature: Sampling temperature (low for deterministic SQL)

    Example:
        >>> translator = SqlTranslator(api_key="sk-...")
        >>> sql = await translator.translate(db.scheme(), "how many orders?")
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.avalai.ir/v1",
        model: str = "gpt-4o",
        temperature: float = 0.3,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._transport = transport

    def _build_payload(self, schema_text: str, question: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_message(schema_text, question)},
            ],
        }

    async def translate(self, schema_text: str, question: str) -> str:
        """Ask the model for a SQL query answering the question.

        Args:
            schema_text: Catalog rendering of the target database
            question: Natural-language question

        Returns:
            SQL text, possibly empty

        Raises:
            TranslationError: On HTTP errors or a malformed response
        """
        logger.info(f"Translating question: {question}")
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    "/chat/completions",
                    json=self._build_payload(schema_text, question),
                    headers=headers,
                )
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as e:
            raise TranslationError(f"chat completion timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise TranslationError(
                f"chat completion failed with HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise TranslationError(f"failed to create chat completion: {e}") from e
        except ValueError as e:
            raise TranslationError(f"chat completion returned invalid JSON: {e}") from e

        choices = body.get("choices") or []
        if not choices:
            raise TranslationError("no choices in chat completion response")

        content = (choices[0].get("message") or {}).get("content") or ""
        sql = strip_code_fences(content)
        logger.info(f"Translation result: {sql}")
        return sql

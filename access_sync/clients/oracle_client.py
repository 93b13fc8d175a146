"""Oracle client for access-status extraction.

Sends one structured-extraction chat completion per batch and turns the
reply into a list of raw records, whether the model answers with a bare
array or with an object wrapping one.
"""

import logging
from typing import Any, Iterable, Optional

import openai
import orjson
from openai import AsyncOpenAI

from ..core.config import SyncConfig
from ..core.errors import (
    EmptyReplyError,
    FatalOracleError,
    MalformedJsonError,
    TransientOracleError,
    UnexpectedShapeError,
)
from ..types.records import AccessStatus
from .backoff import DEFAULT_POLICY, BackoffPolicy, SleepFunc, with_backoff

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

BATCH_SYSTEM_PROMPT = (
    "You are a precise legal/medical data provider. Always output valid JSON only."
)
SINGLE_SYSTEM_PROMPT = "You are a strict data API."


def _status_choices() -> str:
    return ", ".join(AccessStatus.values())


def build_batch_prompt(subjects: Iterable[str], scopes: Iterable[str]) -> str:
    """User prompt for a subjects x scopes batch."""
    return (
        "For each of the following substances and countries, determine their "
        "current legal or medical access status. Use exactly one of: "
        f"{_status_choices()}.\n"
        f"Substances: {', '.join(subjects)}\n"
        f"Countries: {', '.join(scopes)}\n"
        "Return at most one record per substance and country combination, and only "
        "for combinations you have information on. Respond ONLY in strict JSON as an "
        "array of objects with keys: substance, country_code, access_status."
    )


def build_single_prompt(substance: str) -> str:
    """User prompt for the ad-hoc one-substance query."""
    options = "\n".join(f'  - "{value}"' for value in AccessStatus.values())
    return (
        f'You are given a psychedelic substance name: "{substance}".\n'
        "Return a JSON object where keys are ISO 3166-1 alpha-2 country codes "
        '(e.g., "US", "CA", "BR") and values are one of:\n'
        f"{options}\n"
        "Only include countries where you have information, otherwise omit them.\n"
        "Respond with ONLY valid JSON."
    )


def strip_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    s = (text or "").strip()
    if s.startswith("```"):
        nl = s.find("\n")
        if nl != -1:
            s = s[nl + 1:].strip()
        if s.endswith("```"):
            s = s[:-3].strip()
    return s


def parse_reply(content: Optional[str]) -> Any:
    """Parse reply text as JSON.

    Raises:
        EmptyReplyError: No content.
        MalformedJsonError: Content is not JSON.
    """
    if not content or not content.strip():
        raise EmptyReplyError("Empty response from oracle")

    try:
        return orjson.loads(strip_fences(content))
    except orjson.JSONDecodeError as e:
        raise MalformedJsonError(
            f"Failed to parse oracle JSON: {content[:200]}"
        ) from e


def extract_records(parsed: Any) -> list[Any]:
    """Locate the record list in a parsed reply.

    A list is returned as-is. For an object, the first immediate child
    value that is a list is used.

    Raises:
        UnexpectedShapeError: No list found.
    """
    if isinstance(parsed, list):
        return parsed

    if isinstance(parsed, dict):
        for value in parsed.values():
            if isinstance(value, list):
                return value

    raise UnexpectedShapeError(
        f"Expected array of records, got: {orjson.dumps(parsed).decode()[:200]}"
    )


def classify_error(error: openai.APIError) -> Exception:
    """Map an OpenAI SDK error to the retryable/fatal taxonomy."""
    if isinstance(error, openai.APIConnectionError):
        return TransientOracleError(f"connection error: {error}")

    status = getattr(error, "status_code", None)
    if status is not None and (status == 429 or status >= 500):
        return TransientOracleError(f"HTTP {status}: {error}", status_code=status)
    return FatalOracleError(f"HTTP {status}: {error}", status_code=status)


class OracleClient:
    """Structured-extraction client over OpenAI chat completions."""

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        client: Optional[AsyncOpenAI] = None,
        policy: BackoffPolicy = DEFAULT_POLICY,
        sleep: Optional[SleepFunc] = None,
        model: Optional[str] = None,
    ):
        """Initialize the oracle client.

        Args:
            config: Configuration for the API key and model.
            client: Preconstructed AsyncOpenAI client (tests pass a double).
            policy: Backoff policy for transient failures.
            sleep: Sleep used between retries. Defaults to asyncio.sleep.
            model: Model name override.
        """
        if client is None:
            if config is None:
                raise ValueError("OracleClient needs either a config or a client")
            # The backoff policy is the only retry layer
            client = AsyncOpenAI(api_key=config.openai_api_key, max_retries=0)

        self._client = client
        self._policy = policy
        self._sleep = sleep
        self._model = model or (config.openai_model if config else DEFAULT_MODEL)

    @property
    def model(self) -> str:
        return self._model

    async def _complete(self, messages: list[dict[str, str]], **kwargs: Any) -> Optional[str]:
        """One chat completion attempt, with SDK errors classified."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                **kwargs,
            )
        except openai.APIError as e:
            raise classify_error(e) from e

        if not response.choices:
            return None
        return response.choices[0].message.content

    async def _complete_with_backoff(
        self, messages: list[dict[str, str]], label: str, **kwargs: Any
    ) -> Optional[str]:
        retry_kwargs: dict[str, Any] = {"policy": self._policy, "label": label}
        if self._sleep is not None:
            retry_kwargs["sleep"] = self._sleep
        return await with_backoff(
            lambda: self._complete(messages, **kwargs),
            **retry_kwargs,
        )

    async def query(
        self,
        subjects: Iterable[str],
        scopes: Iterable[str],
    ) -> list[Any]:
        """Ask for access statuses of every subject in every scope.

        Args:
            subjects: Substances to ask about.
            scopes: Country codes to ask about.

        Returns:
            Raw record list, possibly empty.

        Raises:
            TransientOracleError: Retries exhausted.
            FatalOracleError: Non-retryable API failure.
            EmptyReplyError, MalformedJsonError, UnexpectedShapeError:
                Unusable reply.
        """
        subjects = list(subjects)
        scopes = list(scopes)
        messages = [
            {"role": "system", "content": BATCH_SYSTEM_PROMPT},
            {"role": "user", "content": build_batch_prompt(subjects, scopes)},
        ]

        content = await self._complete_with_backoff(
            messages,
            label="[LLM] batch query",
            response_format={"type": "json_object"},
        )
        records = extract_records(parse_reply(content))
        logger.debug(
            f"Oracle returned {len(records)} records for "
            f"{len(subjects)} subjects x {len(scopes)} scopes"
        )
        return records

    async def query_substance(self, substance: str) -> list[Any]:
        """Ask for one substance's status in every country the model knows.

        The model is asked for a {country_code: status} object; that mapping
        is converted to raw records, an empty object meaning no countries.
        Entries with a non-string status are passed through for the
        normalizer to drop. An object holding a list, or a bare list, goes
        through the same record extraction as query().
        """
        messages = [
            {"role": "system", "content": SINGLE_SYSTEM_PROMPT},
            {"role": "user", "content": build_single_prompt(substance)},
        ]

        content = await self._complete_with_backoff(
            messages,
            label=f"[LLM] single query {substance}",
            temperature=0,
        )
        parsed = parse_reply(content)

        if isinstance(parsed, dict) and not any(
            isinstance(value, list) for value in parsed.values()
        ):
            return [
                {"substance": substance, "country_code": code, "access_status": status}
                for code, status in parsed.items()
            ]
        return extract_records(parsed)

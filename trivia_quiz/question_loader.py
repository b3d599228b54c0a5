"""
Question set loader for the trivia provider (Open Trivia DB).
Builds provider queries, fetches question sets and normalizes them into
Question objects with shuffled answer options.
"""
import json
import logging
import random
from typing import Any, Dict, List, Optional, Union

import httpx

from .models import LoadError, LoadFailureReason, Question, QuestionSet, SelectionCriteria
from .shuffler import shuffle

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://opentdb.com/api.php"
QUESTION_TYPE = "multiple"

# Open Trivia DB response codes
RESPONSE_CODE_SUCCESS = 0
RESPONSE_CODE_NO_RESULTS = 1
RESPONSE_CODE_INVALID_PARAMETER = 2
RESPONSE_CODE_TOKEN_NOT_FOUND = 3
RESPONSE_CODE_TOKEN_EMPTY = 4
RESPONSE_CODE_RATE_LIMIT = 5

LoadResult = Union[QuestionSet, LoadError]


class QuestionSetLoader:
    """Fetches and normalizes question sets from the trivia provider."""

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the loader.

        Args:
            api_url: Provider endpoint
            timeout: Request timeout in seconds
            client: Optional shared HTTP client; one is created if None
            rng: Optional random source for option shuffling
        """
        self.api_url = api_url
        self.timeout = timeout
        self._rng = rng
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )

    async def __aenter__(self) -> "QuestionSetLoader":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this loader created it."""
        if self._owns_client:
            await self.client.aclose()

    @staticmethod
    def build_query(criteria: SelectionCriteria) -> Dict[str, Any]:
        """
        Build provider query parameters from complete criteria.

        Args:
            criteria: Fully set selection criteria

        Returns:
            Dictionary of query parameters
        """
        return {
            "amount": criteria.amount,
            "category": criteria.category,
            "difficulty": criteria.difficulty.value,
            "type": QUESTION_TYPE,
        }

    async def load(self, criteria: SelectionCriteria) -> Optional[LoadResult]:
        """
        Fetch a question set matching the criteria.

        Incomplete criteria make this a no-op returning None. Failures are
        never raised; they come back as a LoadError tagged with a reason.

        Args:
            criteria: Selection criteria for the quiz

        Returns:
            QuestionSet on success, LoadError on failure, None if criteria incomplete
        """
        if not criteria.is_complete():
            logger.debug("Skipping question fetch: selection criteria incomplete")
            return None

        params = self.build_query(criteria)
        logger.info(
            f"Fetching {criteria.amount} {criteria.difficulty.value} questions "
            f"for category {criteria.category}",
            extra={'event_type': 'fetch_start', 'params': params}
        )

        try:
            response = await self.client.get(self.api_url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            return self._failure(
                LoadFailureReason.TRANSPORT,
                f"Provider returned HTTP {e.response.status_code}"
            )
        except httpx.HTTPError as e:
            return self._failure(LoadFailureReason.TRANSPORT, f"Request failed: {e}")

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return self._failure(LoadFailureReason.FORMAT, f"Invalid JSON in response: {e}")

        result = self.parse_response(data)
        if isinstance(result, LoadError):
            return self._failure(result.reason, result.detail)

        logger.info(
            f"Loaded {len(result)} questions",
            extra={'event_type': 'fetch_complete', 'question_count': len(result)}
        )
        return result

    def parse_response(self, data: Any) -> LoadResult:
        """
        Validate a decoded provider response and build the question set.

        Expected structure:
        {
            "response_code": int,  # Optional
            "results": [
                {
                    "question": str,
                    "correct_answer": str,
                    "incorrect_answers": [str, ...]
                }
            ]
        }

        Args:
            data: Decoded JSON response

        Returns:
            QuestionSet in provider order, or LoadError
        """
        if not isinstance(data, dict):
            return LoadError(LoadFailureReason.FORMAT, "Response must be a JSON object")

        code_error = self._check_response_code(data.get("response_code", RESPONSE_CODE_SUCCESS))
        if code_error:
            return code_error

        results = data.get("results")
        if results is None:
            return LoadError(LoadFailureReason.FORMAT, "Response must contain a 'results' key")

        if not isinstance(results, list):
            return LoadError(LoadFailureReason.FORMAT, "'results' value must be an array")

        if not results:
            return LoadError(LoadFailureReason.EMPTY, "Provider returned zero questions")

        questions: List[Question] = []
        for i, raw in enumerate(results):
            error = self._validate_raw_question(i, raw)
            if error:
                return LoadError(LoadFailureReason.FORMAT, error)
            questions.append(self._build_question(raw))

        return tuple(questions)

    @staticmethod
    def _check_response_code(code: Any) -> Optional[LoadError]:
        """Map a non-success provider response code to a LoadError."""
        if code == RESPONSE_CODE_SUCCESS:
            return None
        if code == RESPONSE_CODE_NO_RESULTS:
            return LoadError(LoadFailureReason.EMPTY, "Provider has no matching questions")
        if code == RESPONSE_CODE_RATE_LIMIT:
            return LoadError(LoadFailureReason.TRANSPORT, "Provider rate limit exceeded")
        if code in (RESPONSE_CODE_INVALID_PARAMETER,
                    RESPONSE_CODE_TOKEN_NOT_FOUND,
                    RESPONSE_CODE_TOKEN_EMPTY):
            return LoadError(LoadFailureReason.FORMAT, f"Provider rejected the request (response code {code})")
        return LoadError(LoadFailureReason.FORMAT, f"Unknown provider response code: {code!r}")

    @staticmethod
    def _validate_raw_question(index: int, raw: Any) -> Optional[str]:
        if not isinstance(raw, dict):
            return f"Question {index} must be an object"

        for key in ("question", "correct_answer"):
            if key not in raw:
                return f"Question {index} missing '{key}' field"
            if not isinstance(raw[key], str):
                return f"Question {index} '{key}' field must be a string"

        if "incorrect_answers" not in raw:
            return f"Question {index} missing 'incorrect_answers' field"

        incorrect = raw["incorrect_answers"]
        if not isinstance(incorrect, list) or not all(isinstance(a, str) for a in incorrect):
            return f"Question {index} 'incorrect_answers' field must be an array of strings"

        return None

    def _build_question(self, raw: Dict[str, Any]) -> Question:
        options = shuffle([raw["correct_answer"]] + raw["incorrect_answers"], self._rng)
        return Question(
            text=raw["question"],
            correct_answer=raw["correct_answer"],
            options=tuple(options),
            category=raw.get("category"),
            difficulty=raw.get("difficulty"),
        )

    @staticmethod
    def _failure(reason: LoadFailureReason, detail: str) -> LoadError:
        logger.warning(
            f"Question fetch failed ({reason.value}): {detail}",
            extra={'event_type': 'fetch_failed', 'reason': reason.value}
        )
        return LoadError(reason, detail)

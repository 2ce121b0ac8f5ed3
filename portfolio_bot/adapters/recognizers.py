"""
Intent Recognizers

Rule-based, LUIS and QnA Maker recognizers, and a set that runs several
recognizers side by side.
"""

import asyncio
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx
import structlog

from portfolio_bot.conversation.base import Entity, IntentMatch

from .base import Recognizer, RecognizerError


logger = structlog.get_logger()


# =============================================================================
# Rule-based
# =============================================================================


@dataclass
class RuleConfig:
    """Configuration for the rule-based recognizer."""
    patterns: Dict[str, List[str]] = field(default_factory=dict)
    keywords: Dict[str, List[str]] = field(default_factory=dict)
    pattern_score: float = 0.8
    keyword_score: float = 0.4


class RuleBasedRecognizer(Recognizer):
    """
    Recognizer using regex patterns and keywords.

    Usage:
        recognizer = RuleBasedRecognizer()
        recognizer.add_pattern("Greeting", r"^(hallo|hoi|hey)\\b")
        recognizer.add_keyword("Contact", "mail")

        matches = await recognizer.recognize("Hoi!")
    """

    name = "rules"

    def __init__(self, config: Optional[RuleConfig] = None):
        self.config = config or RuleConfig()
        self._patterns: Dict[str, List[re.Pattern]] = {}
        self._keywords: Dict[str, List[str]] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load patterns and keywords from config."""
        for intent, patterns in self.config.patterns.items():
            for pattern in patterns:
                self.add_pattern(intent, pattern)

        for intent, keywords in self.config.keywords.items():
            for keyword in keywords:
                self.add_keyword(intent, keyword)

    def add_pattern(self, intent: str, pattern: str) -> None:
        """Add a regex pattern for an intent."""
        self._patterns.setdefault(intent, []).append(re.compile(pattern, re.IGNORECASE))

    def add_keyword(self, intent: str, keyword: str) -> None:
        """Add a keyword for an intent."""
        self._keywords.setdefault(intent, []).append(keyword.lower())

    async def recognize(self, text: str) -> List[IntentMatch]:
        text_lower = (text or "").lower()
        scores: Dict[str, float] = {}

        # Patterns weigh more than keywords
        for intent, patterns in self._patterns.items():
            if any(p.search(text_lower) for p in patterns):
                scores[intent] = scores.get(intent, 0.0) + self.config.pattern_score

        for intent, keywords in self._keywords.items():
            if any(k in text_lower for k in keywords):
                scores[intent] = scores.get(intent, 0.0) + self.config.keyword_score

        matches = [
            IntentMatch(intent=intent, confidence=min(score, 1.0), source=self.name)
            for intent, score in scores.items()
        ]
        matches.sort(key=lambda m: m.confidence, reverse=True)
        return matches


# =============================================================================
# LUIS
# =============================================================================


class LuisRecognizer(Recognizer):
    """
    LUIS v2 prediction endpoint recognizer.

    Every scored intent is returned; the utterance-level entities are
    attached to each of them.
    """

    name = "luis"

    def __init__(
        self,
        app_id: str,
        api_key: str,
        host_name: str = "westeurope.api.cognitive.microsoft.com",
        spell_check_key: Optional[str] = None,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.app_id = app_id
        self.api_key = api_key
        self.host_name = host_name
        self.spell_check_key = spell_check_key
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    @property
    def endpoint(self) -> str:
        return f"https://{self.host_name}/luis/v2.0/apps/{self.app_id}"

    def _params(self, text: str) -> Dict[str, str]:
        params = {
            "subscription-key": self.api_key,
            "q": text,
            "verbose": "true",
        }
        if self.spell_check_key:
            params["spellCheck"] = "true"
            params["bing-spell-check-subscription-key"] = self.spell_check_key
        return params

    async def recognize(self, text: str) -> List[IntentMatch]:
        try:
            response = await self._client.get(self.endpoint, params=self._params(text))
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("luis_request_failed", error=str(e))
            raise RecognizerError(f"LUIS request failed: {e}", self.name) from e

        return self.parse_response(data)

    def parse_response(self, data: Dict[str, Any]) -> List[IntentMatch]:
        """Map a LUIS v2 response to ranked intent matches."""
        entities = [
            Entity(
                type=e.get("type", ""),
                value=e.get("entity"),
                position=e.get("startIndex"),
                score=e.get("score"),
            )
            for e in data.get("entities", [])
        ]

        intents = data.get("intents")
        if not intents and data.get("topScoringIntent"):
            intents = [data["topScoringIntent"]]

        matches = [
            IntentMatch(
                intent=i.get("intent", ""),
                confidence=i.get("score") or 0.0,
                entities=list(entities),
                source=self.name,
            )
            for i in intents or []
        ]
        matches.sort(key=lambda m: m.confidence, reverse=True)
        return matches

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


# =============================================================================
# QnA Maker
# =============================================================================


QNA_INTENT = "qna"
QNA_ANSWER_ENTITY = "answer"
QNA_NO_MATCH = "No good match found in the KB"


class QnAMakerRecognizer(Recognizer):
    """
    QnA Maker knowledge-base recognizer.

    A knowledge-base hit becomes the `qna` intent with confidence
    score / 100 and an `answer` entity carrying the answer text.
    """

    name = "qna"

    def __init__(
        self,
        knowledge_base_id: str,
        subscription_key: str,
        host: str = "https://westus.api.cognitive.microsoft.com/qnamaker/v2.0",
        top: int = 1,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.knowledge_base_id = knowledge_base_id
        self.subscription_key = subscription_key
        self.host = host.rstrip("/")
        self.top = top
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    @property
    def endpoint(self) -> str:
        return f"{self.host}/knowledgebases/{self.knowledge_base_id}/generateAnswer"

    async def recognize(self, text: str) -> List[IntentMatch]:
        try:
            response = await self._client.post(
                self.endpoint,
                headers={"Ocp-Apim-Subscription-Key": self.subscription_key},
                json={"question": text, "top": self.top},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("qna_request_failed", error=str(e))
            raise RecognizerError(f"QnA Maker request failed: {e}", self.name) from e

        return self.parse_response(data)

    def parse_response(self, data: Dict[str, Any]) -> List[IntentMatch]:
        """Map a generateAnswer response to at most one `qna` match."""
        answers = [
            a for a in data.get("answers", [])
            if a.get("answer") and a.get("answer") != QNA_NO_MATCH and (a.get("score") or 0) > 0
        ]
        if not answers:
            return []

        best = max(answers, key=lambda a: a.get("score", 0))
        return [
            IntentMatch(
                intent=QNA_INTENT,
                confidence=best["score"] / 100.0,
                entities=[Entity(type=QNA_ANSWER_ENTITY, value=best["answer"], score=best["score"] / 100.0)],
                source=self.name,
            )
        ]

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


# =============================================================================
# Recognizer Set
# =============================================================================


class RecognizerSet(Recognizer):
    """
    Runs several recognizers concurrently and merges their matches.

    A recognizer that fails is logged and contributes no matches.
    """

    name = "set"

    def __init__(self, recognizers: Sequence[Recognizer]):
        self.recognizers = list(recognizers)

    async def recognize(self, text: str) -> List[IntentMatch]:
        results = await asyncio.gather(
            *(r.recognize(text) for r in self.recognizers),
            return_exceptions=True,
        )

        matches: List[IntentMatch] = []
        for recognizer, result in zip(self.recognizers, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "recognizer_skipped",
                    recognizer=recognizer.name,
                    error=str(result),
                )
                continue
            matches.extend(result)

        matches.sort(key=lambda m: m.confidence, reverse=True)
        return matches

    async def close(self) -> None:
        for recognizer in self.recognizers:
            await recognizer.close()

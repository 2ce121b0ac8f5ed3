"""
Conversation State Stores

In-memory and Redis-backed persistence for conversation state blobs.
"""

import json
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
import structlog

from portfolio_bot.conversation.state import ConversationState

from .base import StateStore, StateStoreError


logger = structlog.get_logger()


class InMemoryStateStore(StateStore):
    """
    Process-local state store.

    Stores serialized snapshots so callers never share live objects with
    the store.
    """

    def __init__(self):
        self._states: Dict[str, Dict[str, Any]] = {}

    async def load(self, conversation_id: str) -> Optional[ConversationState]:
        data = self._states.get(conversation_id)
        if data is None:
            return None
        return ConversationState.from_dict(json.loads(json.dumps(data)))

    async def save(self, state: ConversationState) -> None:
        try:
            self._states[state.conversation_id] = json.loads(json.dumps(state.to_dict(), default=_encode))
        except (TypeError, ValueError) as e:
            raise StateStoreError(f"State is not serializable: {e}", state.conversation_id) from e

    async def delete(self, conversation_id: str) -> bool:
        return self._states.pop(conversation_id, None) is not None

    def __len__(self) -> int:
        return len(self._states)


class RedisStateStore(StateStore):
    """
    Redis-backed state store.

    Each conversation is a JSON blob under `conversation_state:<id>` with
    a sliding TTL refreshed on every save.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        ttl_seconds: int = 86400,
        key_prefix: str = "conversation_state",
    ):
        self._redis = redis_client
        self._ttl = ttl_seconds
        self._prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int = 86400) -> "RedisStateStore":
        """Create a store with its own connection pool."""
        return cls(redis.from_url(url, decode_responses=True), ttl_seconds=ttl_seconds)

    def _key(self, conversation_id: str) -> str:
        return f"{self._prefix}:{conversation_id}"

    async def load(self, conversation_id: str) -> Optional[ConversationState]:
        try:
            data = await self._redis.get(self._key(conversation_id))
        except RedisError as e:
            logger.error("state_load_failed", conversation_id=conversation_id, error=str(e))
            raise StateStoreError(f"Could not load state: {e}", conversation_id) from e

        if not data:
            return None

        try:
            return ConversationState.from_dict(json.loads(data))
        except (ValueError, KeyError) as e:
            raise StateStoreError(f"Stored state is corrupt: {e}", conversation_id) from e

    async def save(self, state: ConversationState) -> None:
        try:
            payload = json.dumps(state.to_dict(), default=_encode)
        except (TypeError, ValueError) as e:
            raise StateStoreError(f"State is not serializable: {e}", state.conversation_id) from e

        try:
            await self._redis.setex(self._key(state.conversation_id), self._ttl, payload)
        except RedisError as e:
            logger.error("state_save_failed", conversation_id=state.conversation_id, error=str(e))
            raise StateStoreError(f"Could not save state: {e}", state.conversation_id) from e

    async def delete(self, conversation_id: str) -> bool:
        try:
            return bool(await self._redis.delete(self._key(conversation_id)))
        except RedisError as e:
            raise StateStoreError(f"Could not delete state: {e}", conversation_id) from e

    async def close(self) -> None:
        await self._redis.aclose()


def _encode(value: Any) -> Any:
    """Serialize values that json does not handle natively."""
    if hasattr(value, "model_dump"):
        return value.model_dump(by_alias=True)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "value"):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")

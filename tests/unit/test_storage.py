"""Unit tests for conversation state stores."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from portfolio_bot.adapters.base import StateStoreError
from portfolio_bot.adapters.storage import InMemoryStateStore, RedisStateStore
from portfolio_bot.conversation.base import PromptKind
from portfolio_bot.conversation.state import ConversationState, DialogFrame, PendingPrompt


def make_state() -> ConversationState:
    state = ConversationState(conversation_id="conv-1", version=1.0)
    state.user_data["name"] = "Ada"
    frame = state.push(DialogFrame(dialog_id="/contact", step_index=1, dialog_data={"email": "a@b.nl"}))
    frame.pending_prompt = PendingPrompt(kind=PromptKind.TEXT, text="Je bericht?")
    return state


@pytest.fixture
def mock_redis():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.aclose = AsyncMock()
    return client


class TestInMemoryStateStore:
    """Tests for InMemoryStateStore."""

    @pytest.mark.asyncio
    async def test_load_missing(self):
        """Test loading an unknown conversation."""
        assert await InMemoryStateStore().load("nope") is None

    @pytest.mark.asyncio
    async def test_save_and_load(self):
        """Test a saved state loads back equal."""
        store = InMemoryStateStore()
        await store.save(make_state())

        loaded = await store.load("conv-1")

        assert loaded.user_data == {"name": "Ada"}
        assert loaded.active_frame.dialog_data == {"email": "a@b.nl"}
        assert loaded.active_frame.pending_prompt.text == "Je bericht?"
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_snapshots_are_isolated(self):
        """Test changing a state after saving does not change the store."""
        store = InMemoryStateStore()
        state = make_state()
        await store.save(state)

        state.user_data["name"] = "Grace"

        assert (await store.load("conv-1")).user_data["name"] == "Ada"

    @pytest.mark.asyncio
    async def test_unserializable_state(self):
        """Test values json cannot encode raise StateStoreError."""
        store = InMemoryStateStore()
        state = make_state()
        state.user_data["handle"] = object()

        with pytest.raises(StateStoreError) as exc_info:
            await store.save(state)

        assert exc_info.value.conversation_id == "conv-1"

    @pytest.mark.asyncio
    async def test_delete(self):
        """Test deleting a state."""
        store = InMemoryStateStore()
        await store.save(make_state())

        assert await store.delete("conv-1") is True
        assert await store.delete("conv-1") is False
        assert await store.load("conv-1") is None


class TestRedisStateStore:
    """Tests for RedisStateStore."""

    @pytest.mark.asyncio
    async def test_save_uses_ttl(self, mock_redis):
        """Test states are stored as JSON under a prefixed key with a TTL."""
        store = RedisStateStore(mock_redis, ttl_seconds=600)

        await store.save(make_state())

        key, ttl, payload = mock_redis.setex.call_args.args
        assert key == "conversation_state:conv-1"
        assert ttl == 600
        assert json.loads(payload)["user_data"] == {"name": "Ada"}

    @pytest.mark.asyncio
    async def test_load(self, mock_redis):
        """Test a stored blob loads into a state."""
        mock_redis.get.return_value = json.dumps(make_state().to_dict())
        store = RedisStateStore(mock_redis)

        loaded = await store.load("conv-1")

        mock_redis.get.assert_awaited_once_with("conversation_state:conv-1")
        assert loaded.active_frame.dialog_id == "/contact"

    @pytest.mark.asyncio
    async def test_load_missing(self, mock_redis):
        """Test a missing key loads as None."""
        assert await RedisStateStore(mock_redis).load("conv-1") is None

    @pytest.mark.asyncio
    async def test_corrupt_blob(self, mock_redis):
        """Test unreadable blobs raise StateStoreError."""
        mock_redis.get.return_value = "{not json"

        with pytest.raises(StateStoreError):
            await RedisStateStore(mock_redis).load("conv-1")

    @pytest.mark.asyncio
    async def test_connection_failure_on_save(self, mock_redis):
        """Test Redis errors are wrapped in StateStoreError."""
        mock_redis.setex.side_effect = RedisConnectionError("refused")

        with pytest.raises(StateStoreError) as exc_info:
            await RedisStateStore(mock_redis).save(make_state())

        assert exc_info.value.conversation_id == "conv-1"

    @pytest.mark.asyncio
    async def test_connection_failure_on_load(self, mock_redis):
        """Test load failures are wrapped in StateStoreError."""
        mock_redis.get.side_effect = RedisConnectionError("refused")

        with pytest.raises(StateStoreError):
            await RedisStateStore(mock_redis).load("conv-1")

    @pytest.mark.asyncio
    async def test_delete_and_close(self, mock_redis):
        """Test delete reports removal and close releases the client."""
        store = RedisStateStore(mock_redis, key_prefix="bot")

        assert await store.delete("conv-1") is True
        mock_redis.delete.assert_awaited_once_with("bot:conv-1")

        await store.close()
        mock_redis.aclose.assert_awaited_once()

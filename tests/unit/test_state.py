"""Unit tests for conversation state."""

from portfolio_bot.conversation.base import Choice, PromptKind
from portfolio_bot.conversation.state import ConversationState, DialogFrame, PendingPrompt


class TestConversationState:
    """Tests for ConversationState."""

    def test_new_state_is_empty(self):
        """Test a new state has no frames."""
        state = ConversationState(conversation_id="conv-1")

        assert state.active_frame is None
        assert state.depth == 0
        assert state.turn_count == 0
        assert not state.is_waiting_for_prompt()

    def test_push_and_pop(self):
        """Test the top of the stack is the active frame."""
        state = ConversationState(conversation_id="conv-1")
        state.push(DialogFrame(dialog_id="/"))
        state.push(DialogFrame(dialog_id="/contact"))

        assert state.active_frame.dialog_id == "/contact"
        assert state.pop().dialog_id == "/contact"
        assert state.active_frame.dialog_id == "/"

    def test_pop_empty(self):
        """Test popping an empty stack returns None."""
        assert ConversationState(conversation_id="conv-1").pop() is None

    def test_reset_stack_installs_idle_default(self):
        """Test a reset leaves exactly one idle default frame."""
        state = ConversationState(conversation_id="conv-1")
        state.push(DialogFrame(dialog_id="/contact", step_index=2))

        frame = state.reset_stack("/")

        assert state.depth == 1
        assert frame.dialog_id == "/"
        assert frame.idle

    def test_waiting_for_prompt(self):
        """Test the active frame's pending prompt is visible on the state."""
        state = ConversationState(conversation_id="conv-1")
        frame = state.push(DialogFrame(dialog_id="/contact"))
        frame.pending_prompt = PendingPrompt(kind=PromptKind.CONFIRM, text="Mailen?")

        assert state.is_waiting_for_prompt()

    def test_touch_counts_turns(self):
        """Test touching records a turn."""
        state = ConversationState(conversation_id="conv-1")
        before = state.last_activity

        state.touch()

        assert state.turn_count == 1
        assert state.last_activity >= before

    def test_copy_is_independent(self):
        """Test the working copy shares nothing with the original."""
        state = ConversationState(conversation_id="conv-1")
        state.push(DialogFrame(dialog_id="/contact", dialog_data={"email": "a@b.nl"}))

        working = state.copy()
        working.active_frame.dialog_data["email"] = "x@y.nl"
        working.user_data["name"] = "Ada"

        assert state.active_frame.dialog_data["email"] == "a@b.nl"
        assert state.user_data == {}

    def test_dict_roundtrip(self):
        """Test serialization keeps the stack and the pending prompt."""
        state = ConversationState(conversation_id="conv-1", user_id="user-1", version=1.0)
        state.user_data["name"] = "Ada"
        state.push(DialogFrame(dialog_id="/", idle=True))
        frame = state.push(DialogFrame(dialog_id="/", step_index=1))
        frame.pending_prompt = PendingPrompt(
            kind=PromptKind.CHOICE,
            text="Waarover?",
            choices=[Choice(value="/contact", label="Contact")],
            retries=1,
        )

        restored = ConversationState.from_dict(state.to_dict())

        assert restored.user_id == "user-1"
        assert restored.version == 1.0
        assert restored.user_data == {"name": "Ada"}
        assert restored.dialog_stack[0].idle
        assert restored.active_frame.step_index == 1
        assert restored.active_frame.pending_prompt.kind == PromptKind.CHOICE
        assert restored.active_frame.pending_prompt.choices[0].value == "/contact"
        assert restored.active_frame.pending_prompt.retries == 1

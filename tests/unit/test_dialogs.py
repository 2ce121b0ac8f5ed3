"""Unit tests for the portfolio dialogs."""

import pytest
import pytest_asyncio

from portfolio_bot.bot import create_engine
from portfolio_bot.conversation.base import Entity
from portfolio_bot.conversation.registry import DialogRegistry
from portfolio_bot.dialogs import register_portfolio_dialogs, welcome_sequence
from portfolio_bot.dialogs.common import INTRO_TEXT, WELCOME_TEXT
from portfolio_bot.dialogs.contact import (
    CHANNEL_QUESTION,
    EMAIL_QUESTION,
    GAVE_UP_TEXT,
    MESSAGE_QUESTION,
    SENT_TEXT,
    TWEET_TEXT,
)
from portfolio_bot.dialogs.fallback import NO_ANSWER_TEXT, UNKNOWN_TEXT
from portfolio_bot.dialogs.root import DONE_TEXT, GREETING_TEXT, NO_TOPIC_TEXT, TOPIC_QUESTION
from portfolio_bot.models.schemas import ChannelAttachment, ConversationUpdate


CID = "conv-1"


@pytest_asyncio.fixture
async def bot(settings, recognizer, notifier, connector, state_store):
    """Portfolio engine with scripted recognition."""
    recognizer.on("hello", "Greeting", 0.9)
    engine = create_engine(
        settings,
        connector=connector,
        notifier=notifier,
        recognizer=recognizer,
        state_store=state_store,
    )
    yield engine
    await engine.close()


class TestRegistration:
    """Tests for the dialog graph."""

    def test_all_dialogs_registered(self, notifier):
        """Test every portfolio dialog is present and the graph validates."""
        registry = register_portfolio_dialogs(DialogRegistry(), notifier, mail_to="bot@michelbouman.nl")

        assert set(registry.ids) == {
            "/",
            "/unknown",
            "/help",
            "/qna",
            "/experience",
            "/work-smarter",
            "/image-received",
            "/contact",
        }
        assert registry.resolve_by_trigger("Greeting").id == "/"
        assert registry.resolve_by_trigger("Contact").id == "/contact"
        assert registry.resolve_by_trigger("qna").id == "/qna"

    def test_welcome_sequence(self):
        """Test the conversation-start burst."""
        update = ConversationUpdate(conversation_id=CID, bot_id="bot", members_added=["bot"])

        sequence = welcome_sequence(update, pause=2.0)

        assert [s.message.text for s in sequence] == [WELCOME_TEXT, INTRO_TEXT]
        assert sequence[1].delay == 2.0
        assert [a.value for a in sequence[1].message.suggested_actions] == [
            "/experience",
            "/work-smarter",
            "/contact",
        ]


class TestRootDialog:
    """Tests for the default dialog."""

    @pytest.mark.asyncio
    async def test_greeting_offers_topics(self, bot):
        """Test a greeting sends the welcome, then a four option menu."""
        result = await bot.handle_text(CID, "hello")

        assert result.texts == [GREETING_TEXT, TOPIC_QUESTION]
        assert len(result.messages[1].suggested_actions) == 4
        assert result.waiting_for_input

    @pytest.mark.asyncio
    async def test_third_option_by_label_begins_contact(self, bot):
        """Test answering with the label of option 3 begins the contact dialog."""
        await bot.handle_text(CID, "hello")

        result = await bot.handle_text(CID, "Contact")

        assert result.texts == [CHANNEL_QUESTION]
        assert result.active_dialog == "/contact"
        state = await bot.get_state(CID)
        assert [f.dialog_id for f in state.dialog_stack] == ["/", "/contact"]

    @pytest.mark.asyncio
    async def test_child_end_resumes_menu(self, bot):
        """Test the menu wraps up after the chosen topic ends."""
        await bot.handle_text(CID, "hello")

        result = await bot.handle_text(CID, "/help")

        assert result.texts[-1] == DONE_TEXT
        assert not result.waiting_for_input

    @pytest.mark.asyncio
    async def test_menu_without_answer(self, bot):
        """Test giving up on the menu ends the dialog politely."""
        await bot.handle_text(CID, "hello")
        for _ in range(2):
            await bot.handle_text(CID, "pizza")

        result = await bot.handle_text(CID, "pizza")

        assert result.texts == [NO_TOPIC_TEXT]
        state = await bot.get_state(CID)
        assert state.depth == 1
        assert state.active_frame.idle


class TestContactDialog:
    """Tests for the contact dialog."""

    @pytest.mark.asyncio
    async def test_twitter(self, bot, notifier):
        """Test declining e-mail ends with the Twitter note."""
        await bot.handle_text(CID, "/contact")

        result = await bot.handle_text(CID, "nee")

        assert result.texts == [TWEET_TEXT]
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_mail_sent(self, bot, notifier):
        """Test the e-mail branch collects address and message, then mails."""
        await bot.handle_text(CID, "/contact")

        assert (await bot.handle_text(CID, "ja")).texts == [EMAIL_QUESTION]
        assert (await bot.handle_text(CID, "ada@example.com")).texts == [MESSAGE_QUESTION]
        result = await bot.handle_text(CID, "Zullen we koffie drinken?")

        assert result.texts == [SENT_TEXT]
        mail = notifier.sent[0]
        assert mail.sender == "ada@example.com"
        assert mail.to == "bot@michelbouman.nl"
        assert mail.subject == "Mail vanaf de bot"
        assert mail.body == "Zullen we koffie drinken?"

    @pytest.mark.asyncio
    async def test_mail_failure_is_silent(self, bot, notifier):
        """Test a failed mail sends no confirmation and no error to the user."""
        notifier.result = False
        for text in ("/contact", "ja", "ada@example.com"):
            await bot.handle_text(CID, text)

        result = await bot.handle_text(CID, "Hallo")

        assert result.texts == []
        assert result.error is None
        assert len(notifier.sent) == 1
        assert (await bot.get_state(CID)).active_frame.idle

    @pytest.mark.asyncio
    async def test_unanswered_confirm(self, bot, notifier):
        """Test three unparseable answers end the dialog through the no-answer branch."""
        await bot.handle_text(CID, "/contact")

        first = await bot.handle_text(CID, "banaan")
        second = await bot.handle_text(CID, "banaan")
        third = await bot.handle_text(CID, "banaan")

        assert first.waiting_for_input and second.waiting_for_input
        assert third.texts == [GAVE_UP_TEXT]
        assert not third.waiting_for_input
        assert notifier.sent == []


class TestFallbackDialogs:
    """Tests for unknown, help and knowledge-base answers."""

    @pytest.mark.asyncio
    async def test_unknown_offers_topics(self, bot):
        """Test unrouted utterances get the three topic actions."""
        result = await bot.handle_text(CID, "wat vind je van kaas")

        assert result.texts == [UNKNOWN_TEXT]
        assert [a.value for a in result.messages[0].suggested_actions] == [
            "/experience",
            "/work-smarter",
            "/contact",
        ]

    @pytest.mark.asyncio
    async def test_qna_answer(self, bot, recognizer):
        """Test a knowledge-base hit is answered with its answer entity."""
        recognizer.on("waar woon je", "qna", 0.8, entities=[Entity(type="answer", value="In Utrecht.")])

        result = await bot.handle_text(CID, "waar woon je")

        assert result.texts == ["In Utrecht."]

    @pytest.mark.asyncio
    async def test_qna_without_answer(self, bot, recognizer):
        """Test a qna intent without answer entity is handled."""
        recognizer.on("raar", "qna", 0.8)

        result = await bot.handle_text(CID, "raar")

        assert result.texts == [NO_ANSWER_TEXT]


class TestPortfolioDialogs:
    """Tests for the content dialogs."""

    @pytest.mark.asyncio
    async def test_experience_cards(self, bot):
        """Test the experience dialog shows hero cards."""
        result = await bot.handle_text(CID, "/experience")

        assert len(result.messages[0].attachments) == 3
        assert result.messages[0].attachments[0].title == "Microsoft Nederland"

    @pytest.mark.asyncio
    async def test_work_smarter_is_paced(self, bot, connector):
        """Test the story is delivered as a paced sequence after the turn."""
        result = await bot.handle_text(CID, "/work-smarter")

        assert len(result.scheduled) == 1
        assert len(result.scheduled[0]) == 4

    @pytest.mark.asyncio
    async def test_image_upload(self, bot, recognizer):
        """Test an uploaded image is acknowledged without recognition."""
        result = await bot.handle_text(
            CID,
            "",
            attachments=[ChannelAttachment(content_type="image/jpeg", name="foto.jpg")],
        )

        assert result.texts[0] == "I received your image. Let's have a look!"
        assert "foto.jpg" in result.texts[1]
        assert recognizer.calls == []


class TestConversationControl:
    """Tests for reset and version handling in the composed bot."""

    @pytest.mark.asyncio
    async def test_reset_mid_dialog(self, bot, recognizer):
        """Test 'reset' abandons the contact dialog."""
        await bot.handle_text(CID, "/contact")

        result = await bot.handle_text(CID, "reset")

        assert result.texts == ["Prima, we beginnen opnieuw."]
        assert not result.waiting_for_input
        assert recognizer.calls == []

    @pytest.mark.asyncio
    async def test_conversation_start(self, bot, connector):
        """Test the bot joining greets with the welcome burst."""
        await bot.handle_conversation_update(
            ConversationUpdate(conversation_id=CID, bot_id="bot", members_added=["bot"])
        )
        await bot.scheduler.drain()

        assert connector.texts(CID) == [WELCOME_TEXT, INTRO_TEXT]

"""Unit tests for settings and engine composition."""

import pytest
from click.testing import CliRunner

from portfolio_bot.adapters.mail import LogOnlyNotifier, SmtpNotifier
from portfolio_bot.adapters.recognizers import LuisRecognizer, QnAMakerRecognizer, RecognizerSet
from portfolio_bot.adapters.storage import InMemoryStateStore, RedisStateStore
from portfolio_bot.bot import (
    build_middleware,
    build_notifier,
    build_recognizer,
    build_state_store,
    create_engine,
)
from portfolio_bot.cli import cli, parse_line
from portfolio_bot.config import Settings
from portfolio_bot.middleware import SendTypingMiddleware


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        """Test the defaults match the site's behaviour."""
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        settings = Settings(_env_file=None)

        assert settings.default_locale == "nl"
        assert settings.recognizer_confidence_threshold == 0.5
        assert settings.prompt_max_retries == 2
        assert settings.dialog_version == 1.0
        assert settings.luis_api_host_name == "westeurope.api.cognitive.microsoft.com"
        assert settings.mail_port == 587
        assert settings.mail_to == "bot@michelbouman.nl"
        assert settings.mail_subject == "Mail vanaf de bot"

    def test_environment_overrides(self, monkeypatch):
        """Test values are read from the environment, case-insensitively."""
        monkeypatch.setenv("luis_app_id", "app-1")
        monkeypatch.setenv("LUIS_API_KEY", "key-1")
        monkeypatch.setenv("PROMPT_MAX_RETRIES", "3")

        settings = Settings(_env_file=None)

        assert settings.luis_app_id == "app-1"
        assert settings.prompt_max_retries == 3
        assert settings.luis_enabled

    def test_feature_flags(self, settings):
        """Test integrations are off without credentials."""
        assert not settings.luis_enabled
        assert not settings.qna_enabled
        assert not settings.mail_enabled


class TestComposition:
    """Tests for building the engine from settings."""

    def test_recognizer_rules_only(self, settings):
        """Test local rules are used without cloud credentials."""
        recognizer = build_recognizer(settings)

        assert isinstance(recognizer, RecognizerSet)
        assert len(recognizer.recognizers) == 1

    @pytest.mark.asyncio
    async def test_recognizer_with_cloud(self, settings):
        """Test LUIS and QnA Maker join the set when configured."""
        configured = settings.model_copy(
            update={
                "luis_app_id": "app-1",
                "luis_api_key": "key-1",
                "qna_knowledgebase_id": "kb-1",
                "qna_subscription_key": "sub-1",
            }
        )

        recognizer = build_recognizer(configured)

        kinds = [type(r) for r in recognizer.recognizers]
        assert LuisRecognizer in kinds
        assert QnAMakerRecognizer in kinds
        await recognizer.close()

    def test_state_store_backend(self, settings):
        """Test the configured state backend is used."""
        assert isinstance(build_state_store(settings), InMemoryStateStore)
        redis_settings = settings.model_copy(update={"state_backend": "redis"})
        assert isinstance(build_state_store(redis_settings), RedisStateStore)

    def test_notifier(self, settings):
        """Test SMTP is used only with a mail host."""
        assert isinstance(build_notifier(settings), LogOnlyNotifier)
        smtp = build_notifier(settings.model_copy(update={"mail_host": "smtp.example.com"}))
        assert isinstance(smtp, SmtpNotifier)
        assert smtp.port == 587

    def test_middleware_order(self, settings):
        """Test typing is only added when enabled."""
        assert len(build_middleware(settings)) == 2
        typing = build_middleware(settings.model_copy(update={"send_typing": True}))
        assert any(isinstance(h, SendTypingMiddleware) for h in typing.hooks)

    def test_create_engine(self, settings, recognizer, connector):
        """Test the composed engine carries the configured limits."""
        engine = create_engine(settings, recognizer=recognizer, connector=connector)

        assert engine.config.confidence_threshold == 0.5
        assert engine.config.dialog_version == 1.0
        assert engine.config.locale == "nl"
        assert "/contact" in engine.registry


class TestCli:
    """Tests for the console chat."""

    def test_parse_text(self):
        """Test plain lines are sent as text."""
        assert parse_line("hallo") == ("hallo", [])

    def test_parse_image(self):
        """Test the image prefix sends an image attachment."""
        text, attachments = parse_line("!image kat.png")

        assert text == ""
        assert attachments[0].is_image
        assert attachments[0].name == "kat.png"

    def test_version(self):
        """Test the version option."""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "portfolio-bot" in result.output

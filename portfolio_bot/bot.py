"""
Bot Composition

Builds a ready-to-run DialogEngine from Settings: dialog content,
middleware, recognizers, state storage and the mail notifier.
"""

from typing import List, Optional

import structlog

from portfolio_bot.adapters.base import Connector, Notifier, Recognizer, StateStore
from portfolio_bot.adapters.mail import LogOnlyNotifier, SmtpNotifier
from portfolio_bot.adapters.recognizers import (
    LuisRecognizer,
    QnAMakerRecognizer,
    RecognizerSet,
)
from portfolio_bot.adapters.storage import InMemoryStateStore, RedisStateStore
from portfolio_bot.config import Settings, get_settings
from portfolio_bot.conversation.engine import DialogEngine, EngineConfig
from portfolio_bot.conversation.registry import DialogRegistry
from portfolio_bot.dialogs import build_rule_recognizer, register_portfolio_dialogs, welcome_sequence
from portfolio_bot.middleware import (
    AttachmentDetectionMiddleware,
    DialogVersionMiddleware,
    MiddlewarePipeline,
    SendTypingMiddleware,
)


logger = structlog.get_logger()


def build_recognizer(settings: Settings) -> Recognizer:
    """LUIS and QnA Maker when configured, local rules always."""
    recognizers: List[Recognizer] = [build_rule_recognizer()]

    if settings.luis_enabled:
        recognizers.append(
            LuisRecognizer(
                app_id=settings.luis_app_id,
                api_key=settings.luis_api_key,
                host_name=settings.luis_api_host_name,
                spell_check_key=settings.bing_spell_check_key or None,
                timeout=settings.recognizer_timeout_seconds,
            )
        )

    if settings.qna_enabled:
        recognizers.append(
            QnAMakerRecognizer(
                knowledge_base_id=settings.qna_knowledgebase_id,
                subscription_key=settings.qna_subscription_key,
                host=settings.qna_host,
                timeout=settings.recognizer_timeout_seconds,
            )
        )

    return RecognizerSet(recognizers)


def build_state_store(settings: Settings) -> StateStore:
    if settings.state_backend == "redis":
        return RedisStateStore.from_url(settings.redis_url, ttl_seconds=settings.state_ttl_seconds)
    return InMemoryStateStore()


def build_notifier(settings: Settings) -> Notifier:
    if not settings.mail_enabled:
        return LogOnlyNotifier()
    return SmtpNotifier(
        host=settings.mail_host,
        port=settings.mail_port,
        username=settings.mail_user or None,
        password=settings.mail_password or None,
        start_tls=settings.mail_start_tls,
    )


def build_middleware(settings: Settings) -> MiddlewarePipeline:
    pipeline = MiddlewarePipeline()
    pipeline.use(DialogVersionMiddleware(settings.dialog_version, reset_command=settings.reset_command))
    if settings.send_typing:
        pipeline.use(SendTypingMiddleware())
    pipeline.use(AttachmentDetectionMiddleware())
    return pipeline


def create_engine(
    settings: Optional[Settings] = None,
    *,
    connector: Optional[Connector] = None,
    notifier: Optional[Notifier] = None,
    recognizer: Optional[Recognizer] = None,
    state_store: Optional[StateStore] = None,
) -> DialogEngine:
    """
    Create the portfolio bot engine.

    Any adapter passed explicitly replaces the one Settings would select.
    Raises DialogConfigurationError when the dialog graph is incomplete.
    """
    settings = settings or get_settings()

    registry = register_portfolio_dialogs(
        DialogRegistry(),
        notifier or build_notifier(settings),
        mail_to=settings.mail_to,
        mail_subject=settings.mail_subject,
    )

    config = EngineConfig(
        confidence_threshold=settings.recognizer_confidence_threshold,
        prompt_max_retries=settings.prompt_max_retries,
        max_stack_depth=settings.max_stack_depth,
        locale=settings.default_locale,
        dialog_version=settings.dialog_version,
    )

    engine = DialogEngine(
        registry=registry,
        state_store=state_store or build_state_store(settings),
        recognizer=recognizer or build_recognizer(settings),
        config=config,
        middleware=build_middleware(settings),
        connector=connector,
        on_conversation_start=lambda update: welcome_sequence(update, pause=settings.typing_delay_seconds),
    )

    logger.info(
        "engine_created",
        environment=settings.environment,
        dialogs=len(registry),
        state_backend=settings.state_backend,
        luis=settings.luis_enabled,
        qna=settings.qna_enabled,
        mail=settings.mail_enabled,
    )

    return engine

"""
Dialog Registry

Named, addressable collection of dialog definitions with trigger-based
activation from recognized intents.
"""

from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)

import structlog

from .base import (
    ALWAYS_TRIGGER,
    DEFAULT_DIALOG_ID,
    FALLBACK_DIALOG_ID,
    DialogConfigurationError,
    DialogNotFoundError,
    IntentMatch,
)

if TYPE_CHECKING:
    from .session import DialogSession


logger = structlog.get_logger()


WaterfallStep = Callable[["DialogSession", Any], Awaitable[Any]]


def normalize_dialog_id(dialog_id: str) -> str:
    """
    Normalize a dialog id to its absolute path form.

    "contact", "/contact" and "/contact/" all become "/contact";
    an empty id is the root dialog "/".
    """
    path = (dialog_id or "").strip().strip("/")
    return "/" + path


@dataclass
class DialogDefinition:
    """
    A registered dialog: an id, a waterfall and the intents that start it.

    `references` lists the dialog ids the steps may begin or replace with,
    so typos in the dialog graph surface at startup.
    """

    id: str
    steps: Sequence[WaterfallStep]
    triggers: Sequence[str] = field(default_factory=tuple)
    references: Sequence[str] = field(default_factory=tuple)
    description: str = ""

    def __post_init__(self) -> None:
        self.id = normalize_dialog_id(self.id)
        self.steps = tuple(self.steps)
        self.triggers = tuple(self.triggers)
        self.references = tuple(normalize_dialog_id(r) for r in self.references)

        if not self.steps:
            raise DialogConfigurationError([f"{self.id}: waterfall has no steps"])

    @property
    def step_count(self) -> int:
        """Get the number of waterfall steps."""
        return len(self.steps)

    def is_triggered_by(self, intent: str) -> bool:
        """Check if an intent name starts this dialog (case-sensitive)."""
        return intent in self.triggers or ALWAYS_TRIGGER in self.triggers


class DialogRegistry:
    """
    Registry of dialog definitions keyed by normalized id.

    Usage:
        registry = DialogRegistry()
        registry.add("/greeting", [greet], triggers=["Greeting"])

        definition = registry.resolve_by_trigger("Greeting")
    """

    def __init__(
        self,
        default_dialog_id: str = DEFAULT_DIALOG_ID,
        fallback_dialog_id: str = FALLBACK_DIALOG_ID,
    ):
        self.default_dialog_id = normalize_dialog_id(default_dialog_id)
        self.fallback_dialog_id = normalize_dialog_id(fallback_dialog_id)
        self._dialogs: Dict[str, DialogDefinition] = {}

    def register(self, definition: DialogDefinition) -> DialogDefinition:
        """
        Register a dialog definition.

        Re-registering an id replaces the earlier definition but keeps its
        original position in the registration order.
        """
        replaced = definition.id in self._dialogs
        self._dialogs[definition.id] = definition

        logger.info(
            "dialog_registered",
            dialog_id=definition.id,
            steps=definition.step_count,
            triggers=list(definition.triggers),
            replaced=replaced,
        )

        return definition

    def add(
        self,
        dialog_id: str,
        steps: Sequence[WaterfallStep],
        triggers: Sequence[str] = (),
        references: Sequence[str] = (),
        description: str = "",
    ) -> DialogDefinition:
        """Build and register a dialog definition."""
        return self.register(
            DialogDefinition(
                id=dialog_id,
                steps=steps,
                triggers=triggers,
                references=references,
                description=description,
            )
        )

    def resolve_by_id(self, dialog_id: str) -> DialogDefinition:
        """Get a dialog by id; raises DialogNotFoundError."""
        key = normalize_dialog_id(dialog_id)
        definition = self._dialogs.get(key)
        if definition is None:
            raise DialogNotFoundError(key)
        return definition

    def resolve_by_trigger(self, intent: str) -> Optional[DialogDefinition]:
        """Get the first registered dialog triggered by an intent."""
        for definition in self._dialogs.values():
            if intent in definition.triggers:
                return definition

        for definition in self._dialogs.values():
            if ALWAYS_TRIGGER in definition.triggers:
                return definition

        return None

    def match(
        self,
        matches: Sequence[IntentMatch],
        threshold: float = 0.0,
    ) -> Optional[Tuple[DialogDefinition, IntentMatch]]:
        """
        Pick the dialog to begin for a set of recognized intents.

        The highest-confidence match that clears the threshold and is the
        trigger of some dialog wins. Equal confidences go to the dialog
        registered first; explicit triggers beat the wildcard.
        """
        candidates: List[Tuple[float, int, int, DialogDefinition, IntentMatch]] = []

        for order, definition in enumerate(self._dialogs.values()):
            for intent_match in matches:
                if intent_match.confidence < threshold:
                    continue
                if intent_match.intent in definition.triggers:
                    candidates.append((-intent_match.confidence, 0, order, definition, intent_match))
                elif ALWAYS_TRIGGER in definition.triggers:
                    candidates.append((-intent_match.confidence, 1, order, definition, intent_match))

        if not candidates:
            return None

        candidates.sort(key=lambda c: (c[0], c[1], c[2]))
        _, _, _, definition, intent_match = candidates[0]
        return definition, intent_match

    def validate(self) -> None:
        """
        Check the dialog graph for dangling references.

        Raises DialogConfigurationError listing every problem found.
        """
        problems: List[str] = []

        if self.default_dialog_id not in self._dialogs:
            problems.append(f"default dialog {self.default_dialog_id} is not registered")
        if self.fallback_dialog_id not in self._dialogs:
            problems.append(f"fallback dialog {self.fallback_dialog_id} is not registered")

        for definition in self._dialogs.values():
            for reference in definition.references:
                if reference not in self._dialogs:
                    problems.append(f"{definition.id} references unknown dialog {reference}")

        if problems:
            logger.error("dialog_graph_invalid", problems=problems)
            raise DialogConfigurationError(problems)

        logger.info("dialog_graph_validated", dialogs=len(self._dialogs))

    @property
    def ids(self) -> List[str]:
        """Get registered ids in registration order."""
        return list(self._dialogs.keys())

    def __contains__(self, dialog_id: object) -> bool:
        if not isinstance(dialog_id, str):
            return False
        return normalize_dialog_id(dialog_id) in self._dialogs

    def __len__(self) -> int:
        return len(self._dialogs)

    def __iter__(self) -> Iterator[DialogDefinition]:
        return iter(list(self._dialogs.values()))

"""
Chat Agent
==========
Transport-agnostic handling of one inbound chat message.

Routing Order:
    1. Commands (/start, /describe or /text, /help; anything else → hint)
    2. Reply to the edit prompt → regenerate from the reply text (revision)
    3. Image attached           → screenshot analysis (caption ignored)
    4. Non-empty text           → text analysis
    5. Nothing usable           → hint

Failure Policy:
    - Analyzer errors never reach the user raw. Image failures show a short
      error hint plus the generic template; text and revision failures show
      a template built around the user's own words, labelled as produced
      without AI.
    - Every analysis outcome (success or failure) is followed by the edit
      prompt, so the user can always revise.

Edit Correlation:
    The only conversational state is the edit prompt itself: a message that
    replies to a message whose text equals EDIT_PROMPT_TEXT is a revision.
    Nothing is stored between messages.

Concurrency:
    Each message is handled independently. Backend calls are bounded by a
    semaphore so parallel chats cannot overload a local model server.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from qabot.analysis.analyzer import Analyzer
from qabot.analysis.errors import AnalysisError
from qabot.analysis.templates import fallback_from_user_description, fallback_template
from qabot.core.constants import EDIT_PROMPT_TEXT, MAX_MESSAGE_LENGTH
from qabot.core.output_formatter import format_bug_analysis, split_message

logger = logging.getLogger(__name__)

# Max characters of an error shown to the user
_ERROR_HINT_LIMIT = 200


# ---------------------------------------------------------------------------
# Fixed texts
# ---------------------------------------------------------------------------
START_TEXT = (
    "Hi! 👋\n\n"
    "I analyze both screenshots and text descriptions of bugs, and generate "
    "functional test cases in English.\n\n"
    "• Photo — send a screenshot of the bug; I analyze the image and generate test cases.\n\n"
    "• Text — describe the bug in your own words (any language). I turn your "
    "description into test cases with priority and severity.\n\n"
    "Just send a photo or write a message with the bug description."
)

DESCRIBE_HINT_TEXT = (
    "Describe the bug in text (you can use any language).\n\n"
    "For example: what screen, what you did, what you expected, what actually "
    "happened. I will analyze it and generate test cases."
)

HELP_TEXT = (
    "Commands\n\n"
    "• /start — welcome and how to use the bot\n"
    "• /describe — hint for describing a bug in text\n"
    "• /help — this message\n\n"
    "Usage\n\n"
    "• Send a photo (screenshot) — I analyze the image and generate test cases.\n"
    "• Send text — describe the bug in your own words (any language); I generate "
    "test cases with priority and severity.\n\n"
    "Edit\n\n"
    "After you get test cases, I send an \"Edit\" message. Reply to it with your "
    "corrections or extra details, and I'll regenerate test cases from your text."
)

UNKNOWN_COMMAND_TEXT = (
    "Unknown command. Use /start, /describe or /help. "
    "You can also send a photo or a text bug description."
)
EMPTY_MESSAGE_TEXT = "Please send one photo/screenshot of the bug or describe the bug in text."
EMPTY_EDIT_TEXT = "Please reply with your corrections or extra details (non-empty text)."

IMAGE_FAILURE_TEXT = (
    "Screenshot analysis failed: {hint}\n\n"
    "Screenshots need a vision model (not a plain text model). Check:\n"
    "• In .env: OLLAMA_MODEL=llava\n"
    "• Run once: ollama pull llava\n"
    "• Ollama must be running (the app or: ollama serve)\n\n"
    "Template you can edit:\n\n"
)
TEXT_FAILURE_TEXT = (
    "Test cases based on your description "
    "(AI was unavailable; start Ollama for full analysis):\n\n"
)
EDIT_FAILURE_TEXT = "Test cases based on your edit (AI was unavailable):\n\n"


# ---------------------------------------------------------------------------
# Message types
# ---------------------------------------------------------------------------
@dataclass
class InboundMessage:
    """One message delivered by the chat transport."""
    text: str = ""
    image: Optional[bytes] = None
    reply_to_text: str = ""


@dataclass
class ChatReply:
    """Outbound messages, each within the transport's size limit."""
    messages: List[str] = field(default_factory=list)


def _error_hint(error: Exception) -> str:
    hint = str(error)
    if len(hint) > _ERROR_HINT_LIMIT:
        hint = hint[:_ERROR_HINT_LIMIT] + "..."
    return hint


# ---------------------------------------------------------------------------
# Chat Agent
# ---------------------------------------------------------------------------
class ChatAgent:
    """
    Routes inbound messages to the analyzer and renders the replies.

    Parameters
    ----------
    analyzer : Analyzer
        Mock or generative backend.
    max_concurrent : int
        Analyses allowed in flight at once (default: 2).
    deadline : float or None
        Per-analysis deadline in seconds; None leaves it to the client timeout.
    max_message_length : int
        Chunk size for outbound text (default: 4096).
    """

    def __init__(
        self,
        analyzer: Analyzer,
        max_concurrent: int = 2,
        deadline: Optional[float] = None,
        max_message_length: int = MAX_MESSAGE_LENGTH,
    ) -> None:
        self.analyzer = analyzer
        self.deadline = deadline
        self.max_message_length = max_message_length
        self._slots = asyncio.Semaphore(max(1, max_concurrent))

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    async def handle(self, message: InboundMessage) -> ChatReply:
        text = (message.text or "").strip()

        if text.startswith("/") and not message.image:
            return self._handle_command(text)

        if message.reply_to_text.strip() == EDIT_PROMPT_TEXT:
            return await self._handle_edit(text)

        if message.image:
            return await self._handle_image(message.image)

        if text:
            return await self._handle_text(text)

        return ChatReply(messages=[EMPTY_MESSAGE_TEXT])

    # -------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------
    def _handle_command(self, text: str) -> ChatReply:
        # "/help@SomeBot extra" → "help"
        command = text[1:].split(maxsplit=1)[0].split("@", 1)[0].lower() if len(text) > 1 else ""
        if command == "start":
            return ChatReply(messages=[START_TEXT])
        if command in ("describe", "text"):
            return ChatReply(messages=[DESCRIBE_HINT_TEXT])
        if command == "help":
            return ChatReply(messages=[HELP_TEXT])
        return ChatReply(messages=[UNKNOWN_COMMAND_TEXT])

    async def _handle_image(self, image: bytes) -> ChatReply:
        try:
            async with self._slots:
                result = await self.analyzer.analyze_image(image, deadline=self.deadline)
        except AnalysisError as e:
            logger.warning("Image analysis failed: %s", e)
            body = (
                IMAGE_FAILURE_TEXT.format(hint=_error_hint(e))
                + format_bug_analysis(fallback_template())
            )
            return self._reply_with_edit(body)
        return self._reply_with_edit(format_bug_analysis(result))

    async def _handle_text(self, description: str) -> ChatReply:
        try:
            async with self._slots:
                result = await self.analyzer.analyze_text(description, deadline=self.deadline)
        except AnalysisError as e:
            logger.warning("Text analysis failed: %s", e)
            body = TEXT_FAILURE_TEXT + format_bug_analysis(fallback_from_user_description(description))
            return self._reply_with_edit(body)
        return self._reply_with_edit(format_bug_analysis(result))

    async def _handle_edit(self, reply_text: str) -> ChatReply:
        if not reply_text:
            return ChatReply(messages=[EMPTY_EDIT_TEXT])
        logger.info("Regenerating test cases from edit (%d chars)", len(reply_text))
        try:
            async with self._slots:
                result = await self.analyzer.analyze_text(reply_text, deadline=self.deadline)
        except AnalysisError as e:
            logger.warning("Edit analysis failed: %s", e)
            body = EDIT_FAILURE_TEXT + format_bug_analysis(fallback_from_user_description(reply_text))
            return self._reply_with_edit(body)
        return self._reply_with_edit(format_bug_analysis(result))

    def _reply_with_edit(self, body: str) -> ChatReply:
        messages = split_message(body, self.max_message_length)
        messages.append(EDIT_PROMPT_TEXT)
        return ChatReply(messages=messages)

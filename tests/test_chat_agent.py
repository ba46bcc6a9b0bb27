"""
Chat Agent Tests
================
All tests mock the analyzer — no backend calls.

Covers:
    - Command routing
    - Image / text / edit routing and ordering
    - Fallback replies on analyzer failure
    - Edit prompt always offered after an analysis
    - Long replies chunked
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

from qabot.agents.chat_agent import (
    DESCRIBE_HINT_TEXT,
    EDIT_FAILURE_TEXT,
    EMPTY_EDIT_TEXT,
    EMPTY_MESSAGE_TEXT,
    HELP_TEXT,
    START_TEXT,
    TEXT_FAILURE_TEXT,
    UNKNOWN_COMMAND_TEXT,
    ChatAgent,
    InboundMessage,
)
from qabot.analysis.analyzer import Analyzer
from qabot.analysis.errors import AnalysisCancelled, BackendHTTPError, TransportError
from qabot.analysis.templates import mock_analysis
from qabot.core.constants import EDIT_PROMPT_TEXT
from qabot.core.output_formatter import format_bug_analysis
from qabot.models.bug_analysis import BugAnalysis
from qabot.models.test_case import TestCase


def _mock_analyzer(result: BugAnalysis = None, error: Exception = None) -> MagicMock:
    analyzer = MagicMock(spec=Analyzer)
    if error is not None:
        analyzer.analyze_image = AsyncMock(side_effect=error)
        analyzer.analyze_text = AsyncMock(side_effect=error)
    else:
        analyzer.analyze_image = AsyncMock(return_value=result or mock_analysis())
        analyzer.analyze_text = AsyncMock(return_value=result or mock_analysis())
    return analyzer


def _handle(agent: ChatAgent, **kwargs):
    return asyncio.run(agent.handle(InboundMessage(**kwargs)))


# ---------------------------------------------------------------------------
# 1. Commands
# ---------------------------------------------------------------------------
class TestCommands:

    def test_start(self):
        assert _handle(ChatAgent(_mock_analyzer()), text="/start").messages == [START_TEXT]

    def test_describe_and_alias(self):
        agent = ChatAgent(_mock_analyzer())
        assert _handle(agent, text="/describe").messages == [DESCRIBE_HINT_TEXT]
        assert _handle(agent, text="/text").messages == [DESCRIBE_HINT_TEXT]

    def test_help_with_bot_suffix(self):
        assert _handle(ChatAgent(_mock_analyzer()), text="/help@QaBot").messages == [HELP_TEXT]

    def test_unknown_command(self):
        assert _handle(ChatAgent(_mock_analyzer()), text="/foo").messages == [UNKNOWN_COMMAND_TEXT]

    def test_commands_never_call_analyzer(self):
        analyzer = _mock_analyzer()
        _handle(ChatAgent(analyzer), text="/start")
        analyzer.analyze_text.assert_not_called()
        analyzer.analyze_image.assert_not_called()


# ---------------------------------------------------------------------------
# 2. Routing
# ---------------------------------------------------------------------------
class TestRouting:

    def test_text_success(self):
        analyzer = _mock_analyzer()
        reply = _handle(ChatAgent(analyzer), text="  Cart total is wrong  ")
        analyzer.analyze_text.assert_awaited_once()
        assert analyzer.analyze_text.await_args.args[0] == "Cart total is wrong"
        assert reply.messages == [format_bug_analysis(mock_analysis()), EDIT_PROMPT_TEXT]

    def test_image_wins_over_caption(self):
        analyzer = _mock_analyzer()
        _handle(ChatAgent(analyzer), text="caption", image=b"png")
        analyzer.analyze_image.assert_awaited_once()
        analyzer.analyze_text.assert_not_called()

    def test_edit_reply_regenerates_from_text(self):
        analyzer = _mock_analyzer()
        reply = _handle(ChatAgent(analyzer), text="It only happens on iOS", reply_to_text=EDIT_PROMPT_TEXT)
        assert analyzer.analyze_text.await_args.args[0] == "It only happens on iOS"
        assert reply.messages[-1] == EDIT_PROMPT_TEXT

    def test_blank_edit_reply(self):
        analyzer = _mock_analyzer()
        reply = _handle(ChatAgent(analyzer), text="  ", reply_to_text=EDIT_PROMPT_TEXT)
        assert reply.messages == [EMPTY_EDIT_TEXT]
        analyzer.analyze_text.assert_not_called()

    def test_reply_to_other_message_is_new_report(self):
        analyzer = _mock_analyzer()
        reply = _handle(ChatAgent(analyzer), text="New bug", reply_to_text="some other message")
        analyzer.analyze_text.assert_awaited_once()
        assert reply.messages[-1] == EDIT_PROMPT_TEXT

    def test_empty_message(self):
        assert _handle(ChatAgent(_mock_analyzer()), text="").messages == [EMPTY_MESSAGE_TEXT]

    def test_deadline_forwarded(self):
        analyzer = _mock_analyzer()
        _handle(ChatAgent(analyzer, deadline=30.0), text="bug")
        assert analyzer.analyze_text.await_args.kwargs["deadline"] == 30.0


# ---------------------------------------------------------------------------
# 3. Failures
# ---------------------------------------------------------------------------
class TestFailures:

    def test_image_failure_shows_template_and_hint(self):
        reply = _handle(ChatAgent(_mock_analyzer(error=BackendHTTPError(500, "boom"))), image=b"png")
        body = "".join(reply.messages[:-1])
        assert "Screenshot analysis failed: backend http 500: boom" in body
        assert "TC-001" in body
        assert reply.messages[-1] == EDIT_PROMPT_TEXT

    def test_text_failure_uses_description(self):
        desc = "Login button does nothing when clicked on Android"
        reply = _handle(ChatAgent(_mock_analyzer(error=TransportError("refused"))), text=desc)
        body = reply.messages[0]
        assert body.startswith(TEXT_FAILURE_TEXT)
        assert f"Bug: {desc}" in body
        assert reply.messages[-1] == EDIT_PROMPT_TEXT

    def test_edit_failure(self):
        reply = _handle(
            ChatAgent(_mock_analyzer(error=AnalysisCancelled("deadline"))),
            text="Also broken on tablets",
            reply_to_text=EDIT_PROMPT_TEXT,
        )
        assert reply.messages[0].startswith(EDIT_FAILURE_TEXT)
        assert reply.messages[-1] == EDIT_PROMPT_TEXT

    def test_long_error_hint_truncated(self):
        reply = _handle(ChatAgent(_mock_analyzer(error=TransportError("x" * 1000))), image=b"png")
        assert "x" * 200 + "..." in reply.messages[0]
        assert "x" * 201 not in reply.messages[0]


# ---------------------------------------------------------------------------
# 4. Chunking
# ---------------------------------------------------------------------------
class TestChunking:

    def test_long_result_split(self):
        cases = [
            TestCase(id=f"TC-{i:03d}", title=f"Case {i}", steps=["step " * 20], expected="e", actual=f"a{i}")
            for i in range(60)
        ]
        analysis = BugAnalysis(bug_title="Many", test_cases=cases)
        reply = _handle(ChatAgent(_mock_analyzer(result=analysis), max_message_length=1000), text="bug")
        body_chunks = reply.messages[:-1]
        assert len(body_chunks) > 1
        assert all(len(chunk) <= 1000 for chunk in body_chunks)
        assert "".join(body_chunks) == format_bug_analysis(analysis)
        assert reply.messages[-1] == EDIT_PROMPT_TEXT

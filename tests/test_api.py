"""
API Tests
=========
HTTP surface with the analyzer mocked — no backend, no real images.
"""
import base64
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from main import app
from qabot.agents.chat_agent import ChatAgent, START_TEXT
from qabot.analysis.analyzer import Analyzer
from qabot.analysis.errors import BackendHTTPError, EmptyInput, TransportError
from qabot.analysis.templates import mock_analysis
from qabot.api.dependencies import get_analyzer, get_chat_agent
from qabot.core.config import AnalyzerConfig
from qabot.core.constants import EDIT_PROMPT_TEXT
from qabot.models.bug_analysis import BugAnalysis
from qabot.models.test_case import TestCase


def _mock_analyzer(result: BugAnalysis = None, error: Exception = None) -> MagicMock:
    analyzer = MagicMock(spec=Analyzer)
    analyzer.analyze_image = AsyncMock(return_value=result or mock_analysis(), side_effect=error)
    analyzer.analyze_text = AsyncMock(return_value=result or mock_analysis(), side_effect=error)
    return analyzer


@pytest.fixture
def use_analyzer():
    """Install a mocked analyzer (and a chat agent around it) for one test."""
    def install(analyzer):
        app.dependency_overrides[get_analyzer] = lambda: analyzer
        app.dependency_overrides[get_chat_agent] = lambda: ChatAgent(analyzer)
        return TestClient(app)
    yield install
    app.dependency_overrides.clear()


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


# ---------------------------------------------------------------------------
# 1. /api/analyze/text
# ---------------------------------------------------------------------------
class TestAnalyzeText:

    def test_success(self, use_analyzer):
        client = use_analyzer(_mock_analyzer())
        resp = client.post("/api/analyze/text", json={"description": "Submit is cut off"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["fallback_used"] is False
        assert data["error"] == ""
        assert data["bug_analysis"]["bug_title"] == mock_analysis().bug_title
        assert "Test case TC-001 #1" in data["formatted"]

    def test_backend_failure_returns_description_fallback(self, use_analyzer):
        desc = "Login button does nothing when clicked on Android"
        client = use_analyzer(_mock_analyzer(error=BackendHTTPError(500, "boom")))
        resp = client.post("/api/analyze/text", json={"description": desc})
        assert resp.status_code == 200
        data = resp.json()
        assert data["fallback_used"] is True
        assert "500" in data["error"]
        assert data["bug_analysis"]["bug_title"] == desc
        assert data["bug_analysis"]["test_cases"][0]["actual"] == desc

    def test_empty_input_is_422(self, use_analyzer):
        client = use_analyzer(_mock_analyzer(error=EmptyInput("empty description")))
        resp = client.post("/api/analyze/text", json={"description": "  "})
        assert resp.status_code == 422

    def test_result_deduplicated(self, use_analyzer):
        dup = TestCase(id="A", title="t", expected="e", actual="a")
        result = BugAnalysis(bug_title="T", test_cases=[dup, dup.model_copy(update={"id": "B"})])
        client = use_analyzer(_mock_analyzer(result=result))
        data = client.post("/api/analyze/text", json={"description": "x"}).json()
        assert [tc["id"] for tc in data["bug_analysis"]["test_cases"]] == ["A"]


# ---------------------------------------------------------------------------
# 2. /api/analyze/image
# ---------------------------------------------------------------------------
class TestAnalyzeImage:

    def test_success_passes_decoded_bytes(self, use_analyzer):
        analyzer = _mock_analyzer()
        client = use_analyzer(analyzer)
        resp = client.post("/api/analyze/image", json={"image_base64": _b64(b"\x89PNG fake")})
        assert resp.status_code == 200
        assert analyzer.analyze_image.await_args.args[0] == b"\x89PNG fake"

    def test_data_url_prefix_accepted(self, use_analyzer):
        analyzer = _mock_analyzer()
        client = use_analyzer(analyzer)
        resp = client.post("/api/analyze/image", json={"image_base64": "data:image/png;base64," + _b64(b"img")})
        assert resp.status_code == 200
        assert analyzer.analyze_image.await_args.args[0] == b"img"

    def test_invalid_base64_is_422(self, use_analyzer):
        client = use_analyzer(_mock_analyzer())
        resp = client.post("/api/analyze/image", json={"image_base64": "not base64!!"})
        assert resp.status_code == 422

    def test_backend_failure_returns_template(self, use_analyzer):
        client = use_analyzer(_mock_analyzer(error=TransportError("refused")))
        data = client.post("/api/analyze/image", json={"image_base64": _b64(b"img")}).json()
        assert data["fallback_used"] is True
        assert "TC-001" in data["formatted"]


# ---------------------------------------------------------------------------
# 3. /api/messages
# ---------------------------------------------------------------------------
class TestMessages:

    def test_command(self, use_analyzer):
        client = use_analyzer(_mock_analyzer())
        resp = client.post("/api/messages", json={"text": "/start"})
        assert resp.status_code == 200
        assert resp.json()["messages"] == [START_TEXT]

    def test_text_report_ends_with_edit_prompt(self, use_analyzer):
        client = use_analyzer(_mock_analyzer())
        messages = client.post("/api/messages", json={"text": "Cart is empty"}).json()["messages"]
        assert messages[-1] == EDIT_PROMPT_TEXT

    def test_edit_reply(self, use_analyzer):
        analyzer = _mock_analyzer()
        client = use_analyzer(analyzer)
        client.post("/api/messages", json={"text": "Only on iOS", "reply_to_text": EDIT_PROMPT_TEXT})
        assert analyzer.analyze_text.await_args.args[0] == "Only on iOS"

    def test_image_message(self, use_analyzer):
        analyzer = _mock_analyzer()
        client = use_analyzer(analyzer)
        client.post("/api/messages", json={"image_base64": _b64(b"img"), "text": "caption"})
        analyzer.analyze_image.assert_awaited_once()


# ---------------------------------------------------------------------------
# 4. Startup & health
# ---------------------------------------------------------------------------
class TestStartup:

    def test_health_with_mock_mode(self):
        with patch("main.load_analyzer_config", return_value=AnalyzerConfig()):
            with TestClient(app) as client:
                resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "analysis_mode": "mock"}

    def test_unreachable_backend_only_warns(self):
        config = AnalyzerConfig(mode="ollama", base_url="http://ollama.test")
        failing_probe = AsyncMock(side_effect=TransportError("refused"))
        with patch("main.load_analyzer_config", return_value=config), \
             patch("main.check_backend_reachable", failing_probe):
            with TestClient(app) as client:
                resp = client.get("/health")
        failing_probe.assert_awaited_once()
        assert resp.json()["analysis_mode"] == "ollama"

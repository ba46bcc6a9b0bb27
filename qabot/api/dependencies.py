"""
Request dependencies.
The analyzer and chat agent are built once at startup and kept on app.state.
"""
from fastapi import HTTPException, Request

from qabot.agents.chat_agent import ChatAgent
from qabot.analysis.analyzer import Analyzer


def get_analyzer(request: Request) -> Analyzer:
    analyzer = getattr(request.app.state, "analyzer", None)
    if analyzer is None:
        raise HTTPException(status_code=503, detail="Analyzer not initialised")
    return analyzer


def get_chat_agent(request: Request) -> ChatAgent:
    agent = getattr(request.app.state, "chat_agent", None)
    if agent is None:
        raise HTTPException(status_code=503, detail="Chat agent not initialised")
    return agent

"""
POST /api/messages
Chat-style entry point: one inbound message in, the bot's outbound messages out.
A reply to the edit prompt is recognised through reply_to_text.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from qabot.agents.chat_agent import ChatAgent, InboundMessage
from qabot.api.analyze import decode_image
from qabot.api.dependencies import get_chat_agent

router = APIRouter(prefix="/api", tags=["Chat"])


class MessageRequest(BaseModel):
    text: str = ""
    image_base64: Optional[str] = None
    reply_to_text: str = ""


class MessageResponse(BaseModel):
    messages: List[str]


@router.post("/messages", response_model=MessageResponse)
async def post_message(request: MessageRequest, agent: ChatAgent = Depends(get_chat_agent)):
    image = decode_image(request.image_base64) if request.image_base64 else None
    reply = await agent.handle(InboundMessage(
        text=request.text,
        image=image,
        reply_to_text=request.reply_to_text,
    ))
    return MessageResponse(messages=reply.messages)

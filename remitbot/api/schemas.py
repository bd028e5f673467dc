from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

EventKind = Literal["command", "action", "text"]

class InboundEvent(BaseModel):
    chatId: Union[str, int]
    kind: EventKind = "text"
    # kind == "command": name without the leading slash, plus whitespace-split args
    command: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    # kind == "action": button discriminant and its typed parameters
    action: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)
    # raw text as typed (always set for text, kept for commands too)
    text: str = ""
    # transport-specific correlation (e.g. Telegram callback query id)
    callbackId: Optional[str] = None

class ButtonOut(BaseModel):
    label: str
    action: str
    params: Dict[str, Any] = Field(default_factory=dict)

class ReplyOut(BaseModel):
    text: str
    buttons: List[List[ButtonOut]] = Field(default_factory=list)
    parseMode: Optional[str] = None

class ChatResponse(BaseModel):
    status: Literal["success", "error"] = "success"
    replies: List[ReplyOut] = Field(default_factory=list)

"""
AI API

POST /api/retailer/chatbot     소매 대시보드 챗봇
POST /api/ai/standardize       상품명 표준화 (도매점)
"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...ai.chat import ChatMessage
from ...domain.models import Profile
from ..container import ServiceContainer
from ..deps import current_retailer, current_wholesaler, get_services

router = APIRouter(tags=["ai"])


class ChatMessageBody(BaseModel):
    role: str = ""
    content: str = ""


class ChatBody(BaseModel):
    messages: List[ChatMessageBody] = Field(default_factory=list)


class StandardizeBody(BaseModel):
    product_name: str = Field(default="", alias="productName")

    model_config = {"populate_by_name": True}


@router.post("/api/retailer/chatbot")
def chatbot(
    body: ChatBody,
    profile: Profile = Depends(current_retailer),
    services: ServiceContainer = Depends(get_services),
):
    messages = [ChatMessage(role=m.role, content=m.content) for m in body.messages]
    result = services.chat.chat(messages)
    return {"success": True, "reply": result["message"]}


@router.post("/api/ai/standardize")
def standardize(
    body: StandardizeBody,
    profile: Profile = Depends(current_wholesaler),
    services: ServiceContainer = Depends(get_services),
):
    result = services.standardizer.standardize(body.product_name, profile.wholesaler_id)
    return {"success": True, "data": result.to_dict()}

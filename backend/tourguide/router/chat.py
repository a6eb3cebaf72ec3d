from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from tourguide.services.assistant import TravelAssistant, get_assistant

router = APIRouter(prefix="/api", tags=["Chat"])


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)


class ChatResponse(BaseModel):
    response: str


@router.post("/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, assistant: TravelAssistant = Depends(get_assistant)):
    """
    Ask the travel assistant about places, culture and travel in Maharashtra.
    """
    reply = await assistant.reply(body.message)
    return ChatResponse(response=reply)

"""
api/routes/messages.py -- Message submission.

POST /api/message accepts {content, author}, validates lengths (content 1-100,
author 1-50 characters after trimming) and echoes the message back. Messages
are not stored.
"""

from fastapi import APIRouter, Request

from api.limiter import global_limit
from api.models import MessageIn, MessageReceipt

router = APIRouter(prefix="/api")


@router.post("/message", response_model=MessageReceipt, status_code=201)
@global_limit
async def submit_message(request: Request, body: MessageIn) -> MessageReceipt:
    return MessageReceipt(data=body)

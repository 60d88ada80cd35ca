from dataclasses import asdict

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from helpdesk.chat import room, ChatMessage
from helpdesk.deps import get_current_user
from helpdesk.models import User
from helpdesk.notifications import notifier, CHAT_MESSAGE
from helpdesk.schemas import ChatMessageCreate, ChatMessageOut, UnreadOut

router = APIRouter()


def message_out(m: ChatMessage, user_id: str) -> ChatMessageOut:
    return ChatMessageOut(id=m.id, sender_id=m.sender_id, text=m.text, timestamp=m.timestamp, read=m.read_for(user_id))


@router.get("/messages", response_model=list[ChatMessageOut])
def list_messages(user: User = Depends(get_current_user)):
    return [message_out(m, user.id) for m in room.messages()]


@router.post("/messages", response_model=ChatMessageOut)
def send_message(body: ChatMessageCreate, background: BackgroundTasks, user: User = Depends(get_current_user)):
    try:
        msg = room.post(user.id, body.text)
    except ValueError:
        raise HTTPException(status_code=400, detail="Mensagem vazia")

    payload = asdict(msg)
    payload.pop("read_by")
    background.add_task(notifier.emit, CHAT_MESSAGE, payload)
    return message_out(msg, user.id)


@router.get("/unread", response_model=UnreadOut)
def unread(user: User = Depends(get_current_user)):
    return UnreadOut(unread=room.unread_count(user.id))


@router.post("/read", response_model=UnreadOut)
def mark_read(user: User = Depends(get_current_user)):
    room.mark_read(user.id)
    return UnreadOut(unread=0)

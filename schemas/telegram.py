from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class User(TelegramModel):
    id: int
    first_name: Optional[str] = None
    username: Optional[str] = None


class Chat(TelegramModel):
    id: int
    type: Optional[str] = None


class Message(TelegramModel):
    message_id: int
    chat: Chat
    from_user: Optional[User] = Field(default=None, alias="from")
    text: Optional[str] = None


class CallbackQuery(TelegramModel):
    id: str
    from_user: User = Field(alias="from")
    message: Optional[Message] = None
    data: Optional[str] = None


class Update(TelegramModel):
    update_id: int
    message: Optional[Message] = None
    callback_query: Optional[CallbackQuery] = None

# models/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional, Literal


class CamelModel(BaseModel):
    """Request bodies use camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_doc(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# Request bodies

class ChatRequest(CamelModel):
    message: str = Field(..., description="User's message")
    user_id: str = Field(..., min_length=1, description="User ID")
    conversation_id: str = Field(..., min_length=1, description="Conversation ID")
    settings: Optional[Dict[str, Any]] = Field(None, description="Client chat settings")


class CreateConversationRequest(CamelModel):
    title: Optional[str] = None
    id: Optional[str] = None


class RenameConversationRequest(CamelModel):
    title: str


class GenerateSummaryRequest(CamelModel):
    user_id: str
    conversation_id: str


class SignupRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(CamelModel):
    email: str
    password: str


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    university: Optional[str] = None
    profile_image: Optional[str] = None


class UserActionRequest(CamelModel):
    reason: Optional[str] = None
    action: Literal["ban", "delete"] = "delete"
    ban_until: Optional[str] = None


class BookSessionRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    user_id: str
    counselor_id: str
    counselor_name: Optional[str] = None
    date: str
    time: str
    status: Optional[str] = None
    session_type: Optional[str] = None


class SessionStatusUpdate(CamelModel):
    status: str
    reason: Optional[str] = None


class RescheduleRequest(CamelModel):
    new_date: str
    new_time: str


class SessionTypeUpdate(CamelModel):
    session_type: str


class SessionNotesUpdate(CamelModel):
    notes: str


class SendNotificationRequest(CamelModel):
    user_id: str
    type: str
    title: str
    message: str
    session_id: Optional[str] = None


class AdminActionRequest(CamelModel):
    admin_id: Optional[str] = None
    reason: Optional[str] = None


class TempPasswordRequest(AdminActionRequest):
    email_to_user: bool = False


class TokenRequest(CamelModel):
    token: str


class SetPasswordRequest(CamelModel):
    token: str
    new_password: str = Field(..., min_length=8)


class ChangeTempPasswordRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    temp_password: str
    new_password: str = Field(..., min_length=8)


class SessionFeedback(CamelModel):
    rating: Optional[int] = None
    comment: Optional[str] = None

"""
Request and response models for the webhook service.
Inbound models mirror the LINE webhook payload; outbound reply models
serialize to LINE message objects with ``model_dump(by_alias=True)``.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Annotated, Dict, List, Literal, Optional, Union

# Inbound webhook payload

class EventSource(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str = "user"
    user_id: Optional[str] = Field(None, alias="userId")
    group_id: Optional[str] = Field(None, alias="groupId")
    room_id: Optional[str] = Field(None, alias="roomId")

class EventMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    type: str
    text: Optional[str] = None

class WebhookEvent(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str
    reply_token: Optional[str] = Field(None, alias="replyToken")
    timestamp: Optional[int] = None
    mode: Optional[str] = None
    source: Optional[EventSource] = None
    message: Optional[EventMessage] = None

    def is_text_message(self) -> bool:
        return self.type == "message" and self.message is not None and self.message.type == "text"

class WebhookRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    destination: Optional[str] = None
    events: List[WebhookEvent]

# Outbound replies

class TextReply(BaseModel):
    type: Literal["text"] = "text"
    text: str

    @field_validator('text')
    @classmethod
    def text_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('text cannot be empty')
        return v

class ImageReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["image"] = "image"
    original_content_url: str = Field(alias="originalContentUrl")
    preview_image_url: str = Field(alias="previewImageUrl")

    @classmethod
    def from_url(cls, url: str) -> "ImageReply":
        return cls(original_content_url=url, preview_image_url=url)

Reply = Annotated[Union[TextReply, ImageReply], Field(discriminator="type")]

# Service responses

class WebhookAck(BaseModel):
    status: str = "ok"

class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
    store_project_id: str
    document_counts: Dict[str, int]
    config_issues: List[str] = []

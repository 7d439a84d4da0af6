from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageOut(CamelOut):
    success: bool = True
    message: str


class PublicUserOut(CamelOut):
    id: str
    full_name: str
    email: str
    role: str


class AuthOut(CamelOut):
    success: bool = True
    message: str
    token: str
    expires: datetime
    refresh_token: str | None = None
    refresh_expires: datetime | None = None
    user: PublicUserOut


class ProfileOut(CamelOut):
    id: str
    full_name: str
    email: str
    role: str
    created_at: datetime | None = None


class QuestionOut(CamelOut):
    id: str
    subject: str
    paper_type: str
    year: str
    month: str
    exam_stage: str
    question_number: str
    question_text: str
    answer_text: str


class QuestionsOut(CamelOut):
    success: bool = True
    count: int
    data: list[QuestionOut]


class CountOut(CamelOut):
    success: bool = True
    count: int


class AnnouncementOut(CamelOut):
    id: str
    title: str
    content: str
    priority: int
    valid_until: datetime | None = None
    created_at: datetime | None = None


class AnnouncementsOut(CamelOut):
    success: bool = True
    data: list[AnnouncementOut]


class NotificationOut(CamelOut):
    id: str
    title: str
    message: str
    announcement_id: str | None = None
    read: bool = False
    created_at: datetime | None = None


class NotificationsOut(CamelOut):
    success: bool = True
    data: list[NotificationOut]


class ClearCacheOut(CamelOut):
    success: bool = True
    message: str = "Cache cleared"
    cleared: int = Field(0, description="Number of entries removed")

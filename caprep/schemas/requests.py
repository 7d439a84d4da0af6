from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelIn(BaseModel):
    """Request bodies accept camelCase and snake_case keys alike."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Auth fields are optional here; the use cases own the rules and messages.
class SendOtpIn(CamelIn):
    email: str | None = Field(None, description="Address to send the code to")


class VerifyOtpIn(CamelIn):
    email: str | None = None
    otp: str | None = Field(None, description="The numeric code from the email")


class RegisterIn(CamelIn):
    full_name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginIn(CamelIn):
    email: str | None = None
    password: str | None = None


class RefreshIn(CamelIn):
    refresh_token: str | None = None


class ForgotPasswordIn(CamelIn):
    email: str | None = None


class VerifyResetOtpIn(CamelIn):
    email: str | None = None
    otp: str | None = None


class ResetPasswordIn(CamelIn):
    email: str | None = None
    otp: str | None = None
    new_password: str | None = None


class QuestionIn(CamelIn):
    subject: str = ""
    paper_type: str = ""
    year: str = ""
    month: str = ""
    exam_stage: str = ""
    question_number: str = ""
    question_text: str = ""
    answer_text: str = ""


class AnnouncementIn(CamelIn):
    title: str = Field("", max_length=200)
    content: str = ""
    priority: int = 0
    valid_until: datetime | None = None

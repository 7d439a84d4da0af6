from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

Role = Literal["user", "admin"]


@dataclass
class User:
    id: str | None = None
    email: str | None = None
    full_name: str = ""
    role: Role = "user"
    password_hash: str | None = None
    reset_password_token: str | None = None
    reset_password_expires: datetime | None = None
    reset_password_attempts: int = 0
    created_at: datetime | None = None
    bookmarked_question_ids: list[str] = field(default_factory=list)

    def __post_init__(self):
        if self.email:
            self.email = self.email.strip().lower()
            if not self.email:
                raise ValueError("email cannot be empty")
        else:
            raise ValueError("email is required")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def public(self) -> dict:
        """Projection that is safe to send to clients."""
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
        }

    def start_password_reset(self, packed_digest: str, expires_at: datetime) -> None:
        self.reset_password_token = packed_digest
        self.reset_password_expires = expires_at
        self.reset_password_attempts = 0

    def record_failed_reset_attempt(self) -> int:
        self.reset_password_attempts += 1
        return self.reset_password_attempts

    def clear_password_reset(self) -> None:
        self.reset_password_token = None
        self.reset_password_expires = None
        self.reset_password_attempts = 0

    def finish_password_reset(self, new_password_hash: str) -> None:
        self.password_hash = new_password_hash
        self.clear_password_reset()


@dataclass
class Question:
    subject: str
    paper_type: str
    year: str
    month: str
    exam_stage: str
    question_number: str
    question_text: str = ""
    answer_text: str = ""
    id: str | None = None


@dataclass
class Announcement:
    title: str
    content: str
    priority: int = 0
    valid_until: datetime | None = None
    created_by: str | None = None
    id: str | None = None
    created_at: datetime | None = None


@dataclass
class Notification:
    user_id: str
    title: str
    message: str
    announcement_id: str | None = None
    read: bool = False
    id: str | None = None
    created_at: datetime | None = None

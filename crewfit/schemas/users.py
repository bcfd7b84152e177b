import uuid

from pydantic import BaseModel


class UserProfile(BaseModel):
    uid: uuid.UUID
    username: str | None = None
    display_name: str | None = None
    photo_url: str | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.username or "User"


class UsernameAvailability(BaseModel):
    username: str
    available: bool

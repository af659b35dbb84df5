from pydantic import BaseModel


class BadgeRead(BaseModel):
    id: str
    name: str
    description: str
    icon: str

    class Config:
        from_attributes = True


class BadgeWithStatus(BadgeRead):
    earned: bool

from pydantic import BaseModel
from typing import Optional
from models.users import UserRole


class Actor(BaseModel):
    """The caller of a workflow operation, passed explicitly to every engine call."""
    id: int
    role: UserRole
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def identifier(self) -> str:
        return self.email or str(self.id)

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True

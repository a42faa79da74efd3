from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fortmix.time_utils import UtcDateTime
from fortmix.users.roles import Role


# -------- USERS --------
class UserSchema(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    role: Role = Role.SALESPERSON

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("username must not be blank")
        return v


class UserDisplaySchema(BaseModel):
    id: int
    username: str
    name: str
    role: Role

    model_config = ConfigDict(from_attributes=True)


class UserOut(UserDisplaySchema):
    created_at: Optional[UtcDateTime] = None


class UserCreatedOut(BaseModel):
    id: int


# -------- AUTH --------
class LoginSchema(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    token: str
    user: UserDisplaySchema

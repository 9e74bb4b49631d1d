from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class SessionOut(BaseModel):
    user_id: int = Field(alias="userId")
    name: str
    email: EmailStr

    class Config:
        populate_by_name = True

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    name: str | None = None


class RegisterResponse(BaseModel):
    success: bool = True


class LoginRequest(BaseModel):
    """Any email string is accepted; unknown or malformed ones fail as bad credentials."""
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    email: str

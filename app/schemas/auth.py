from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str
    password: str


class SessionUser(BaseModel):
    id: str
    username: str
    role: str
    name: str

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    success: bool = True
    user: SessionUser

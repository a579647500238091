from datetime import datetime

from pydantic import BaseModel

class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime

class LoginIn(BaseModel):
    email: str
    password: str

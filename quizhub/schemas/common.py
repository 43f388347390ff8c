from pydantic import BaseModel, EmailStr

from quizhub.core.constants import Role


class APIMessage(BaseModel):
    message: str


class IdentityOut(BaseModel):
    id: str
    email: EmailStr
    role: Role

from typing import Literal

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    email: str
    password: str
    gender: str


class SignupResponse(BaseModel):
    success: bool = True
    user_id: int = Field(serialization_alias="userId")


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    email: str
    gender: Literal["male", "female"]

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    success: bool = True
    user: UserResponse


class SuccessResponse(BaseModel):
    success: bool = True

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class SocialLinks(BaseModel):
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    linkedin: Optional[str] = None
    twitter: Optional[str] = None


class ProfileFields(BaseModel):
    """Every user-editable profile attribute."""

    name: str = Field(min_length=1)
    bio: Optional[str] = None
    course: Optional[str] = None
    year: Optional[str] = None
    department: Optional[str] = None
    class_section: Optional[str] = None
    interests: list[str] = []
    nicknames: Optional[str] = None
    habits: Optional[str] = None
    location: Optional[str] = None
    hometown: Optional[str] = None
    dob: Optional[str] = None
    profile_pic_url: Optional[str] = None
    social_links: SocialLinks = SocialLinks()

    @field_validator("interests", mode="before")
    @classmethod
    def _split_comma_string(cls, v):
        # Older clients send interests as one comma-separated string.
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v or []


class ProfileUpsert(ProfileFields):
    user_id: int = Field(alias="userId")

    model_config = {"populate_by_name": True}


class ProfileUpsertResponse(BaseModel):
    success: bool = True
    ai_enhanced_bio: Optional[str] = Field(None, serialization_alias="aiEnhancedBio")
    ai_tags: list[str] = Field([], serialization_alias="aiTags")


class ProfileResponse(ProfileFields):
    user_id: int
    ai_enhanced_bio: Optional[str] = None
    ai_tags: list[str] = []

    model_config = {"from_attributes": True}

    @field_validator("social_links", mode="before")
    @classmethod
    def _none_to_empty_links(cls, v):
        return v or {}

    @field_validator("ai_tags", mode="before")
    @classmethod
    def _none_to_empty_tags(cls, v):
        return v or []


class CandidateResponse(ProfileResponse):
    """A profile as shown in discovery, browse and search listings."""

    id: int


class UploadResponse(BaseModel):
    url: str

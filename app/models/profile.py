"""
Campus Crush — Profile model (one-to-one with User).
"""

from sqlalchemy import JSON, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

# JSONB on PostgreSQL, plain JSON text elsewhere (SQLite).
JSONVariant = JSON().with_variant(JSONB(), "postgresql")


class Profile(Base):
    __tablename__ = "profiles"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    course: Mapped[str | None] = mapped_column(String, nullable=True)
    year: Mapped[str | None] = mapped_column(String, nullable=True)
    department: Mapped[str | None] = mapped_column(String, nullable=True)
    class_section: Mapped[str | None] = mapped_column(String, nullable=True)
    interests: Mapped[list | None] = mapped_column(
        JSONVariant, nullable=True, comment="Array of interest strings"
    )
    nicknames: Mapped[str | None] = mapped_column(String, nullable=True)
    habits: Mapped[str | None] = mapped_column(String, nullable=True)
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    hometown: Mapped[str | None] = mapped_column(String, nullable=True)
    dob: Mapped[str | None] = mapped_column(String, nullable=True)
    profile_pic_url: Mapped[str | None] = mapped_column(String, nullable=True)
    social_links: Mapped[dict | None] = mapped_column(
        JSONVariant, nullable=True, comment="{instagram, facebook, linkedin, twitter}"
    )
    ai_enhanced_bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_tags: Mapped[list | None] = mapped_column(
        JSONVariant, nullable=True, comment="Array of standardised interest tags"
    )

    # ── Relationships ──────────────────────────────────────────────
    user: Mapped["User"] = relationship("User", back_populates="profile")

    def __repr__(self) -> str:
        return f"<Profile user={self.user_id} name={self.name!r}>"

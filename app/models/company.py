"""
Company model - the employer that posts jobs.
"""
from typing import TYPE_CHECKING, List, Optional
from sqlalchemy import String, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.job import Job


class Company(BaseModel):
    """
    Company entity.

    Only the name is denormalized into the search index and alert emails.
    """

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    website_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    jobs: Mapped[List["Job"]] = relationship(
        "Job",
        back_populates="company",
    )

    def __repr__(self) -> str:
        return f"<Company {self.name}>"

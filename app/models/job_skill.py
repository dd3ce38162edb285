"""
JobSkill model - skills required by a job posting.
"""
import uuid
from typing import TYPE_CHECKING
from sqlalchemy import String, Boolean, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.job import Job


class JobSkill(BaseModel):
    """
    Job skill requirement entity.

    Skill names are flattened into the `skills` array of the index document,
    which is what alert skill filters match against.
    """

    __tablename__ = "job_skills"

    __table_args__ = (
        UniqueConstraint("job_id", "skill_name", name="uq_job_skill"),
    )

    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    skill_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    is_required: Mapped[bool] = mapped_column(Boolean, default=True)

    job: Mapped["Job"] = relationship("Job", back_populates="skills")

    def __repr__(self) -> str:
        return f"<JobSkill {self.skill_name} for job_id={self.job_id}>"

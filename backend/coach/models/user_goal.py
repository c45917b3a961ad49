from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.sql import func
from coach.db import Base


class UserGoal(Base):
    __tablename__ = "user_goals"
    __table_args__ = (
        CheckConstraint("daily_goal_minutes > 0", name="ck_user_goals_positive_minutes"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Clerk user id (the `sub` claim of the session token), one row per user
    user_id = Column(String, unique=True, index=True, nullable=False)

    daily_goal_minutes = Column(Integer, nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

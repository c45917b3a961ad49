from typing import Any

from pydantic import BaseModel, ConfigDict


class DailyGoalRead(BaseModel):
    user_id: str
    daily_goal_minutes: int
    # True when the user never saved a goal and the default was provisioned
    is_default: bool = False


class DailyGoalUpsert(BaseModel):
    # What the user typed; validated by the repository, not by pydantic,
    # so a bad value never reaches the data store.
    daily_goal_minutes: Any = None

    model_config = ConfigDict(extra="ignore")

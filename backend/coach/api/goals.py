from fastapi import APIRouter, Depends, HTTPException

from coach.api.deps import get_goal_repository
from coach.auth.dependencies import Principal, get_principal
from coach.schemas.goal import DailyGoalRead, DailyGoalUpsert
from coach.services.goal_repository import GoalRepository
from coach.services.goal_results import (
    ErrorKind,
    Failure,
    Found,
    NotFound,
    PermissionDenied,
    Saved,
    ValidationFailed,
)


router = APIRouter(prefix="/goals", tags=["goals"])

# Status codes for failures the client can act on
FAILURE_STATUS = {
    ErrorKind.unauthenticated: 401,
    ErrorKind.permission_denied: 403,
    ErrorKind.transient: 503,
}


def _raise_failure(failure: Failure):
    status = FAILURE_STATUS.get(failure.kind, 503)
    detail = "Not signed in" if failure.kind is ErrorKind.unauthenticated else failure.reason
    raise HTTPException(status_code=status, detail=detail)


@router.get("/daily", response_model=DailyGoalRead)
def get_daily_goal(
    principal: Principal = Depends(get_principal),
    repo: GoalRepository = Depends(get_goal_repository),
):
    result = repo.fetch_current_goal(principal.user_id)
    if isinstance(result, Found):
        return DailyGoalRead(user_id=principal.user_id, daily_goal_minutes=result.minutes)
    if isinstance(result, NotFound):
        # New user: the default was just provisioned, show it rather than an error
        return DailyGoalRead(
            user_id=principal.user_id,
            daily_goal_minutes=repo.default_minutes,
            is_default=True,
        )
    _raise_failure(result)


@router.put("/daily", response_model=DailyGoalRead)
def save_daily_goal(
    payload: DailyGoalUpsert,
    principal: Principal = Depends(get_principal),
    repo: GoalRepository = Depends(get_goal_repository),
):
    result = repo.save_goal(principal.user_id, payload.daily_goal_minutes)
    if isinstance(result, Saved):
        return DailyGoalRead(user_id=principal.user_id, daily_goal_minutes=result.minutes)
    if isinstance(result, ValidationFailed):
        raise HTTPException(status_code=422, detail=result.message)
    if isinstance(result, PermissionDenied):
        raise HTTPException(status_code=403, detail=result.message)
    _raise_failure(result)

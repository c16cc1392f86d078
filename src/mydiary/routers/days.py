from __future__ import annotations

from fastapi import APIRouter, Depends

from .. import day_keys
from ..schemas import DayOut, DaySelect, DayShift
from ..state import AppState, get_app_state

router = APIRouter(
    prefix="/api/v1/day",
    tags=["day"],
)


def _day_out(state: AppState) -> DayOut:
    selected = state.selection.selected_date
    return DayOut(
        day=selected,
        day_key=day_keys.day_key(selected),
        display=day_keys.display_format(selected),
        is_today=day_keys.is_today(selected),
    )


# PUBLIC_INTERFACE
@router.get("", response_model=DayOut, summary="Selected Day")
def get_day(state: AppState = Depends(get_app_state)) -> DayOut:
    return _day_out(state)


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=DayOut,
    summary="Select Day",
    description="Save the current diary entry, then switch every view to the given day.",
)
def select_day(payload: DaySelect, state: AppState = Depends(get_app_state)) -> DayOut:
    state.diary.select_date(payload.day)
    return _day_out(state)


# PUBLIC_INTERFACE
@router.post("/shift", response_model=DayOut, summary="Move Selected Day")
def shift_day(payload: DayShift, state: AppState = Depends(get_app_state)) -> DayOut:
    state.diary.select_date(day_keys.add_days(state.selection.selected_date, payload.days))
    return _day_out(state)


# PUBLIC_INTERFACE
@router.post("/today", response_model=DayOut, summary="Go To Today")
def go_to_today(state: AppState = Depends(get_app_state)) -> DayOut:
    state.diary.select_date(day_keys.today())
    return _day_out(state)

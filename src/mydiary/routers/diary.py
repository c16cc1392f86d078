from __future__ import annotations

from fastapi import APIRouter, Depends

from ..controllers import DiaryController
from ..schemas import DiaryIn, DiaryOut
from ..state import AppState, get_app_state

router = APIRouter(
    prefix="/api/v1/diary",
    tags=["diary"],
)


def _get_diary(state: AppState = Depends(get_app_state)) -> DiaryController:
    return state.diary


def _diary_out(diary: DiaryController) -> DiaryOut:
    return DiaryOut(
        day_key=diary.day_key,
        content=diary.content,
        last_saved_time=diary.last_saved_time,
        save_pending=diary.save_pending,
        error=diary.error_message if diary.show_error else None,
    )


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=DiaryOut,
    summary="Get Diary",
    description="Editor content and last save time of the selected day's diary entry.",
)
def get_diary(diary: DiaryController = Depends(_get_diary)) -> DiaryOut:
    return _diary_out(diary)


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=DiaryOut,
    summary="Edit Diary",
    description=(
        "Replace the editor content. The entry is saved once no further edit has arrived "
        "for the autosave quiet period; blank content removes the day's entry."
    ),
)
def edit_diary(payload: DiaryIn, diary: DiaryController = Depends(_get_diary)) -> DiaryOut:
    diary.edit(payload.content)
    return _diary_out(diary)


# PUBLIC_INTERFACE
@router.post(
    "/save",
    response_model=DiaryOut,
    summary="Save Diary",
    description="Save the current content immediately, cancelling any pending autosave.",
)
def save_diary(diary: DiaryController = Depends(_get_diary)) -> DiaryOut:
    if not diary.flush():
        diary.save()
    return _diary_out(diary)

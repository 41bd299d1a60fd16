from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from quicknotes.api.deps import get_note_service, get_settings
from quicknotes.core.config import Settings
from quicknotes.models.notes import NoteCreate, NoteOut, NotePageOut, NoteUpdate, SortField, SortOrder
from quicknotes.services.note_service import NoteService
from quicknotes.utils.jwt_auth import get_current_user

router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("", response_model=NoteOut, status_code=201)
async def create_note(
    payload: NoteCreate,
    user_id: str = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
) -> NoteOut:
    note = await service.create(payload, user_id)
    return NoteOut(**note.to_dict())


@router.get("", response_model=NotePageOut)
async def list_notes(
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, le=100),
    search: str = Query(default="", max_length=200),
    sort_by: SortField = Query(default=SortField.updated_at),
    sort_order: SortOrder = Query(default=SortOrder.desc),
    user_id: str = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
    settings: Settings = Depends(get_settings),
) -> NotePageOut:
    result = await service.list_notes(
        user_id,
        page=page,
        page_size=page_size or settings.default_page_size,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return NotePageOut(
        items=[NoteOut(**n.to_dict()) for n in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/{note_id}", response_model=NoteOut)
async def get_note(
    note_id: UUID,
    user_id: str = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
) -> NoteOut:
    note = await service.get_by_id(str(note_id), user_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return NoteOut(**note.to_dict())


@router.patch("/{note_id}", response_model=NoteOut)
async def update_note(
    note_id: UUID,
    payload: NoteUpdate,
    user_id: str = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
) -> NoteOut:
    # NoteNotFoundError -> 404 via the registered handler
    note = await service.update(str(note_id), user_id, payload)
    return NoteOut(**note.to_dict())


@router.delete("/{note_id}", status_code=204)
async def delete_note(
    note_id: UUID,
    user_id: str = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
) -> Response:
    await service.delete(str(note_id), user_id)
    return Response(status_code=204)

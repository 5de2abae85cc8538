from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from providers.storage.shot_store import ShotStore
from schemas.generation import GeneratePromptReq, UpdatePromptReq
from schemas.shot import ShotStatus
from services.api.app.core.deps import get_store
from services.api.app.core.exceptions import (
    APIError,
    NotFoundError,
    PersistenceError,
    UpstreamError,
    ValidationError,
)
from workers.llm.prompt_drafting import get_or_create_drafting_service

router = APIRouter()


def _find(shots, shot_id):
    return next((s for s in shots if s.id == shot_id), None)


@router.post("/generate-prompt")
async def generate_prompt(req: GeneratePromptReq, request: Request, store: ShotStore = Depends(get_store)):
    if not req.shotId or req.formData is None:
        raise ValidationError("Shot ID and form data are required")

    service = get_or_create_drafting_service(request.app.state, request.app.state.settings)

    all_shots = await run_in_threadpool(store.get_all)
    shot = _find(all_shots, req.shotId)
    if shot is None:
        raise NotFoundError("Shot not found")

    try:
        prompt = await service.draft(shot, all_shots, req.formData)
    except APIError:
        raise
    except Exception as e:
        raise UpstreamError("Failed to generate prompt", cause=e)

    result = await run_in_threadpool(
        store.update, req.shotId, {"prompt": prompt, "status": ShotStatus.GENERATED}
    )
    if not result:
        raise PersistenceError("Failed to save generated prompt", cause=result.error)

    updated = await run_in_threadpool(store.get_all)
    shot = _find(updated, req.shotId)
    return {
        "prompt": prompt,
        "shot": shot.to_json() if shot else None,
        "allShots": [s.to_json() for s in updated],
    }


@router.post("/update-prompt")
async def update_prompt(req: UpdatePromptReq, request: Request, store: ShotStore = Depends(get_store)):
    if not req.shotId or not req.currentPrompt or not req.feedback:
        raise ValidationError("Shot ID, current prompt, and feedback are required")

    service = get_or_create_drafting_service(request.app.state, request.app.state.settings)

    all_shots = await run_in_threadpool(store.get_all)
    if _find(all_shots, req.shotId) is None:
        raise NotFoundError("Shot not found")

    try:
        updated_prompt = await service.revise(req.shotId, req.currentPrompt, req.feedback, all_shots)
    except Exception as e:
        raise UpstreamError("Failed to update prompt", cause=e)

    result = await run_in_threadpool(
        store.update, req.shotId, {"prompt": updated_prompt, "status": ShotStatus.UPDATED}
    )
    if not result:
        raise PersistenceError("Failed to update prompt", cause=result.error)

    return {
        "updatedPrompt": updated_prompt,
        "message": "Prompt updated successfully based on feedback",
    }

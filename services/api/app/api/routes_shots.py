from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from providers.storage.shot_store import ShotStore
from schemas.shot import (
    SAMPLE_SHOTS,
    ShotCreateReq,
    ShotDeleteReq,
    ShotRecord,
    ShotUpdateReq,
)
from services.api.app.core.deps import get_store
from services.api.app.core.exceptions import PersistenceError, ValidationError

router = APIRouter()

SHOTS_ALLOW = "GET, POST, PUT, DELETE"
# 其余方法一律 405，并在 Allow 头中列出支持的方法
SHOTS_UNSUPPORTED = ["PATCH", "HEAD", "OPTIONS", "TRACE"]


def _all_shots(store: ShotStore) -> List[Dict[str, Any]]:
    return [s.to_json() for s in store.get_all()]


@router.get("/shots")
def list_shots(store: ShotStore = Depends(get_store)):
    shots = store.get_all()
    # 首次访问且为空时写入示例镜头
    if not shots and store.replace_all(SAMPLE_SHOTS):
        shots = list(SAMPLE_SHOTS)
    return [s.to_json() for s in shots]


@router.post("/shots")
def add_shot(req: ShotCreateReq, store: ShotStore = Depends(get_store)):
    if not req.title or not req.id:
        raise ValidationError("Title and ID are required")

    shot = ShotRecord(
        id=req.id,
        title=req.title,
        character=req.character,
        description=req.description,
        prompt=req.prompt,
        caption=req.caption,
        video_url=req.video_url,
        status=req.status,
    )
    result = store.add(shot)
    if not result:
        raise PersistenceError("Failed to add shot", cause=result.error)
    return _all_shots(store)


@router.put("/shots")
def update_shot(req: ShotUpdateReq, store: ShotStore = Depends(get_store)):
    if not req.id or req.patch is None:
        raise ValidationError("Shot ID and updates are required")

    result = store.update(req.id, req.patch.changes())
    if not result:
        raise PersistenceError("Failed to update shot", cause=result.error)
    return _all_shots(store)


@router.delete("/shots")
def delete_shot(req: ShotDeleteReq, store: ShotStore = Depends(get_store)):
    if not req.id:
        raise ValidationError("Shot ID is required")

    result = store.remove(req.id)
    if not result:
        raise PersistenceError("Failed to delete shot", cause=result.error)
    return _all_shots(store)


@router.api_route("/shots", methods=SHOTS_UNSUPPORTED, include_in_schema=False)
def shots_method_not_allowed():
    raise HTTPException(405, detail="Method not allowed", headers={"Allow": SHOTS_ALLOW})

from fastapi import Request

from providers.storage.shot_store import ShotStore


def get_store(request: Request) -> ShotStore:
    """
    FastAPI 依赖项：返回应用启动时创建的 ShotStore 实例。
    """
    return request.app.state.store

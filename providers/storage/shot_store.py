# -*- coding: utf-8 -*-
"""
Shot 记录的本地 JSON 存储
- 整个集合保存在一个 JSON 数组文档中（indent=2）
- 每个公开操作 = 读全部 → 修改 → 写全部，在实例锁内完成
- 读失败返回空列表，写失败返回 falsy 的 StoreResult，不向调用方抛异常
"""
import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from schemas.shot import ShotRecord

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A read/write/parse failure against the backing document."""


@dataclass(frozen=True)
class StoreResult:
    ok: bool
    matched: int = 0
    error: Optional[StoreError] = None

    def __bool__(self) -> bool:
        return self.ok


class ShotStore:
    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    # ---------- 内部：无锁读写 ----------
    def _read(self) -> List[ShotRecord]:
        self._ensure_dir()
        if not self.path.exists():
            return []
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise StoreError(f"expected a JSON array in {self.path}, got {type(raw).__name__}")
        shots: List[ShotRecord] = []
        for i, item in enumerate(raw):
            # 单条记录无效时只跳过该条，其余记录照常返回
            try:
                shots.append(ShotRecord.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping invalid shot #%d in %s: %s", i, self.path, e)
        return shots

    def _load(self) -> List[ShotRecord]:
        try:
            return self._read()
        except (OSError, ValueError, StoreError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error("Error reading shots from %s: %s", self.path, e)
            return []

    def _write(self, shots: Iterable[ShotRecord], matched: int = 0) -> StoreResult:
        try:
            self._ensure_dir()
            payload = json.dumps([s.to_json() for s in shots], ensure_ascii=False, indent=2)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
            return StoreResult(ok=True, matched=matched)
        except (OSError, TypeError, ValueError) as e:
            logger.exception("Error saving shots to %s", self.path)
            return StoreResult(ok=False, matched=matched, error=StoreError(str(e)))

    # ---------- 公开操作 ----------
    def get_all(self) -> List[ShotRecord]:
        with self._lock:
            return self._load()

    def replace_all(self, shots: Iterable[ShotRecord]) -> StoreResult:
        shots = list(shots)
        with self._lock:
            return self._write(shots, matched=len(shots))

    def update(self, shot_id: str, patch: Dict[str, Any]) -> StoreResult:
        """
        Shallow-merge ``patch`` onto the records whose id matches.
        An unknown id still rewrites the unchanged collection and reports
        success; ``matched`` is 0 in that case.
        """
        with self._lock:
            shots = self._load()
            matched = 0
            updated: List[ShotRecord] = []
            for shot in shots:
                if shot.id == shot_id:
                    matched += 1
                    try:
                        shot = ShotRecord.model_validate({**shot.model_dump(), **patch})
                    except ValidationError as e:
                        logger.error("Error updating shot %s: %s", shot_id, e)
                        return StoreResult(ok=False, matched=matched, error=StoreError(str(e)))
                updated.append(shot)
            return self._write(updated, matched=matched)

    def add(self, shot: ShotRecord) -> StoreResult:
        with self._lock:
            shots = self._load()
            shots.append(shot)
            return self._write(shots, matched=1)

    def remove(self, shot_id: str) -> StoreResult:
        with self._lock:
            shots = self._load()
            kept = [s for s in shots if s.id != shot_id]
            return self._write(kept, matched=len(shots) - len(kept))

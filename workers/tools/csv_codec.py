# -*- coding: utf-8 -*-
"""
Shot 列表的 CSV 导入 / 导出
- 导入：逐字符切分字段（引号内的逗号不切分），按表头别名映射到 ShotRecord，
  根据 STATUS 列和 PROMPT 内容推断状态，最后整体替换存储（不是合并）
- 导出：固定列顺序；title/description/prompt/caption 加双引号，其余列不加
注意：不支持 "" 转义，也不支持跨行的引号字段
"""
import logging
import re
from typing import Dict, List, Optional

from providers.storage.shot_store import ShotStore, StoreError, StoreResult
from schemas.shot import ShotRecord, ShotStatus

logger = logging.getLogger(__name__)

EXPORT_HEADERS = [
    "SHOT TITLE", "ID", "CHARACTER", "DESCRIPTION", "PROMPT",
    "CAPTION", "REFERENCE IMAGE", "LINK TO VIDEO", "STATUS",
]
EXPORT_HEADER_LINE = ",".join(EXPORT_HEADERS)

# ShotRecord 字段 -> 可接受的表头（规范化后），按优先级
FIELD_ALIASES: Dict[str, tuple] = {
    "id": ("id", "shot_id"),
    "title": ("shot_title", "title"),
    "character": ("character",),
    "description": ("description",),
    "prompt": ("prompt",),
    "caption": ("caption",),
    "video_url": ("link_to_video", "video_url"),
}

_WS = re.compile(r"\s+")


def map_status(raw: Optional[str]) -> ShotStatus:
    """Classify a free-form status cell by substring."""
    if not raw:
        return ShotStatus.NOT_GENERATED
    low = raw.lower().strip()
    if "generated" in low or "ready" in low:
        return ShotStatus.GENERATED
    if "selected" in low:
        return ShotStatus.SELECTED
    return ShotStatus.NOT_GENERATED


def infer_status(raw: Optional[str], prompt: str) -> ShotStatus:
    declared = map_status(raw)
    if prompt and prompt.strip():
        # a row with a prompt is never left at NOT_GENERATED
        return ShotStatus.SELECTED if declared == ShotStatus.SELECTED else ShotStatus.GENERATED
    return declared


def split_line(line: str) -> List[str]:
    values: List[str] = []
    buf: List[str] = []
    in_quotes = False
    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            values.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
    values.append("".join(buf).strip())
    return values


def _normalize_header(name: str) -> str:
    return _WS.sub("_", name.lower())


def _pick(row: Dict[str, str], keys: tuple) -> str:
    for k in keys:
        v = row.get(k)
        if v:
            return v
    return ""


def parse_csv(csv_data: str) -> List[ShotRecord]:
    lines = csv_data.split("\n")
    headers = [h.strip().replace('"', "") for h in lines[0].split(",")]
    keys = [_normalize_header(h) for h in headers]

    shots: List[ShotRecord] = []
    for i, raw_line in enumerate(lines[1:], start=1):
        line = raw_line.strip()
        if not line:
            continue

        values = split_line(line)
        if len(values) < len(headers):
            logger.debug("csv line %d skipped: %d fields, %d columns", i, len(values), len(headers))
            continue

        row = {k: (values[idx] or "") for idx, k in enumerate(keys)}
        fields = {name: _pick(row, aliases) for name, aliases in FIELD_ALIASES.items()}
        fields["id"] = fields["id"] or f"shot_{i}"
        fields["status"] = infer_status(row.get("status"), fields["prompt"])

        if not fields["title"]:
            continue
        shots.append(ShotRecord(**fields))
    return shots


def import_csv(store: ShotStore, csv_data: str) -> StoreResult:
    """Parse ``csv_data`` and replace the whole collection with the result."""
    try:
        shots = parse_csv(csv_data)
    except Exception as e:
        logger.exception("Error importing CSV")
        return StoreResult(ok=False, error=StoreError(str(e)))
    logger.info("csv import parsed %d shots", len(shots))
    return store.replace_all(shots)


def _quoted(v: str) -> str:
    return f'"{v}"'


def serialize_shots(shots: List[ShotRecord]) -> str:
    lines = [EXPORT_HEADER_LINE]
    for s in shots:
        row = [
            _quoted(s.title),
            s.id,
            s.character,
            _quoted(s.description),
            _quoted(s.prompt),
            _quoted(s.caption),
            "",  # reference image
            s.video_url,
            (s.status.value if s.status else ShotStatus.NOT_GENERATED.value),
        ]
        lines.append(",".join(row))
    return "\n".join(lines)


def export_csv(store: ShotStore) -> str:
    """Never raises; any failure yields the header line alone."""
    try:
        return serialize_shots(store.get_all())
    except Exception:
        logger.exception("Error exporting CSV")
        return EXPORT_HEADER_LINE

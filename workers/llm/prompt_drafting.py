# -*- coding: utf-8 -*-
"""
Shot 提示词起草 / 修订
- 起草：项目风格前言 + 角色一致性提示 + 当前镜头信息 + 表单选项 + 已有提示词示例 → Gemini
- 修订：根据用户对生成视频的反馈改写当前提示词，其他镜头的提示词作为角色参考
- 角色一致性：在已有提示词中查找角色名，抽取 "wearing ..." 等服装描述
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from providers.llm.gemini import GeminiClient
from schemas.generation import PromptFormData
from schemas.shot import ShotRecord
from services.api.app.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

# ---------- 目录 ----------
REPO_ROOT = Path(__file__).resolve().parents[2]
PROMPTS_DIR = REPO_ROOT / "prompts" / "prompt_drafting"

MAX_EXAMPLE_PROMPTS = 5
MAX_COSTUME_HINTS = 2

# ---------- 模板 ----------
_DA_PATTERN = re.compile(r"<<\s*([a-zA-Z0-9_]+)\s*>>")


def _render(tmpl: str, mapping: Dict[str, Any]) -> str:
    def _repl(m: re.Match):
        k = m.group(1)
        return str(mapping.get(k, m.group(0)))
    return _DA_PATTERN.sub(_repl, tmpl)


def load_prompt_text(relpath: str) -> str:
    p = (PROMPTS_DIR / relpath.strip("/")).resolve()
    if not p.exists():
        raise FileNotFoundError(relpath)
    return p.read_text(encoding="utf-8")


# ---------- 角色一致性 ----------
_COSTUME = re.compile(r"wearing\s+([^.]+)", re.I)
_APPEARANCE = re.compile(r"She\s+(is\s+wearing|has|wears)\s+([^.]+)", re.I)


@dataclass
class CharacterDetails:
    appearances: List[Dict[str, str]] = field(default_factory=list)
    costumes: List[str] = field(default_factory=list)


def analyze_character_consistency(
    shots: Sequence[ShotRecord], characters: Sequence[str]
) -> Dict[str, CharacterDetails]:
    details: Dict[str, CharacterDetails] = {}
    for shot in shots:
        if not shot.prompt:
            continue
        lower_prompt = shot.prompt.lower()
        for character in characters:
            lower_char = character.lower()
            if lower_char not in lower_prompt and lower_char not in shot.character.lower():
                continue
            entry = details.setdefault(character, CharacterDetails())
            entry.appearances.append({"shotTitle": shot.title, "prompt": shot.prompt})
            entry.costumes.extend(m.group(0) for m in _COSTUME.finditer(shot.prompt))
            entry.costumes.extend(m.group(0) for m in _APPEARANCE.finditer(shot.prompt))
    return details


def _consistency_block(consistency: Dict[str, CharacterDetails]) -> str:
    if not consistency:
        return ""
    out = "\nCHARACTER CONSISTENCY (maintain these details):\n"
    for character, d in consistency.items():
        if not d.appearances:
            continue
        latest = d.appearances[-1]
        out += f'- {character}: Based on previous appearances, particularly in "{latest["shotTitle"]}"\n'
        costumes = d.costumes[-MAX_COSTUME_HINTS:]
        if costumes:
            out += f"  Costume style: {', '.join(costumes)}\n"
    return out


def _selections_block(form: PromptFormData) -> str:
    out = ""
    for label, values in (
        ("Shot Style", form.shotStyle),
        ("Setting", form.setting),
        ("Character Details", form.characters),
        ("Wardrobe", form.costume),
        ("Emotional Tone", form.emotion),
    ):
        if values:
            out += f"{label}: {', '.join(values)}\n"
    if form.additionalDetails:
        out += f"Actions & Details: {form.additionalDetails}\n"
    return out


def _examples_block(shots: Sequence[ShotRecord]) -> str:
    examples = [s for s in shots if s.prompt and s.prompt.strip()][:MAX_EXAMPLE_PROMPTS]
    if not examples:
        return ""
    out = "\nEXAMPLE PROMPTS FROM THIS PROJECT (match this style and length):\n"
    for i, s in enumerate(examples, start=1):
        out += f'{i}. "{s.prompt}"\n\n'
    return out


def build_prompt_context(
    form: PromptFormData,
    consistency: Dict[str, CharacterDetails],
    shot: ShotRecord,
    all_shots: Sequence[ShotRecord],
) -> str:
    return _render(load_prompt_text("draft_prompt.txt"), {
        "character_consistency": _consistency_block(consistency),
        "title": shot.title,
        "character": shot.character or "Not specified",
        "description": shot.description or "Not provided",
        "selections": _selections_block(form),
        "examples": _examples_block(all_shots),
    })


def build_revision_context(current_prompt: str, feedback: str, reference_prompts: Sequence[str]) -> str:
    if reference_prompts:
        references = "\n".join(f"{i}. {p}" for i, p in enumerate(reference_prompts, start=1))
    else:
        references = "No existing character references available."
    return _render(load_prompt_text("revise_prompt.txt"), {
        "references": references,
        "current_prompt": current_prompt,
        "feedback": feedback,
    })


# ---------- 服务 ----------
class PromptDraftingService:
    def __init__(self, client: GeminiClient):
        self.client = client

    @classmethod
    def from_settings(cls, settings) -> "PromptDraftingService":
        if not settings.gemini_api_key:
            raise UpstreamError(
                "Gemini API key not configured. Please set GEMINI_API_KEY environment variable."
            )
        return cls(GeminiClient(
            api_key=settings.gemini_api_key,
            model_candidates=settings.gemini_models,
            default_generation_config={
                "temperature": settings.DRAFTING_TEMPERATURE,
                "top_p": 0.95,
                "max_output_tokens": settings.DRAFTING_MAX_OUTPUT_TOKENS,
            },
            timeout_s=settings.DRAFTING_TIMEOUT_S,
        ))

    async def _generate(self, context: str, failure_message: str) -> str:
        text, used, fails = await self.client.generate(context)
        if not (text and text.strip()):
            raise UpstreamError(failure_message, cause=RuntimeError("; ".join(fails) or "empty_output"))
        if fails:
            logger.info("drafted with %s after failures: %s", used, fails)
        return text

    async def draft(
        self, shot: ShotRecord, all_shots: Sequence[ShotRecord], form: PromptFormData
    ) -> str:
        consistency = analyze_character_consistency(all_shots, form.characters)
        context = build_prompt_context(form, consistency, shot, all_shots)
        return await self._generate(context, "Failed to generate prompt")

    async def revise(
        self,
        shot_id: str,
        current_prompt: str,
        feedback: str,
        all_shots: Sequence[ShotRecord],
    ) -> str:
        references = [s.prompt for s in all_shots if s.prompt and s.id != shot_id][:MAX_EXAMPLE_PROMPTS]
        context = build_revision_context(current_prompt, feedback, references)
        text = await self._generate(context, "Failed to update prompt")
        return text.strip()


def get_or_create_drafting_service(state: Any, settings) -> PromptDraftingService:
    """Lazily build the service on ``state`` (the app state) on first use."""
    service: Optional[PromptDraftingService] = getattr(state, "drafting_service", None)
    if service is None:
        service = PromptDraftingService.from_settings(settings)
        state.drafting_service = service
    return service

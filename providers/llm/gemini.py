# -*- coding: utf-8 -*-
"""
===========================================================
Gemini Gateway - 异步单轮文本生成
===========================================================

功能:
    - 封装 Google Gemini 的异步调用 (client.aio.models.generate_content)
    - 每次调用带超时 (asyncio.wait_for)，超时即取消，不做重试
    - 可选的降级候选模型：按顺序尝试，第一个返回非空文本的模型胜出

依赖:
    pip install -U google-genai python-dotenv

环境变量(.env):
    GEMINI_API_KEY / GOOGLE_API_KEY : Google Gemini API key

===========================================================
"""
import asyncio
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv
from google import genai
from google.genai import types
from google.genai.types import FinishReason

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
FINISH_REASON_STOP = {"STOP"}


def _normalize_model_name(name: str) -> str:
    return name if name.startswith("models/") else f"models/{name}"


def _finish_name(fr) -> str:
    """
    统一把 finish_reason 规范化为枚举名的裸字符串：
    FinishReason.STOP -> "STOP"
    "FinishReason.MAX_TOKENS" -> "MAX_TOKENS"
    None / 未知 -> "UNKNOWN"
    """
    if fr is None:
        return "UNKNOWN"
    if isinstance(fr, FinishReason):
        return fr.name or "UNKNOWN"
    s = str(fr)
    return s.split(".")[-1] if "." in s else s


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model_candidates: Optional[List[str]] = None,
        default_generation_config: Optional[Dict[str, Any]] = None,
        timeout_s: float = 60.0,
        client: Any = None,
    ):
        if client is None:
            api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
            if not api_key:
                raise ValueError("请设置 GEMINI_API_KEY")
            client = genai.Client(api_key=api_key)
        self.client = client

        self.model_candidates = [
            _normalize_model_name(m) for m in (model_candidates or [DEFAULT_MODEL])
        ]
        self.default_cfg = default_generation_config or {
            "temperature": 0.7,
            "top_p": 0.95,
            "max_output_tokens": 1024,
        }
        self.timeout_s = timeout_s

    @staticmethod
    def _extract_text_and_reason(resp) -> Tuple[str, str]:
        """
        1) 先拿 resp.text
        2) 空的话，尝试从 candidates[0].content.parts 里把所有 text 拼接
        3) 兜底返回 "" 与 finish_reason
        """
        try:
            txt = getattr(resp, "text", "") or ""
        except ValueError:
            # 某些 SDK 版本在没有文本 part 时访问 .text 会抛错
            txt = ""
        reason = "UNKNOWN"

        cands = getattr(resp, "candidates", None)
        if cands:
            reason = _finish_name(getattr(cands[0], "finish_reason", None))
            if not txt.strip():
                content = getattr(cands[0], "content", None)
                parts = getattr(content, "parts", None) if content else None
                buf = []
                for p in parts or []:
                    # part 可能是对象也可能是 dict
                    t = getattr(p, "text", None)
                    if t is None and isinstance(p, dict):
                        t = p.get("text")
                    if t:
                        buf.append(t)
                txt = "".join(buf)

        return txt, reason

    def _config(self, **overrides) -> types.GenerateContentConfig:
        cfg_dict = dict(self.default_cfg)
        for k in ("temperature", "max_output_tokens", "top_p", "top_k", "stop_sequences"):
            if k in overrides:
                cfg_dict[k] = overrides[k]
        return types.GenerateContentConfig(**cfg_dict)

    async def generate(self, prompt: Any, **kwargs) -> Tuple[str, str, List[str]]:
        """
        返回 (text, used_model, failures)；所有候选都失败时 text 为 ""。
        """
        failures: List[str] = []
        cfg = self._config(**kwargs)

        for name in self.model_candidates:
            try:
                resp = await asyncio.wait_for(
                    self.client.aio.models.generate_content(model=name, contents=prompt, config=cfg),
                    timeout=self.timeout_s,
                )
            except asyncio.TimeoutError:
                failures.append(f"{name}: TIMEOUT after {self.timeout_s}s")
                logger.warning("gemini %s timed out after %ss", name, self.timeout_s)
                continue
            except Exception as e:
                failures.append(f"{name}: EXCEPTION {e}")
                logger.warning("gemini %s failed: %s", name, e)
                continue

            txt, reason = self._extract_text_and_reason(resp)
            if txt.strip():
                if reason not in FINISH_REASON_STOP:
                    logger.info("gemini %s finished with %s, keeping partial text", name, reason)
                return txt, name, failures
            failures.append(f"{name}: finish_reason={reason}, empty_text")

        return "", "", failures

from typing import List, Optional

from pydantic import BaseModel


class PromptFormData(BaseModel):
    shotStyle: List[str] = []
    setting: List[str] = []
    characters: List[str] = []
    costume: List[str] = []
    emotion: List[str] = []
    additionalDetails: str = ""


class GeneratePromptReq(BaseModel):
    shotId: Optional[str] = None
    formData: Optional[PromptFormData] = None


class UpdatePromptReq(BaseModel):
    shotId: Optional[str] = None
    currentPrompt: Optional[str] = None
    feedback: Optional[str] = None

from pydantic import BaseModel
from typing import Optional


class CodeGenerationRequest(BaseModel):
    """Fields are optional so the endpoint can report all missing ones at once"""
    title: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None


class CodeGenerationResponse(BaseModel):
    suggestedMessages: str

"""Prompt listing and rendering endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from charity_gateway.app.prompts import get_prompt, list_prompts

router = APIRouter(tags=["prompts"])


class PromptRequest(BaseModel):
    """Request body for rendering a prompt."""
    arguments: Dict[str, Any] = Field(default_factory=dict)


@router.get("/prompts")
async def get_prompts() -> Dict[str, Any]:
    """List available prompt templates."""
    return {"prompts": list_prompts()}


@router.post("/prompts/{name}")
async def render_prompt(name: str, body: Optional[PromptRequest] = None) -> Dict[str, Any]:
    """Render a prompt template with the given arguments."""
    try:
        result = get_prompt(name, body.arguments if body else None)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown prompt: {name}")
    return result.model_dump()

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette import status

from app.agents.orchestrator import WorkflowOrchestrator
from app.dependencies import get_content_service, get_orchestrator
from app.schemas.cards import (
    CardDesign,
    GenerateCardsResponse,
    GrammarRequest,
    GrammarResponse,
    MadlibInput,
    MessageRequest,
    RefineRequest,
)
from app.schemas.workflow import WorkflowRequest, WorkflowState
from app.services.content_generation import ContentGenerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cards", tags=["cards"])


class RefineResponse(BaseModel):
    design: CardDesign


class MessageResponse(BaseModel):
    message: str


@router.post("/generate", response_model=GenerateCardsResponse)
async def generate_cards(
    payload: MadlibInput,
    content: ContentGenerationService = Depends(get_content_service),
) -> GenerateCardsResponse:
    """Generates three card designs and, unless one was supplied, a message."""
    designs = await content.generate_card_designs(payload)

    message = payload.message
    if not message:
        message = (await content.generate_message(payload)).value

    return GenerateCardsResponse(designs=designs, message=message, input=payload)


@router.post("/workflow", response_model=WorkflowState, status_code=status.HTTP_200_OK)
async def run_card_workflow(
    payload: WorkflowRequest,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> WorkflowState:
    """
    Runs the multi-stage card workflow. Pipeline failures are reported inside
    the body (current_step == "failed", errors[]) with a 200 status.
    """
    state = await orchestrator.run_workflow(payload.prompt, payload.user_id, payload.madlib_input)
    if state.errors:
        logger.warning("Workflow finished at '%s' with errors: %s", state.current_step.value, state.errors)
    return state


@router.get("/agents/status")
async def agents_status(orchestrator: WorkflowOrchestrator = Depends(get_orchestrator)) -> dict:
    return orchestrator.get_status()


@router.post("/refine", response_model=RefineResponse)
async def refine_card(
    payload: RefineRequest,
    content: ContentGenerationService = Depends(get_content_service),
) -> RefineResponse:
    design = await content.refine_design(payload.original_prompt, payload.refinement_request)
    return RefineResponse(design=design)


@router.post("/generate-message", response_model=MessageResponse)
async def generate_message(
    payload: MessageRequest,
    content: ContentGenerationService = Depends(get_content_service),
) -> MessageResponse:
    result = await content.generate_message(payload)
    return MessageResponse(message=result.value)


@router.post("/check-grammar", response_model=GrammarResponse)
async def check_grammar(
    payload: GrammarRequest,
    content: ContentGenerationService = Depends(get_content_service),
) -> GrammarResponse:
    result = await content.check_grammar(payload.text)
    return GrammarResponse(
        original=payload.text,
        corrected=result.value,
        has_changes=payload.text != result.value,
    )


@router.get("/test")
async def test_connection(content: ContentGenerationService = Depends(get_content_service)) -> dict:
    connected = await content.test_connection()
    return {
        "status": "connected" if connected else "disconnected",
        "service": "Google AI" if content.provider in ("gemini", "none") else content.provider.capitalize(),
        "models": {"text": content.text_model, "image": content.image_model},
    }

"""
FastAPI Application Module

HTTP surface for the prompt architect: a conversational assistant that turns
a user's goal into a structured, model-specific prompt.

Key Features:
- One in-memory conversation session per client
- Gemini-backed prompt generation with a JSON response schema
- Structured logging and Prometheus metrics
- CORS and OpenTelemetry support

Sessions live only in process memory and are lost on restart.
"""

from contextlib import asynccontextmanager
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CollectorRegistry, Counter, generate_latest
from pydantic import BaseModel
from structlog import get_logger

from ..domain.models import TARGET_MODEL_LABELS, ConversationSession, TargetModel
from ..repositories.memory import InMemoryRepository
from ..services.clipboard import InMemoryClipboard
from ..services.conversation import STARTER_SUGGESTIONS, ConversationController
from ..services.llm import PromptGenerationClient
from .views import MessageView, SessionView, render_message, render_session

# Registry for isolated metric collection
CUSTOM_REGISTRY = CollectorRegistry()

REQUESTS = Counter("requests_total", "Total requests", registry=CUSTOM_REGISTRY)
ERRORS = Counter("errors_total", "Total failed requests", registry=CUSTOM_REGISTRY)
GENERATIONS = Counter(
    "prompt_generations_total",
    "Completed prompt generation turns by outcome",
    ["outcome"],
    registry=CUSTOM_REGISTRY,
)

logger = get_logger()


class MessageCreate(BaseModel):
    """Body for submitting a user turn"""
    content: str


class DraftUpdate(BaseModel):
    text: str


class TargetModelUpdate(BaseModel):
    target_model: TargetModel


class SubmitResponse(BaseModel):
    accepted: bool
    session: SessionView


class ClearResponse(BaseModel):
    cleared: bool
    session: SessionView


class CopyResponse(BaseModel):
    text: Optional[str]
    copied_message_id: UUID


# Core service instances
repository = InMemoryRepository()
llm_client = PromptGenerationClient()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("application_startup_complete")
    yield
    logger.info("application_shutdown_complete")


def get_repository() -> InMemoryRepository:
    """Returns the session storage instance"""
    return repository


def get_llm_client() -> PromptGenerationClient:
    """Returns the prompt generation client"""
    return llm_client


def get_clipboard() -> InMemoryClipboard:
    """Returns a clipboard buffer scoped to the current request"""
    return InMemoryClipboard()


async def get_session(
    session_id: UUID,
    repository: InMemoryRepository = Depends(get_repository),
) -> ConversationSession:
    session = await repository.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def get_controller(
    session: ConversationSession = Depends(get_session),
    client: PromptGenerationClient = Depends(get_llm_client),
    clipboard: InMemoryClipboard = Depends(get_clipboard),
) -> ConversationController:
    return ConversationController(session, client, clipboard=clipboard)


app = FastAPI(
    title="Prompt Architect API",
    description="Conversational prompt engineering assistant backed by Gemini",
    version="0.1.0",
    lifespan=lifespan,
)

# Enable cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Set up request tracing
FastAPIInstrumentor.instrument_app(app)


def _record_outcome(session: ConversationSession) -> None:
    reply = session.messages[-1]
    if reply.result is None:
        outcome = "error"
    elif reply.result.is_clarification_needed:
        outcome = "clarification"
    else:
        outcome = "prompt"
    GENERATIONS.labels(outcome=outcome).inc()


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Counts and logs every request"""
    REQUESTS.inc()
    logger.info("request_started", method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    except Exception as e:
        ERRORS.inc()
        logger.error("request_failed", path=request.url.path, error=str(e))
        raise
    if response.status_code >= 500:
        ERRORS.inc()
    return response


@app.get("/")
async def read_root() -> Dict[str, str]:
    return {"message": "Describe your prompt goal and I will architect it using the PTCF framework."}


@app.get("/suggestions", response_model=List[str])
async def list_suggestions() -> List[str]:
    """Starter goals shown on an empty conversation"""
    return STARTER_SUGGESTIONS


@app.get("/target-models")
async def list_target_models() -> Dict[str, str]:
    return {target.value: label for target, label in TARGET_MODEL_LABELS.items()}


@app.post("/sessions", response_model=SessionView)
async def create_session(
    repository: InMemoryRepository = Depends(get_repository),
) -> SessionView:
    try:
        session = await repository.create_session()
    except Exception as e:
        logger.error("create_session_error", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to create session")
    return render_session(session)


@app.get("/sessions/{session_id}", response_model=SessionView)
async def read_session(session: ConversationSession = Depends(get_session)) -> SessionView:
    return render_session(session)


@app.delete("/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: UUID,
    repository: InMemoryRepository = Depends(get_repository),
) -> Response:
    if not await repository.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return Response(status_code=204)


@app.post("/sessions/{session_id}/messages", response_model=SubmitResponse)
async def submit_message(
    message: MessageCreate,
    controller: ConversationController = Depends(get_controller),
) -> SubmitResponse:
    """
    Sends the user's goal to the prompt generator and appends the reply.
    A submission while another one is in flight is dropped (accepted=false).
    """
    accepted = await controller.submit(message.content)
    if accepted:
        _record_outcome(controller.session)
    return SubmitResponse(accepted=accepted, session=render_session(controller.session))


@app.put("/sessions/{session_id}/draft", response_model=SessionView)
async def update_draft(
    update: DraftUpdate,
    controller: ConversationController = Depends(get_controller),
) -> SessionView:
    controller.set_draft(update.text)
    return render_session(controller.session)


@app.post("/sessions/{session_id}/draft/submit", response_model=SubmitResponse)
async def submit_draft(
    controller: ConversationController = Depends(get_controller),
) -> SubmitResponse:
    accepted = await controller.submit()
    if accepted:
        _record_outcome(controller.session)
    return SubmitResponse(accepted=accepted, session=render_session(controller.session))


@app.put("/sessions/{session_id}/target-model", response_model=SessionView)
async def select_target_model(
    update: TargetModelUpdate,
    controller: ConversationController = Depends(get_controller),
) -> SessionView:
    controller.select_target_model(update.target_model)
    return render_session(controller.session)


@app.get("/sessions/{session_id}/recent", response_model=List[MessageView])
async def recent_requests(
    limit: int = 10,
    controller: ConversationController = Depends(get_controller),
) -> List[MessageView]:
    """Latest user requests, newest first"""
    return [render_message(m) for m in controller.recent_requests(limit)]


@app.post("/sessions/{session_id}/clear", response_model=SessionView)
async def request_clear(
    controller: ConversationController = Depends(get_controller),
) -> SessionView:
    controller.request_clear_history()
    return render_session(controller.session)


@app.post("/sessions/{session_id}/clear/confirm", response_model=ClearResponse)
async def confirm_clear(
    controller: ConversationController = Depends(get_controller),
) -> ClearResponse:
    cleared = controller.confirm_clear_history()
    return ClearResponse(cleared=cleared, session=render_session(controller.session))


@app.post("/sessions/{session_id}/clear/cancel", response_model=SessionView)
async def cancel_clear(
    controller: ConversationController = Depends(get_controller),
) -> SessionView:
    controller.cancel_clear_history()
    return render_session(controller.session)


@app.post("/sessions/{session_id}/messages/{message_id}/copy", response_model=CopyResponse)
async def copy_prompt(
    message_id: UUID,
    controller: ConversationController = Depends(get_controller),
    clipboard: InMemoryClipboard = Depends(get_clipboard),
) -> CopyResponse:
    """Copies a message's optimized prompt and flags it as just copied"""
    message = next((m for m in controller.session.messages if m.id == message_id), None)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")
    if message.result is None or message.result.is_clarification_needed or not message.result.optimized_prompt:
        raise HTTPException(status_code=409, detail="Message has no optimized prompt to copy")

    controller.copy_to_clipboard(message.result.optimized_prompt, message.id)
    return CopyResponse(text=clipboard.text, copied_message_id=message.id)


@app.get("/metrics")
async def metrics():
    """Provides Prometheus metrics for system monitoring"""
    return Response(generate_latest(CUSTOM_REGISTRY), media_type="text/plain")

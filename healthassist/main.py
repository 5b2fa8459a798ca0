"""FastAPI service exposing the Health Assistant conversations and symptom ledgers."""

from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from healthassist.chat import (
    AssistantBusyError,
    ConversationSession,
    EmptyLedgerError,
    EmptyMessageError,
    SessionStore,
)
from healthassist.config import get_config
from healthassist.ledger import RecordNotFoundError
from healthassist.log import configure_logging
from healthassist.models import (
    ChatRequest,
    ChatResponse,
    HistoryResponse,
    LedgerResponse,
    Message,
    SeverityUpdate,
    SymptomCreate,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    configure_logging(config.logging)
    app.state.sessions = SessionStore(config.assistant)
    logger.info("service_started", environment=config.environment)
    yield
    await app.state.sessions.wait_idle()
    app.state.sessions.close()
    logger.info("service_stopped")


app = FastAPI(
    title="Health Assistant",
    description="Rule-based symptom guidance and symptom tracking for the pandemic health app",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().api.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def _existing_session(sessions: SessionStore, session_id: str) -> ConversationSession:
    try:
        return sessions.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")


def _reply(session_id: str, message: Message) -> ChatResponse:
    return ChatResponse(
        session_id=session_id,
        answer=message.text,
        category=message.category,
        created_at=message.created_at,
    )


def _ledger(session: ConversationSession) -> LedgerResponse:
    return LedgerResponse(session_id=session.session_id, symptoms=session.ledger.records)


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "health-assistant"}


@app.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, sessions: SessionStore = Depends(get_sessions)):
    session = sessions.get_or_create(request.session_id)
    try:
        message = await session.submit(request.message)
    except EmptyMessageError:
        raise HTTPException(status_code=400, detail="Empty message")
    except AssistantBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.exception("chat_failed", session_id=request.session_id)
        raise HTTPException(status_code=500, detail=f"Chat failed: {str(e)}")
    return _reply(request.session_id, message)


@app.get("/chat/{session_id}/history", response_model=HistoryResponse)
def chat_history(session_id: str, sessions: SessionStore = Depends(get_sessions)):
    session = _existing_session(sessions, session_id)
    return HistoryResponse(session_id=session_id, pending=session.is_pending, messages=session.messages)


@app.delete("/chat/{session_id}")
def delete_chat(session_id: str, sessions: SessionStore = Depends(get_sessions)):
    deleted = sessions.clear(session_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return {"status": "deleted", "session_id": session_id}


@app.get("/chat/{session_id}/symptoms", response_model=LedgerResponse)
def list_symptoms(session_id: str, sessions: SessionStore = Depends(get_sessions)):
    return _ledger(_existing_session(sessions, session_id))


@app.post("/chat/{session_id}/symptoms", response_model=LedgerResponse)
def add_symptom(session_id: str, symptom: SymptomCreate, sessions: SessionStore = Depends(get_sessions)):
    session = sessions.get_or_create(session_id)
    session.ledger.add(symptom.name, severity=symptom.severity, duration=symptom.duration)
    return _ledger(session)


@app.patch("/chat/{session_id}/symptoms/{record_id}", response_model=LedgerResponse)
def update_severity(
    session_id: str,
    record_id: str,
    update: SeverityUpdate,
    sessions: SessionStore = Depends(get_sessions),
):
    session = _existing_session(sessions, session_id)
    try:
        session.ledger.set_severity(record_id, update.severity)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail=f"Symptom {record_id} not found")
    return _ledger(session)


@app.delete("/chat/{session_id}/symptoms/{record_id}", response_model=LedgerResponse)
def remove_symptom(session_id: str, record_id: str, sessions: SessionStore = Depends(get_sessions)):
    session = _existing_session(sessions, session_id)
    try:
        session.ledger.remove(record_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail=f"Symptom {record_id} not found")
    return _ledger(session)


@app.post("/chat/{session_id}/analyze", response_model=ChatResponse)
async def analyze_symptoms(session_id: str, sessions: SessionStore = Depends(get_sessions)):
    session = _existing_session(sessions, session_id)
    try:
        message = await session.analyze_symptoms()
    except EmptyLedgerError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AssistantBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.exception("analysis_failed", session_id=session_id)
        raise HTTPException(status_code=500, detail=f"Analysis failed: {str(e)}")
    return _reply(session_id, message)


def run() -> None:
    config = get_config().api
    uvicorn.run("healthassist.main:app", host=config.host, port=config.port, reload=config.reload)


if __name__ == "__main__":
    run()

"""
AI Recruiter - FastAPI Backend

Turns a job description into interview questions, records a voice
interview and produces a candidate scorecard:
- Chat turns routed by the turn dispatcher
- Approval-gated tool execution
- Per-session recruiter state with write-through persistence
- Whisper transcription of recorded answers

Compatible with any OpenAI-style chat completions server (llama.cpp, vLLM).
"""
import asyncio
import logging
import os
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from utils.config import config
from chat.dispatcher import TurnDispatcher, TurnIntent
from chat.stream import TurnStream
from interview.phases import RecruiterPhases
from interview.sessions import SessionManager
from interview.transcription import WhisperTranscriber, transcriber
from llm.client import llm_client
from models.schemas import ChatRequest, RecruiterState, TranscriptionResponse
from utils.errors import ProviderFailure

logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# ================================================================
# FastAPI App Initialization
# ================================================================

app = FastAPI(
    title="AI Recruiter API",
    description="Job description to interview questions, voice interview and scorecard",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ================================================================
# Dependencies
# ================================================================

_session_manager = SessionManager()
_dispatcher = TurnDispatcher()


def get_session_manager() -> SessionManager:
    return _session_manager


def get_dispatcher() -> TurnDispatcher:
    return _dispatcher


def get_transcriber() -> WhisperTranscriber:
    return transcriber


def _state_payload(state: RecruiterState) -> Dict[str, Any]:
    return state.model_dump(mode="json", by_alias=True)


def _is_audio_upload(file: UploadFile) -> bool:
    content_type = file.content_type or ""
    return any(kind in content_type for kind in ("audio", "video", "webm", "octet-stream"))


def _suffix(file: UploadFile) -> str:
    _, ext = os.path.splitext(file.filename or "")
    return ext or ".webm"


# ================================================================
# API Endpoints
# ================================================================

@app.get("/")
async def root(sessions: SessionManager = Depends(get_session_manager)):
    """Health check endpoint."""
    return {
        "status": "running",
        "version": "1.0.0",
        "service": "AI Recruiter",
        "active_sessions": sessions.active_sessions(),
    }


@app.post("/chat")
async def chat(
    request: ChatRequest,
    sessions: SessionManager = Depends(get_session_manager),
    dispatcher: TurnDispatcher = Depends(get_dispatcher),
):
    """
    Handle one chat turn.

    Args:
        request: Session id and the full UI message history

    Returns:
        Events produced by the turn, the assembled assistant message and the
        resulting recruiter state
    """
    async with sessions.turn(request.session_id) as machine:
        stream = TurnStream()
        intent = await dispatcher.handle_turn(machine, request.messages, stream)
        state = machine.state

    if intent == TurnIntent.RESET:
        sessions.release(request.session_id)

    message = stream.to_message()
    return {
        "intent": intent.value,
        "events": stream.events,
        "message": message.model_dump(mode="json", by_alias=True) if message else None,
        "state": _state_payload(state),
        "phase": RecruiterPhases.derive(state).value,
    }


@app.post("/transcribe", response_model=TranscriptionResponse)
async def transcribe(
    file: UploadFile = File(...),
    stt: WhisperTranscriber = Depends(get_transcriber),
):
    """
    Transcribe a single recorded answer.

    Returns:
        ``{"text": ...}``
    """
    if not _is_audio_upload(file):
        raise HTTPException(status_code=400, detail=f"File must be audio. Got: {file.content_type}")

    audio = await file.read()
    try:
        return await asyncio.to_thread(stt.transcribe, audio, _suffix(file))
    except ProviderFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@app.post("/sessions/{session_id}/answers")
async def submit_answers(
    session_id: str,
    files: List[UploadFile] = File(...),
    sessions: SessionManager = Depends(get_session_manager),
    stt: WhisperTranscriber = Depends(get_transcriber),
):
    """
    Transcribe one recording per question, in question order, and record
    them as the candidate's responses.
    """
    for file in files:
        if not _is_audio_upload(file):
            raise HTTPException(status_code=400, detail=f"File must be audio. Got: {file.content_type}")

    recordings = [await file.read() for file in files]
    suffix = _suffix(files[0]) if files else ".webm"
    answers = await asyncio.to_thread(stt.transcribe_answers, recordings, suffix)

    async with sessions.turn(session_id) as machine:
        result = machine.record_responses(answers)
        if not result.ok:
            raise HTTPException(status_code=409, detail=result.message)
        return {
            "responses": {str(k): v for k, v in answers.items()},
            "state": _state_payload(result.state),
            "phase": machine.phase.value,
        }


@app.get("/sessions/{session_id}/state")
async def get_state(session_id: str, sessions: SessionManager = Depends(get_session_manager)):
    machine = sessions.get(session_id)
    state = machine.state
    sessions.release(session_id)
    return {"state": _state_payload(state), "phase": RecruiterPhases.derive(state).value}


@app.get("/sessions/{session_id}/status")
async def get_status(session_id: str, sessions: SessionManager = Depends(get_session_manager)):
    status = sessions.get(session_id).get_status()
    sessions.release(session_id)
    return status


@app.post("/sessions/{session_id}/reset")
async def reset_session(session_id: str, sessions: SessionManager = Depends(get_session_manager)):
    """
    Reset recruiter state and start fresh.
    """
    async with sessions.turn(session_id) as machine:
        state = machine.reset()
    sessions.release(session_id)
    return {"status": "Session reset successfully", "state": _state_payload(state)}


@app.get("/phases")
async def list_phases():
    return {"phases": RecruiterPhases.get_all_phases_info()}


@app.get("/debug/llm")
async def debug_llm():
    """Check that the model server answers."""
    healthy = await asyncio.to_thread(llm_client.health_check)
    return {"healthy": healthy, "url": llm_client.chat_url, "model": llm_client.model}


@app.websocket("/sessions/{session_id}/ws")
async def state_updates(
    websocket: WebSocket,
    session_id: str,
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Push the recruiter state to the client: once on connect, then after
    every committed change.
    """
    await websocket.accept()
    machine = sessions.get(session_id)
    queue: "asyncio.Queue[RecruiterState]" = asyncio.Queue()
    loop = asyncio.get_running_loop()
    unsubscribe = machine.subscribe(lambda state: loop.call_soon_threadsafe(queue.put_nowait, state))

    async def push_updates():
        while True:
            state = await queue.get()
            await websocket.send_json({"state": _state_payload(state), "phase": RecruiterPhases.derive(state).value})

    pusher = None
    try:
        await websocket.send_json({"state": _state_payload(machine.state), "phase": machine.phase.value})
        pusher = asyncio.create_task(push_updates())
        # Client messages are ignored; receiving only detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"State subscriber for {session_id} disconnected")
    finally:
        unsubscribe()
        if pusher is not None:
            pusher.cancel()
        sessions.release(session_id)


# ================================================================
# Main Entry Point
# ================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

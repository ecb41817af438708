"""REST API endpoints for the edit session.

Provides endpoints for:
- Starting a session from an uploaded file
- Submitting edit prompts
- Undo and reset
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from media_agent.agent.edit_session import EditSession
from media_agent.errors import (
    ExhaustedFailure,
    InvalidPromptError,
    SessionBusyError,
    SessionNotStartedError,
)
from media_agent.models.api_models import (
    EditFailureResponse,
    EditRecordResponse,
    EditRequestBody,
    EditResponse,
    ExplanationBody,
    ResetResponse,
    SessionStateResponse,
    StartSessionRequest,
    UndoResponse,
)
from media_agent.models.media_models import UnknownMediaTypeError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_edit_session(request: Request) -> EditSession:
    session = getattr(request.app.state, "edit_session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Edit session is not configured")
    return session


def _current_response(session: EditSession) -> EditRecordResponse:
    return EditRecordResponse.from_record(len(session.history) - 1, session.current())


def _state_response(session: EditSession) -> SessionStateResponse:
    return SessionStateResponse(
        session_id=session.session_id,
        records=[
            EditRecordResponse.from_record(index, record)
            for index, record in enumerate(session.history.records())
        ],
        current=_current_response(session),
        can_undo=session.history.can_undo,
        busy=session.busy,
    )


@router.post("/session", response_model=SessionStateResponse)
def start_session(
    body: StartSessionRequest,
    session: EditSession = Depends(get_edit_session),
):
    try:
        session.start(body.filename, body.path)
    except UnknownMediaTypeError as e:
        raise HTTPException(status_code=415, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _state_response(session)


@router.get("/session", response_model=SessionStateResponse)
def get_session_state(session: EditSession = Depends(get_edit_session)):
    if not session.started:
        raise HTTPException(status_code=404, detail="No file uploaded yet")
    return _state_response(session)


@router.post(
    "/session/edits",
    response_model=EditResponse,
    responses={502: {"model": EditFailureResponse}},
)
async def submit_edit(
    body: EditRequestBody,
    session: EditSession = Depends(get_edit_session),
):
    logger.info(
        "edit_submit_start session_id=%s prompt_len=%d",
        session.session_id,
        len(body.prompt or ""),
    )
    try:
        outcome = await run_in_threadpool(session.submit, body.prompt)
    except InvalidPromptError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except SessionNotStartedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ExhaustedFailure as e:
        logger.info(
            "edit_submit_exhausted session_id=%s attempts=%d",
            session.session_id,
            len(e.failures),
        )
        failure = EditFailureResponse(
            message=str(e),
            last_command=e.last_command_line,
            failures=e.failures,
        )
        return JSONResponse(status_code=502, content=failure.model_dump(mode="json"))

    result = outcome.result
    logger.info(
        "edit_submit_complete session_id=%s attempts=%d produced_file=%s",
        session.session_id,
        result.attempts,
        result.produced_file,
    )
    output = None
    if outcome.record is not None:
        output = _current_response(session)
    explanation = None
    if outcome.explanation is not None:
        explanation = ExplanationBody(**outcome.explanation.model_dump())

    return EditResponse(
        command=result.command_line,
        exit_status=result.exit_status,
        stdout=result.stdout,
        stderr=result.stderr,
        attempts=result.attempts,
        output=output,
        explanation=explanation,
        failures=result.failures,
    )


@router.post("/session/undo", response_model=UndoResponse)
def undo_edit(session: EditSession = Depends(get_edit_session)):
    try:
        record = session.undo()
    except SessionNotStartedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return UndoResponse(undone=record is not None, current=_current_response(session))


@router.post("/session/reset", response_model=ResetResponse)
def reset_session(session: EditSession = Depends(get_edit_session)):
    try:
        session.reset()
    except SessionNotStartedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return ResetResponse(current=_current_response(session))

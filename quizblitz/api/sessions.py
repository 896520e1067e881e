"""
Game Session API Routes
Host controls, player join/answer, and the poll read model
FILE: quizblitz/api/sessions.py
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, status

from quizblitz.api.dependencies import (
    get_current_user_id,
    get_game_session_service,
    get_optional_user_id,
    get_poll_service,
)
from quizblitz.models.game import GamePlayer, GameSession
from quizblitz.models.session_api import (
    AdvanceResult,
    AnswerResult,
    CreateSessionRequest,
    CurrentQuestionView,
    FinalResults,
    JoinSessionRequest,
    JoinSessionResponse,
    RevealResult,
    SessionSnapshot,
    SubmitAnswerRequest,
)
from quizblitz.services.game_session_service import GameSessionService
from quizblitz.services.poll_service import PollService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["Game Sessions"])
players_router = APIRouter(prefix="/api/players", tags=["Game Sessions"])


# ============================================================================
# HOST / PLAYER COMMANDS
# ============================================================================

@router.post(
    "",
    response_model=GameSession,
    status_code=status.HTTP_201_CREATED,
    summary="Host a new game",
    description="""
    Create a waiting game session for a quiz.

    The caller becomes the host. The quiz must be owned by the caller or
    published. A 6-character join code is allocated; it avoids the easily
    confused characters 0, 1, I and O.
    """
)
async def create_session(
    request: CreateSessionRequest,
    host_id: str = Depends(get_current_user_id),
    service: GameSessionService = Depends(get_game_session_service)
) -> GameSession:
    return await service.create_session(request.quiz_id, host_id)


@router.post(
    "/join",
    response_model=JoinSessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Game not found or already started"},
        409: {"description": "Game not found or already started"}
    },
    summary="Join a waiting game by code"
)
async def join_session(
    request: JoinSessionRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: GameSessionService = Depends(get_game_session_service)
) -> JoinSessionResponse:
    player, session = await service.join_session(request.game_code, request.nickname, user_id)
    return JoinSessionResponse(player=player, session=session)


@router.get("/recent", response_model=List[GameSession], summary="My recently hosted games")
async def recent_sessions(
    host_id: str = Depends(get_current_user_id),
    service: GameSessionService = Depends(get_game_session_service)
) -> List[GameSession]:
    return await service.list_recent_sessions(host_id)


@router.post("/{session_id}/start", response_model=GameSession, summary="Start the game (host)")
async def start_session(
    session_id: str = Path(..., description="Session ID"),
    host_id: str = Depends(get_current_user_id),
    service: GameSessionService = Depends(get_game_session_service)
) -> GameSession:
    return await service.start_session(session_id, host_id)


@router.post(
    "/{session_id}/answer",
    response_model=AnswerResult,
    responses={409: {"description": "Not playing, wrong question, revealed, or already answered"}},
    summary="Submit an answer to the current question"
)
async def submit_answer(
    request: SubmitAnswerRequest,
    session_id: str = Path(..., description="Session ID"),
    service: GameSessionService = Depends(get_game_session_service)
) -> AnswerResult:
    return await service.submit_answer(
        session_id=session_id,
        player_id=request.player_id,
        question_id=request.question_id,
        selected_answer=request.selected_answer,
        time_taken=request.time_taken
    )


@router.post("/{session_id}/reveal", response_model=RevealResult, summary="Reveal answers (host)")
async def reveal_answer(
    session_id: str = Path(..., description="Session ID"),
    host_id: str = Depends(get_current_user_id),
    service: GameSessionService = Depends(get_game_session_service)
) -> RevealResult:
    return await service.reveal_answer(session_id, host_id)


@router.post("/{session_id}/next", response_model=AdvanceResult, summary="Next question or finish (host)")
async def advance_question(
    session_id: str = Path(..., description="Session ID"),
    host_id: str = Depends(get_current_user_id),
    service: GameSessionService = Depends(get_game_session_service)
) -> AdvanceResult:
    return await service.advance_question(session_id, host_id)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a game (host)")
async def delete_session(
    session_id: str = Path(..., description="Session ID"),
    host_id: str = Depends(get_current_user_id),
    service: GameSessionService = Depends(get_game_session_service)
):
    await service.delete_session(session_id, host_id)


# ============================================================================
# POLL READ MODEL
# ============================================================================

@router.get("/{session_id}", response_model=SessionSnapshot, summary="Session snapshot")
async def get_snapshot(
    session_id: str = Path(..., description="Session ID"),
    service: PollService = Depends(get_poll_service)
) -> SessionSnapshot:
    return await service.get_snapshot(session_id)


@router.get("/{session_id}/players", response_model=List[GamePlayer], summary="Players by standing")
async def get_players(
    session_id: str = Path(..., description="Session ID"),
    service: PollService = Depends(get_poll_service)
) -> List[GamePlayer]:
    return await service.get_players(session_id)


@router.get("/{session_id}/question", response_model=CurrentQuestionView, summary="Current question")
async def get_current_question(
    session_id: str = Path(..., description="Session ID"),
    service: PollService = Depends(get_poll_service)
) -> CurrentQuestionView:
    return await service.get_current_question(session_id)


@router.get("/{session_id}/tally", response_model=RevealResult, summary="Answer counts once revealed")
async def get_tally(
    session_id: str = Path(..., description="Session ID"),
    service: PollService = Depends(get_poll_service)
) -> RevealResult:
    return await service.get_tally(session_id)


@router.get("/{session_id}/results", response_model=FinalResults, summary="Final standings")
async def get_results(
    session_id: str = Path(..., description="Session ID"),
    service: PollService = Depends(get_poll_service)
) -> FinalResults:
    return await service.get_results(session_id)


@players_router.get("/{player_id}", response_model=GamePlayer, summary="One player")
async def get_player(
    player_id: str = Path(..., description="Player ID"),
    service: PollService = Depends(get_poll_service)
) -> GamePlayer:
    return await service.get_player(player_id)

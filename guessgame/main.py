'''
Up/Down Number Challenge API

Endpoints:
POST /game/start           -> start a game for a player (LOBBY -> PLAYING)
POST /game/guess           -> submit a guess (PLAYING, CORRECT -> FINISHED)
GET  /game                 -> read state & history
POST /game/reset           -> back to the lobby (also abandons a running game)

Extras:
GET  /leaderboard          -> global top 10
GET  /leaderboard/best     -> current best record

One player, one game at a time: the controller lives in process memory.
The leaderboard is stored in the database; AI commentary is fetched in the
background after each guess response has been sent.
'''

import logging

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from .bootstrap_db import create_all     # dev-only: create tables
from .commentary_client import CommentaryClient
from .config import settings
from .db import SessionLocal, get_db     # SQLAlchemy Session dependency
from .errors import GameError, InvalidTransitionError
from .leaderboard import DBLeaderboard   # DB-backed leaderboard client
from .session import GameController, request_commentary
from .types import LEADERBOARD_SIZE

from .schemas import (
    GameStateOut,
    GuessRequest,
    GuessResponse,
    LeaderboardEntryOut,
    LeaderboardOut,
    StartGameRequest,
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Up/Down Number Challenge API", version="1.0.0")

# Allow everything in dev so the docs and front-end work easily
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

controller = GameController()
commentary_client = CommentaryClient()

if not commentary_client.enabled:
    logger.info("No Gemini API key configured; commentary uses the fallback text")

# --- Dev convenience: auto-create tables locally ---
if settings.app_env == "local":
    @app.on_event("startup")
    def _dev_create_tables():
        create_all()


@app.on_event("startup")
def _load_leaderboard():
    db = SessionLocal()
    try:
        controller.refresh_leaderboard(DBLeaderboard(db))
    finally:
        db.close()


# Small factories so routes get per-request collaborators; tests override them
def get_controller() -> GameController:
    return controller


def get_leaderboard(session = Depends(get_db)) -> DBLeaderboard:
    return DBLeaderboard(session)


def get_commentary_client() -> CommentaryClient:
    return commentary_client


def _to_http_error(exc: GameError) -> HTTPException:
    if isinstance(exc, InvalidTransitionError):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


# ---------------- Routes ----------------

@app.post("/game/start", response_model=GameStateOut, summary="Start a new game")
def start_game(
    payload: StartGameRequest,
    game: GameController = Depends(get_controller),
) -> GameStateOut:
    try:
        game.start_game(payload.player_name)
    except GameError as exc:
        raise _to_http_error(exc)
    return game.snapshot()


@app.post("/game/guess", response_model=GuessResponse, summary="Submit a guess")
def submit_guess(
    payload: GuessRequest,
    background_tasks: BackgroundTasks,
    game: GameController = Depends(get_controller),
    board: DBLeaderboard = Depends(get_leaderboard),
    client: CommentaryClient = Depends(get_commentary_client),
) -> GuessResponse:
    try:
        record = game.submit_guess(payload.guess, leaderboard=board)
    except GameError as exc:
        raise _to_http_error(exc)

    # Runs after the response is sent; the verdict never waits for it
    background_tasks.add_task(
        request_commentary,
        game,
        client,
        record.id,
        record.value,
        record.verdict,
        record.history_values,
    )

    state = game.snapshot()
    return GuessResponse(verdict=record.verdict, message=state.host_message, state=state)


@app.get("/game", response_model=GameStateOut, summary="Get current game state")
def get_game(game: GameController = Depends(get_controller)) -> GameStateOut:
    return game.snapshot()


@app.post("/game/reset", response_model=GameStateOut, summary="Return to the lobby")
def reset_game(
    game: GameController = Depends(get_controller),
    board: DBLeaderboard = Depends(get_leaderboard),
) -> GameStateOut:
    game.reset_to_lobby(board)
    return game.snapshot()


@app.get("/leaderboard", response_model=LeaderboardOut, summary="Get the global top 10")
def get_leaderboard_top(
    limit: int = Query(LEADERBOARD_SIZE, ge=1, le=LEADERBOARD_SIZE),
    game: GameController = Depends(get_controller),
    board: DBLeaderboard = Depends(get_leaderboard),
) -> LeaderboardOut:
    entries = game.refresh_leaderboard(board)
    return LeaderboardOut(entries=entries[:limit], warning=game.leaderboard_warning)


@app.get("/leaderboard/best", response_model=LeaderboardEntryOut, summary="Get the best record")
def get_best_record(
    game: GameController = Depends(get_controller),
    board: DBLeaderboard = Depends(get_leaderboard),
) -> LeaderboardEntryOut:
    game.refresh_leaderboard(board)
    best = game.best_record
    if best is None:
        raise HTTPException(status_code=404, detail="No records yet")
    return best

"""FastAPI REST interface for the engine."""

import math
import threading
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from connectk.config import CONFIG
from connectk.core.board import DRAW, NOT_OVER
from connectk.core.utils import format_score, setup_logging
from connectk.main import Engine

setup_logging()

app = FastAPI(title=CONFIG.ui.engine_name, version="1.0.0")

# Shared game session.
engine = Engine()
_engine_lock = threading.Lock()


class NewGameRequest(BaseModel):
    width: int = Field(CONFIG.board.width, ge=1, le=50)
    height: int = Field(CONFIG.board.height, ge=1, le=50)
    k_length: int = Field(CONFIG.board.k_length, ge=1)
    gravity: bool = CONFIG.board.gravity


class MoveRequest(BaseModel):
    col: int
    row: Optional[int] = None  # may be omitted on gravity boards


class SearchRequest(BaseModel):
    time_limit_ms: Optional[int] = Field(None, ge=0, le=60000)
    max_depth: Optional[int] = Field(None, ge=0)


def _status() -> str:
    winner = engine.board.winner()
    if winner == NOT_OVER:
        return "in_progress"
    if winner == DRAW:
        return "draw"
    return f"player{winner}_wins"


def _board_state() -> dict:
    b = engine.board
    return {
        "width": b.width,
        "height": b.height,
        "k_length": b.k_length,
        "gravity": b.gravity,
        "rows": b.to_rows(),
        "to_move": engine.to_move,
        "legal_moves": [list(m) for m in engine.get_legal_moves()],
        "is_game_over": engine.is_game_over(),
        "status": _status(),
    }


@app.get("/board")
def get_board():
    with _engine_lock:
        return _board_state()


@app.post("/new")
def new_game(req: NewGameRequest = NewGameRequest()):
    with _engine_lock:
        try:
            engine.new_game(req.width, req.height, req.k_length, req.gravity)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _board_state()


@app.post("/move")
def make_move(req: MoveRequest):
    with _engine_lock:
        if engine.is_game_over():
            raise HTTPException(status_code=400, detail="Game is already over")
        if not engine.make_move(req.col, req.row):
            where = (req.col,) if req.row is None else (req.col, req.row)
            raise HTTPException(status_code=400, detail=f"Illegal move: {where}")
        played = engine.move_history[-1]
        state = _board_state()
        state["move"] = list(played)
        return state


@app.post("/search")
def search_move(req: SearchRequest = SearchRequest()):
    with _engine_lock:
        if engine.is_game_over():
            raise HTTPException(status_code=400, detail="Game is already over")
        result = engine.get_best_move(req.time_limit_ms, req.max_depth)

    score = result.score
    if math.isinf(score):
        score = format_score(score)
    return {
        "best_move": list(result.move) if result.move else None,
        "score": score,
        "depth": result.depth,
        "nodes": result.nodes,
        "time_ms": result.time_ms,
        "pv": [list(m) for m in result.pv],
    }


@app.post("/reset")
def reset_board():
    with _engine_lock:
        engine.reset()
        return _board_state()

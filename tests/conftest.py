# tests/conftest.py
from __future__ import annotations

import asyncio
import base64
import secrets
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, Header, HTTPException
from pydantic import ValidationError

from initialsdb_client.core.pow import validate_solution
from initialsdb_client.schemas import ListingCreate
from initialsdb_client.services.board import BoardClient, BoardConfig
from initialsdb_client.services.orchestrator import Orchestrator
from initialsdb_client.services.status import StatusLog

TEST_BASE_URL = "http://board.test"


@dataclass
class IssuedChallenge:
    challenge: str
    difficulty: int
    token: str


@dataclass
class FakeBoard:
    """In-memory stand-in for the board server."""

    difficulty: int = 4
    ttl_secs: int = 30
    listings: list[dict] = field(default_factory=list)
    issued: dict[str, IssuedChallenge] = field(default_factory=dict)
    used_tokens: list[str] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)
    search_gates: dict[str, asyncio.Event] = field(default_factory=dict)
    search_calls: list[dict] = field(default_factory=list)
    challenge_requests: int = 0
    create_requests: int = 0

    def add(self, body: str) -> dict:
        listing = {
            "id": len(self.listings) + 1,
            "body": body,
            "created_at": (
                datetime(2026, 1, 1, tzinfo=UTC) + timedelta(minutes=len(self.listings))
            ).isoformat(),
        }
        self.listings.append(listing)
        return listing

    def matching(self, q: str) -> list[dict]:
        needle = q.strip().lower()
        hits = [item for item in self.listings if needle in item["body"].lower()]
        return sorted(hits, key=lambda item: item["id"], reverse=True)


def _encode_cursor(offset: int) -> str:
    return base64.urlsafe_b64encode(str(offset).encode()).decode().rstrip("=")


def _decode_cursor(cursor: str) -> int:
    padded = cursor + "=" * (-len(cursor) % 4)
    return int(base64.urlsafe_b64decode(padded).decode())


def build_board_app(board: FakeBoard) -> FastAPI:
    app = FastAPI()

    @app.get("/pow/challenge")
    async def get_challenge() -> dict:
        board.challenge_requests += 1
        if "challenge" in board.failing:
            raise HTTPException(status_code=503, detail="pow disabled")
        issued = IssuedChallenge(
            challenge=base64.b64encode(secrets.token_bytes(16)).decode(),
            difficulty=board.difficulty,
            token=secrets.token_hex(16),
        )
        board.issued[issued.token] = issued
        return {
            "challenge": issued.challenge,
            "difficulty": issued.difficulty,
            "ttl_secs": board.ttl_secs,
            "token": issued.token,
        }

    @app.get("/api/listings/search")
    async def search(q: str = "", limit: int = 30, cursor: str | None = None) -> dict:
        board.search_calls.append({"q": q, "limit": limit, "cursor": cursor})
        gate = board.search_gates.get(q)
        if gate is not None:
            await gate.wait()
        if "search" in board.failing:
            raise HTTPException(status_code=500, detail="db error")

        offset = _decode_cursor(cursor) if cursor else 0
        hits = board.matching(q)
        page = hits[offset:offset + limit]
        response: dict = {"items": page}
        if offset + limit < len(hits):
            response["next_cursor"] = _encode_cursor(offset + limit)
        return response

    @app.post("/api/listings/create", status_code=201)
    async def create(
        body: dict,
        x_pow_challenge: str = Header(...),
        x_pow_nonce: str = Header(...),
        x_pow_token: str = Header(...),
    ) -> dict:
        board.create_requests += 1
        if "create" in board.failing:
            raise HTTPException(status_code=500, detail="db error")

        issued = board.issued.get(x_pow_token)
        if issued is None or x_pow_token in board.used_tokens:
            raise HTTPException(status_code=403, detail="invalid token")
        if issued.challenge != x_pow_challenge:
            raise HTTPException(status_code=403, detail="challenge mismatch")
        board.used_tokens.append(x_pow_token)

        challenge_bytes = base64.b64decode(x_pow_challenge)
        if not validate_solution(challenge_bytes, x_pow_nonce, issued.difficulty):
            raise HTTPException(status_code=403, detail="invalid pow")
        try:
            payload = ListingCreate.model_validate(body)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail="invalid input") from exc
        return board.add(payload.text)

    @app.get("/api/listings/count")
    async def count() -> dict:
        if "count" in board.failing:
            raise HTTPException(status_code=500, detail="count failed")
        return {"count": len(board.listings)}

    return app


@pytest.fixture
def board() -> FakeBoard:
    return FakeBoard()


@pytest.fixture
def board_config() -> BoardConfig:
    return BoardConfig(
        base_url=TEST_BASE_URL,
        challenge_path="/pow/challenge",
        search_path="/api/listings/search",
        create_path="/api/listings/create",
        count_path="/api/listings/count",
        timeout_seconds=None,
    )


@pytest_asyncio.fixture
async def board_client(board: FakeBoard, board_config: BoardConfig) -> AsyncIterator[BoardClient]:
    transport = httpx.ASGITransport(app=build_board_app(board))
    async with BoardClient(board_config, transport=transport) as client:
        yield client


@pytest_asyncio.fixture
async def orchestrator(board_client: BoardClient) -> AsyncIterator[Orchestrator]:
    orch = Orchestrator(board_client, status=StatusLog("welcome"))
    try:
        yield orch
    finally:
        await orch.aclose()

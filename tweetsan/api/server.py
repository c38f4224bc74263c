from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Response
from starlette.requests import Request

from tweetsan.api.auth import FIELDS_WRITE, Actor, AuthConfig
from tweetsan.api.middleware import SanitiseRequestMiddleware
from tweetsan.api.models import DocumentErrorOut, FieldsIn, FieldsOut, HealthOut
from tweetsan.core.fields import (
    AllowListSnapshot,
    AllowListTree,
    FieldSelection,
    LiveAllowList,
    parse_keep_text,
)
from tweetsan.core.sanitise import sanitise_document, sanitise_lines

log = logging.getLogger("tweetsan.api")


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Configuration for the API service.

    selection is only the initial allow-list; PUT /fields replaces it at
    runtime.
    """

    selection: FieldSelection = field(default_factory=FieldSelection)
    max_body_bytes: int = 5 * 1024 * 1024


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError:
        return int(default)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes"}


def _fields_out(snap: AllowListSnapshot) -> FieldsOut:
    return FieldsOut(
        fields=list(snap.selection.fields),
        skip_media=snap.selection.skip_media,
        paths=snap.tree.paths(),
        tree=snap.tree.to_dict(),
    )


def create_app(*, selection: Optional[FieldSelection] = None) -> FastAPI:
    """Create the FastAPI app."""

    cfg = ServiceConfig(
        selection=selection or FieldSelection(),
        max_body_bytes=_env_int("TWEETSAN_MAX_BODY_BYTES", 5 * 1024 * 1024),
    )
    auth = AuthConfig.from_env()

    log.setLevel(os.environ.get("TWEETSAN_LOG_LEVEL", "INFO").upper())

    app = FastAPI(title="tweetsan API", version="0.1")

    app.state.cfg = cfg
    app.state.auth = auth
    app.state.allow_list = LiveAllowList(cfg.selection)

    app.add_middleware(SanitiseRequestMiddleware)

    def get_actor(
        request: Request,
        x_tweetsan_api_key: Optional[str] = Header(default=None),
    ) -> Actor:
        """Authenticate the request (401 when auth is on and the key is missing or wrong)."""

        actor = auth.authenticate(x_tweetsan_api_key)
        if actor is None:
            raise HTTPException(status_code=401, detail="unauthorized")

        request.state.actor_id = actor.actor_id
        return actor

    def _require_cap(actor: Actor, cap: str) -> None:
        if not actor.can(cap):
            raise HTTPException(status_code=403, detail="forbidden")

    async def _read_text(request: Request) -> str:
        """Read the request body up to the configured cap and decode it as UTF-8."""

        chunks: List[bytes] = []
        total = 0
        async for chunk in request.stream():
            total += len(chunk)
            if total > cfg.max_body_bytes:
                raise HTTPException(status_code=413, detail="body_too_large")
            chunks.append(chunk)
        try:
            return b"".join(chunks).decode("utf-8")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="body_not_utf8")

    def _current_tree(skip_media: bool) -> AllowListTree:
        live: LiveAllowList = app.state.allow_list
        snap = live.snapshot()
        if skip_media and not snap.selection.skip_media:
            return dataclasses.replace(snap.selection, skip_media=True).build()
        return snap.tree

    @app.get("/health", response_model=HealthOut)
    def health() -> HealthOut:
        live: LiveAllowList = app.state.allow_list
        return HealthOut(ok=True, auth_required=auth.required, field_count=len(live.tree.paths()))

    @app.get("/fields", response_model=FieldsOut)
    def get_fields(actor: Actor = Depends(get_actor)) -> FieldsOut:
        live: LiveAllowList = app.state.allow_list
        return _fields_out(live.snapshot())

    @app.put("/fields", response_model=FieldsOut)
    def put_fields(body: FieldsIn, actor: Actor = Depends(get_actor)) -> FieldsOut:
        """Replace the live allow-list.

        Requests already in flight keep the tree they started with.
        """

        _require_cap(actor, FIELDS_WRITE)
        if body.fields is not None:
            fields = [f.strip() for f in body.fields if f.strip()]
        else:
            fields = parse_keep_text(body.text or "")
        if not fields:
            raise HTTPException(status_code=422, detail="empty_selection")

        live: LiveAllowList = app.state.allow_list
        snap = live.replace(FieldSelection(fields=tuple(fields), skip_media=body.skip_media))
        log.info(
            "allow_list_replaced",
            extra={"actor_id": actor.actor_id, "field_count": len(snap.tree.paths())},
        )
        return _fields_out(snap)

    @app.post("/sanitise", responses={422: {"model": DocumentErrorOut}})
    async def sanitise_endpoint(
        request: Request,
        actor: Actor = Depends(get_actor),
        skip_media: bool = False,
    ) -> Response:
        """Sanitise one JSON document sent as the raw request body."""

        text = await _read_text(request)
        res = sanitise_document(text, _current_tree(skip_media))
        return Response(
            content=res.output,
            media_type="application/json",
            status_code=200 if res.ok else 422,
        )

    @app.post("/sanitise/batch")
    async def sanitise_batch_endpoint(
        request: Request,
        actor: Actor = Depends(get_actor),
        skip_media: bool = False,
    ) -> Response:
        """Sanitise JSON lines; output has one line per non-blank input line, in order."""

        text = await _read_text(request)
        tree = _current_tree(skip_media)
        documents = 0
        errors = 0
        out: List[str] = []
        for res in sanitise_lines(text.splitlines(), tree):
            documents += 1
            if not res.ok:
                errors += 1
            out.append(res.output + "\n")

        return Response(
            content="".join(out),
            media_type="application/x-ndjson",
            headers={
                "X-Tweetsan-Documents": str(documents),
                "X-Tweetsan-Errors": str(errors),
            },
        )

    return app


def app_from_env() -> FastAPI:
    """Factory used by Uvicorn / Docker entrypoints.

    Reads:
    - TWEETSAN_KEEP: comma-separated field paths
    - TWEETSAN_KEEP_FILE: keep-file path (used when TWEETSAN_KEEP is unset)
    - TWEETSAN_SKIP_MEDIA: drop entities.media when truthy

    """

    keep = os.environ.get("TWEETSAN_KEEP", "").strip() or None
    keep_file = os.environ.get("TWEETSAN_KEEP_FILE", "").strip() or None
    selection = FieldSelection.resolve(
        keep=keep, keep_file=keep_file, skip_media=_env_flag("TWEETSAN_SKIP_MEDIA")
    )
    return create_app(selection=selection)


# Default ASGI app (importable as tweetsan.api.server:app)
app = app_from_env()

"""This module contains the FastAPI application for the prompt audit service.

It defines the API endpoints for auditing prompts and image metadata,
highlighting and cleaning prompts, extracting tags, and looking up blocklist
entries, as well as health checks and version information. It also handles
the application startup logic, including building the compiled word lists.
"""
from __future__ import annotations
import os
from typing import List, Optional

from fastapi import FastAPI, Query, Request
from pydantic import BaseModel, Field
from prometheus_client import Counter as PromCounter, make_asgi_app

from .auditor import PromptAuditor
from .lexicon import Lexicon, load_word_lists

PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "0") == "1"
MAX_PROMPT_LENGTH = int(os.getenv("MAX_PROMPT_LENGTH", "10000"))
HTTP_PORT = int(os.getenv("HTTP_PORT", "8000"))
VERSION = "1.0.0"

app = FastAPI(title="Prompt Audit API")

if PROMETHEUS_ENABLED:
    audit_requests_total = PromCounter(
        "prompt_audit_requests_total", "Total requests processed", ["endpoint"]
    )
    app.mount("/metrics", make_asgi_app())


@app.on_event("startup")
async def startup_event():
    """Builds the PromptAuditor at application startup."""
    # A malformed word list file fails startup rather than weakening matching.
    word_lists = load_word_lists(os.getenv("WORDLISTS_PATH"))
    app.state.auditor = PromptAuditor(Lexicon.build(word_lists))


def get_auditor(request: Request) -> PromptAuditor:
    if PROMETHEUS_ENABLED:
        audit_requests_total.labels(endpoint=request.url.path).inc()
    return request.app.state.auditor


class PromptRequest(BaseModel):
    """The request model for the prompt endpoints."""
    prompt: str = Field(..., max_length=MAX_PROMPT_LENGTH)
    negative_prompt: Optional[str] = Field(None, alias="negativePrompt", max_length=MAX_PROMPT_LENGTH)
    enriched: bool = False
    check_profanity: bool = Field(False, alias="checkProfanity")

    model_config = {"populate_by_name": True}


class ImageMeta(BaseModel):
    prompt: Optional[str] = Field(None, max_length=MAX_PROMPT_LENGTH)

    model_config = {"extra": "allow"}


class MetadataRequest(BaseModel):
    """The request model for the /audit/metadata endpoint."""
    meta: Optional[ImageMeta] = None
    nsfw: bool = False


@app.get("/health")
def health():
    """Returns the health status of the service."""
    return {"status": "ok"}


@app.get("/version")
def version():
    """Returns the version of the service and the size of its word lists."""
    lexicon = app.state.auditor.lexicon
    return {
        "version": VERSION,
        "blocked_words": len(lexicon.blocked_nsfw),
        "tags": len(lexicon.tags),
    }


@app.post("/audit/prompt")
def audit_prompt(req: PromptRequest, request: Request):
    """Audits a generation prompt, stopping at the first violation."""
    auditor = get_auditor(request)
    if req.enriched:
        return auditor.audit_prompt_enriched(
            req.prompt, req.negative_prompt, req.check_profanity
        ).to_dict()
    return auditor.audit_prompt(req.prompt, req.negative_prompt, req.check_profanity).to_dict()


@app.post("/audit/metadata")
def audit_metadata(req: MetadataRequest, request: Request):
    """Audits image metadata, listing every blocklisted word."""
    meta = req.meta.model_dump() if req.meta else None
    return get_auditor(request).audit_metadata(meta, req.nsfw).to_dict()


@app.post("/highlight")
def highlight(req: PromptRequest, request: Request):
    """Returns the prompt with violating spans wrapped in colored markup."""
    html = get_auditor(request).highlight_inappropriate(req.prompt, req.negative_prompt)
    return {"html": html}


@app.post("/tags")
def tags(req: PromptRequest, request: Request):
    """Returns the descriptive tags of a prompt."""
    return {"tags": get_auditor(request).get_tags_from_prompt(req.prompt)}


@app.post("/clean")
def clean(req: PromptRequest, request: Request):
    """Strips blocked words, and minor and POI references from NSFW prompts."""
    cleaned = get_auditor(request).clean_prompt(req.prompt, req.negative_prompt)
    return {"prompt": cleaned.prompt, "negativePrompt": cleaned.negative_prompt}


@app.get("/blocked-words")
def blocked_words(request: Request, q: str = Query(..., max_length=200)) -> List[str]:
    """Lists NSFW blocklist entries matching a regex, for moderators."""
    return get_auditor(request).possible_blocked_nsfw_words(q)

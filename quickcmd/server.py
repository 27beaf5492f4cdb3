"""HTTP API for external integrations.

``wtf serve`` exposes a single endpoint so that editors and other
tools can ask for a command without going through the terminal UI::

    POST /generate_command
    {"input": "find large files", "explain": false}

    200 {"command": "find . -type f -size +100M", "explanation": null}

The endpoint only generates.  It never executes the command and never
writes to the history file.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from . import __version__
from .context import harvest
from .errors import ApiError
from .prompts import build_system_prompt
from .providers import BaseProvider
from .sanitizer import sanitize


class GenerateRequest(BaseModel):
    input: str = ""
    explain: bool = False


class GenerateResponse(BaseModel):
    command: str
    explanation: Optional[str] = None


def create_app(provider: BaseProvider, context_enabled: bool = False) -> FastAPI:
    """Build the FastAPI application around ``provider``.

    Directory context is off by default since the server's working
    directory is rarely the caller's.
    """
    app = FastAPI(title="quickcmd", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/generate_command", response_model=GenerateResponse)
    def generate_command(request: GenerateRequest) -> GenerateResponse:
        prompt_text = request.input.strip()
        if not prompt_text:
            raise HTTPException(status_code=400, detail="'input' field must be a non-empty string")
        system_prompt = build_system_prompt(harvest(enabled=context_enabled), explain=request.explain)
        try:
            raw = provider.generate(prompt_text, system_prompt)
        except ApiError as exc:
            raise HTTPException(status_code=502, detail=str(exc))
        command, explanation = sanitize(raw)
        if not command:
            raise HTTPException(status_code=502, detail="The model returned an empty command")
        return GenerateResponse(command=command, explanation=explanation)

    return app

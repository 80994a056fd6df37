"""
src/api/upload.py
==================
API Upload Endpoints - VoiceRedact

Responsibility:
    - POST /api/v1/redact-audio       mute spans given per channel
    - POST /api/v1/redact-transcript  mute utterances a transcript marks
    - POST /api/v1/cut-audio          cut-and-splice one channel
    - POST /api/v1/cut-transcript     cut-and-splice utterances a transcript marks
    - Accept a single audio file via multipart/form-data plus a JSON
      form field describing what to redact
    - Return the redacted audio as audio/wav

Error responses keep "bad input shape" and "interval ordering" apart so
callers can tell which side of their span construction to fix.
"""

import asyncio
import json
import logging
from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from src.audio.container import ContainerError
from src.audio.normalizer import AudioNormalizationError, AudioValidationError
from src.pipeline import (
    run_cut_replace,
    run_redaction,
    run_transcript_cut_replace,
    run_transcript_redaction,
)
from src.redaction.errors import (
    ChannelMismatchError,
    InvalidRedactionArgument,
    SpanOrderError,
)

logger = logging.getLogger("voiceredact.api")

WAV_MEDIA_TYPE = "audio/wav"


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="VoiceRedact",
    description="Call-recording redaction - mute-in-place and cut-and-splice.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.post("/api/v1/redact-audio")
async def redact_audio(
    audio_file: UploadFile = File(...),
    spans: str = Form(...),
):
    """
    Mute spans in an uploaded recording.

    Args:
        audio_file: Uploaded audio (.wav, .mp3, .m4a, .flac).
        spans:      JSON object mapping channel index to a list of
                    {"offset": ms, "duration": ms} entries.
    """
    span_map = _parse_json_field(spans, "spans", dict)
    audio_bytes = await _read_upload(audio_file)
    output = await _run(run_redaction, audio_bytes, audio_file.filename, span_map)
    return Response(content=output, media_type=WAV_MEDIA_TYPE)


@app.post("/api/v1/redact-transcript")
async def redact_transcript(
    audio_file: UploadFile = File(...),
    transcript: str = Form(...),
):
    """
    Mute every utterance with redacted spans in a transcript.

    Args:
        audio_file: Uploaded audio.
        transcript: JSON list of utterance dicts with channel, offset,
                    duration and redacted_spans.
    """
    utterances = _parse_json_field(transcript, "transcript", list)
    audio_bytes = await _read_upload(audio_file)
    output = await _run(run_transcript_redaction, audio_bytes, audio_file.filename, utterances)
    return Response(content=output, media_type=WAV_MEDIA_TYPE)


@app.post("/api/v1/cut-audio")
async def cut_audio(
    audio_file: UploadFile = File(...),
    cuts: str = Form(...),
    channel: int = Form(0),
    filler: str | None = Form(None),
):
    """
    Replace intervals of one channel with filler of equal duration.

    Args:
        audio_file: Uploaded audio.
        cuts:       JSON list of {"start_ms": ms, "duration_ms": ms}.
        channel:    Channel to process (output is mono).
        filler:     "silence", "tone" or "tone_then_silence".
    """
    cut_list = _parse_json_field(cuts, "cuts", list)
    audio_bytes = await _read_upload(audio_file)
    output = await _run(
        run_cut_replace, audio_bytes, audio_file.filename, cut_list, channel, filler,
    )
    return Response(content=output, media_type=WAV_MEDIA_TYPE)


@app.post("/api/v1/cut-transcript")
async def cut_transcript(
    audio_file: UploadFile = File(...),
    transcript: str = Form(...),
    channel: int = Form(0),
    filler: str | None = Form(None),
):
    """
    Cut-and-splice every utterance on one channel that a transcript marks
    with redacted_audio_spans.

    Args:
        audio_file: Uploaded audio.
        transcript: JSON list of utterance dicts.
        channel:    Channel to process (output is mono).
        filler:     "silence", "tone" or "tone_then_silence".
    """
    utterances = _parse_json_field(transcript, "transcript", list)
    audio_bytes = await _read_upload(audio_file)
    output = await _run(
        run_transcript_cut_replace, audio_bytes, audio_file.filename, utterances, channel, filler,
    )
    return Response(content=output, media_type=WAV_MEDIA_TYPE)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_json_field(raw: str, name: str, expected: type) -> Any:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=422, detail=f"Field '{name}' is not valid JSON: {exc}")
    if not isinstance(value, expected):
        raise HTTPException(
            status_code=422,
            detail=f"Field '{name}' must be a JSON {'object' if expected is dict else 'array'}.",
        )
    return value


async def _read_upload(audio_file: UploadFile) -> bytes:
    if audio_file is None or audio_file.filename is None:
        raise HTTPException(status_code=400, detail="Audio file is required.")

    logger.info("Audio file received: %s", audio_file.filename)
    try:
        audio_bytes = await audio_file.read()
    except Exception:
        raise HTTPException(status_code=400, detail="Failed to read uploaded file.")

    logger.info("File size: %.2f KB", len(audio_bytes) / 1024)
    return audio_bytes


async def _run(fn, *args):
    """Run a blocking pipeline in a worker thread and map its errors."""
    try:
        return await asyncio.to_thread(fn, *args)
    except SpanOrderError as exc:
        raise HTTPException(
            status_code=422,
            detail=f"Precondition violated on interval ordering: {exc.message}",
        )
    except ChannelMismatchError as exc:
        raise HTTPException(status_code=422, detail=f"Bad input shape: {exc.message}")
    except (InvalidRedactionArgument, AudioValidationError, ContainerError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except AudioNormalizationError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    except Exception as exc:
        logger.error("Redaction pipeline unexpected error: %s", exc, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Redaction failed: {exc}")

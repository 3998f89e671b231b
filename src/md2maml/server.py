"""FastAPI web service for help Markdown to MAML conversion.

Endpoints::

    POST /convert       Upload a .md file and receive MAML XML back.
    POST /convert/text  Send raw Markdown text, receive MAML XML.
    GET  /health        Health check.

Run::

    uvicorn md2maml.server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from urllib.parse import quote

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from md2maml import __version__
from md2maml.converter import Converter
from md2maml.errors import Md2MamlError

app = FastAPI(
    title="md2maml",
    description="PowerShell help Markdown to MAML conversion service",
    version=__version__,
)

MAML_MEDIA_TYPE = "application/xml"
OUTPUT_SUFFIX = "-help.xml"


def _content_disposition(filename: str) -> str:
    """Build Content-Disposition header, RFC 5987 for non-ASCII names."""
    try:
        filename.encode("ascii")
        return f'attachment; filename="{filename}"'
    except UnicodeEncodeError:
        encoded = quote(filename)
        return f"attachment; filename*=UTF-8''{encoded}"


def _convert(markdown: str, strict_names: bool) -> str:
    converter = Converter(strict_names=strict_names)
    try:
        return converter.convert_text(markdown)
    except Md2MamlError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.post("/convert")
async def convert_file(
    file: UploadFile = File(...),
    encoding: str = Form("utf-8"),
    strict_names: bool = Form(False),
) -> Response:
    """Upload a help Markdown file and receive MAML back.

    - **file**: Markdown file (.md)
    - **encoding**: Source file encoding
    - **strict_names**: Reject command names without a '-' separator
    """
    raw = await file.read()
    try:
        md_text = raw.decode(encoding)
    except (LookupError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    maml = _convert(md_text, strict_names)
    filename = (file.filename or "document.md").rsplit(".", 1)[0] + OUTPUT_SUFFIX

    return Response(
        content=maml,
        media_type=MAML_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition(filename)},
    )


@app.post("/convert/text")
async def convert_text(
    markdown: str = Form(...),
    strict_names: bool = Form(False),
) -> Response:
    """Send raw help Markdown text and receive MAML XML.

    - **markdown**: Markdown source text
    - **strict_names**: Reject command names without a '-' separator
    """
    maml = _convert(markdown, strict_names)

    return Response(
        content=maml,
        media_type=MAML_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="document{OUTPUT_SUFFIX}"'},
    )

"""
Request Decoder

Turns a multipart/form-data upload into a RenderRequest:
- `option` parts become literal renderer arguments, decoded as UTF-8
  (latin-1 when the bytes are not valid UTF-8)
- `file` parts are written to the request workspace and passed by path
- any other part name is rejected
"""

import logging
import shutil
import sys
from pathlib import Path, PureWindowsPath
from typing import Union

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import ClientDisconnect

from .models import RenderRequest, Workspace
from .options import is_doc_option

logger = logging.getLogger(__name__)

OPTION_PART = "option"
FILE_PART = "file"

# Part size and part counts are left to the transport layer.
FORM_LIMIT = sys.maxsize


class DecodeError(Exception):
    """Client sent a request body that cannot be turned into a render."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def asset_basename(filename: str) -> str:
    """
    Strip directory components from an uploaded filename.

    Both / and \\ are treated as separators so a client cannot escape the
    workspace with either convention.

    Raises:
        DecodeError: if nothing usable is left
    """
    name = PureWindowsPath(filename or "").name
    if name in ("", ".", ".."):
        raise DecodeError(f"invalid file name: {filename!r}")
    return name


def _write_asset(upload: UploadFile, path: Path) -> None:
    upload.file.seek(0)
    with open(path, "wb") as out:
        shutil.copyfileobj(upload.file, out)


async def _option_text(value: Union[str, UploadFile]) -> str:
    if isinstance(value, str):
        return value
    data = await value.read()
    # Same decoding Starlette applies to plain fields: UTF-8, else latin-1
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1")


async def _store_file(value: Union[str, UploadFile], workspace: Workspace) -> str:
    if not isinstance(value, UploadFile):
        raise DecodeError("file part without filename")
    # Keep the original name: javascript in the page may rely on it
    # through document.location.
    # Assets sharing a basename overwrite each other.
    path = workspace.path / asset_basename(value.filename)
    try:
        await run_in_threadpool(_write_asset, value, path)
    except OSError as e:
        raise DecodeError(f"cannot store {path.name}: {e}")
    return str(path)


async def decode_render_request(request: Request, workspace: Workspace) -> RenderRequest:
    """
    Parse the multipart body of request into a RenderRequest.

    Parts are handled in arrival order; options and files may be interleaved
    and their relative order is kept in the argument list.

    Args:
        request: Incoming HTTP request
        workspace: Workspace owned by this request, receives uploaded files

    Returns:
        RenderRequest with arguments and document-mode flag set

    Raises:
        DecodeError: malformed envelope, unreadable part, unknown part name,
            or asset that could not be stored
    """
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise DecodeError(f"request Content-Type isn't multipart/form-data: {content_type!r}")

    render_request = RenderRequest(workspace=workspace)

    try:
        async with request.form(
            max_files=FORM_LIMIT,
            max_fields=FORM_LIMIT,
            max_part_size=FORM_LIMIT,
        ) as form:
            for name, value in form.multi_items():
                if name == OPTION_PART:
                    arg = await _option_text(value)
                    render_request.args.append(arg)
                    if is_doc_option(arg):
                        render_request.doc_output = True
                elif name == FILE_PART:
                    render_request.args.append(await _store_file(value, workspace))
                else:
                    raise DecodeError(f"unexpected part name: {name}")
    except MultiPartException as e:
        raise DecodeError(f"malformed multipart body: {e.message}")
    except StarletteHTTPException as e:
        # request.form() reports parser failures as HTTP errors
        raise DecodeError(f"malformed multipart body: {e.detail}", e.status_code)
    except ClientDisconnect:
        raise DecodeError("client disconnected while uploading")
    except ValueError as e:
        raise DecodeError(f"malformed multipart body: {e}")

    return render_request

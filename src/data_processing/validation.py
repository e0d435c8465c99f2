# src/data_processing/validation.py

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from starlette.datastructures import UploadFile
from starlette.requests import Request

from ..config import ALLOWED_FILE_TYPES, MAX_FILE_SIZE, format_file_size
from ..errors import (
    FileTooLarge,
    MalformedRequest,
    MissingFile,
    MissingIdentifier,
    UnsupportedFileType,
)

SUPPORTED_FORMATS_LABEL = "PDF, CSV, DOC, DOCX, PNG, JPEG"
MULTIPART_REQUIRED = (
    "Request body must be sent as multipart/form-data. Please ensure you are "
    "sending the file using FormData with the correct Content-Type header."
)


@dataclass(frozen=True)
class UploadedDocument:
    """One uploaded file plus the wallet that sent it. Lives for a single request."""
    content: bytes
    content_type: str
    size: int
    file_name: str
    wallet_address: str


def validate_upload(
    file_name: Optional[str],
    content_type: Optional[str],
    content: Optional[bytes],
    wallet_address: Optional[str],
    allowed_types: Iterable[str] = ALLOWED_FILE_TYPES,
    max_size: int = MAX_FILE_SIZE,
    size: Optional[int] = None,
) -> UploadedDocument:
    """
    Checks an upload before anything is sent to Gemini.

    Order matters: presence of the file, then the wallet, then the type,
    then the size. Raises the matching ClientInputError on the first failure.
    `size` overrides `len(content)` when the body has not been read yet.
    """
    if content is None:
        raise MissingFile()
    if not wallet_address or not wallet_address.strip():
        raise MissingIdentifier()

    if content_type not in tuple(allowed_types):
        raise UnsupportedFileType(
            f"Supported formats: {SUPPORTED_FORMATS_LABEL}",
            label=f"Unsupported file type: {content_type}",
        )

    if size is None:
        size = len(content)
    if size > max_size:
        raise FileTooLarge(
            f"Maximum file size: {format_file_size(max_size)}. "
            f"Uploaded file: {size / 1024 / 1024:.2f}MB"
        )

    return UploadedDocument(
        content=content,
        content_type=content_type,
        size=size,
        file_name=file_name or "upload",
        wallet_address=wallet_address.strip(),
    )


async def read_upload_form(
    request: Request,
    allowed_types: Iterable[str] = ALLOWED_FILE_TYPES,
    max_size: int = MAX_FILE_SIZE,
) -> UploadedDocument:
    """Parses the multipart body of an /analyze request and validates it."""
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise MalformedRequest(MULTIPART_REQUIRED)
    try:
        form = await request.form()
    except Exception as e:
        logging.warning(f"Could not parse multipart body: {e}")
        raise MalformedRequest(MULTIPART_REQUIRED) from e

    upload = form.get("file")
    wallet_address = form.get("walletAddress")
    if not isinstance(wallet_address, str):
        wallet_address = None

    content = None
    file_name = None
    file_type = None
    if isinstance(upload, UploadFile):
        file_name = upload.filename
        file_type = upload.content_type
        if upload.size is not None:
            # Reject on the spooled size before pulling the body into memory
            validate_upload(file_name, file_type, b"", wallet_address, allowed_types, max_size, size=upload.size)
        content = await upload.read()

    return validate_upload(file_name, file_type, content, wallet_address, allowed_types, max_size)

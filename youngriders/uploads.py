from __future__ import annotations
import logging
import os

from fastapi import UploadFile

from .helpers import new_id

logger = logging.getLogger(__name__)


def _extension(upload: UploadFile) -> str:
    _, ext = os.path.splitext(upload.filename or "")
    if ext:
        return ext.lower()
    # fall back to the mime subtype, e.g. image/png -> .png
    subtype = (upload.content_type or "").split("/")[-1]
    return f".{subtype}" if subtype else ""


def is_image(upload: UploadFile) -> bool:
    return (upload.content_type or "").startswith("image/")


async def save_upload(upload: UploadFile, upload_dir: str, folder: str,
                      prefix: str = "") -> str:
    """Store an uploaded file and return its public `/uploads/...` path."""
    filename = f"{prefix}{new_id()}{_extension(upload)}"
    target_dir = os.path.join(upload_dir, folder)
    os.makedirs(target_dir, exist_ok=True)
    data = await upload.read()
    with open(os.path.join(target_dir, filename), "wb") as f:
        f.write(data)
    logger.info("stored upload %s/%s (%d bytes)", folder, filename, len(data))
    return f"/uploads/{folder}/{filename}"

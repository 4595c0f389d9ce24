"""
Upload storage — writes submitted files under ``settings.UPLOAD_DIR``.

Files are streamed to disk in chunks and rejected once they exceed
``settings.MAX_UPLOAD_BYTES``; a rejected upload leaves nothing behind.
Stored names are ``<epoch ms>-<random>.<ext>`` so concurrent uploads of
the same original filename never collide.

By the time a handler sees an ``UploadFile``, Starlette has already
parsed the multipart body and spooled the part to a temporary file, so
the cap bounds what gets stored, not what the server receives.  Limit
request bodies at the reverse proxy to bound the latter.
"""
import logging
import os
import random
import time
from pathlib import Path

from fastapi import UploadFile

from newsdesk.config import settings
from newsdesk.exceptions import UploadError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads/"
_CHUNK_SIZE = 64 * 1024


def generate_filename(original: str | None) -> str:
    ext = os.path.splitext(original or "")[1]
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


def has_file(upload: UploadFile | None) -> bool:
    """HTML forms submit an empty, nameless part when no file was picked."""
    return upload is not None and bool(upload.filename)


async def save_upload(upload: UploadFile) -> str:
    """
    Persist *upload* and return the public URL path it is served from.

    Raises ``UploadError`` (413) when the file is larger than the cap.
    """
    if upload.size is not None and upload.size > settings.MAX_UPLOAD_BYTES:
        await upload.close()
        raise UploadError("File too large", status_code=413)

    directory = Path(settings.UPLOAD_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    name = generate_filename(upload.filename)
    target = directory / name

    written = 0
    try:
        with open(target, "wb") as fh:
            while True:
                chunk = await upload.read(_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                # Also covers uploads that reported no size.
                if written > settings.MAX_UPLOAD_BYTES:
                    raise UploadError("File too large", status_code=413)
                fh.write(chunk)
    except BaseException:
        target.unlink(missing_ok=True)
        raise
    finally:
        await upload.close()

    logger.info("Stored upload %s (%d bytes)", name, written)
    return URL_PREFIX + name


async def save_optional_upload(upload: UploadFile | None) -> str | None:
    """Like ``save_upload`` but returns None when no file was attached."""
    if not has_file(upload):
        return None
    return await save_upload(upload)


def discard_upload(url: str | None) -> None:
    """Remove a file stored by ``save_upload``; unknown URLs are ignored."""
    if not url or not url.startswith(URL_PREFIX):
        return
    name = url[len(URL_PREFIX):]
    (Path(settings.UPLOAD_DIR) / os.path.basename(name)).unlink(missing_ok=True)
    logger.info("Discarded upload %s", name)

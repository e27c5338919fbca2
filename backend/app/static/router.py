"""Static front-end assets.

Any GET that no other router claims is looked up in the built front-end
bundle (``static.dist_dir``). ``/`` and directory paths fall back to their
``index.html``. This router must be included last.
"""
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.config import get_config
from app.errors import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["static"])

CONTENT_TYPES = {
    "html": "text/html; charset=utf-8",
    "css": "text/css",
    "js": "application/javascript",
    "json": "application/json",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "xml": "application/xml",
    "txt": "text/plain",
}


def get_content_type(filename: str) -> Optional[str]:
    _, dot, ext = filename.rpartition(".")
    if not dot:
        return None
    return CONTENT_TYPES.get(ext.lower())


def resolve_asset(dist_dir: Path, path: str) -> Optional[Path]:
    """Locate *path* inside *dist_dir*, or None.

    Paths that resolve outside the bundle are rejected.
    """
    root = dist_dir.resolve()
    relative = path.strip("/")
    candidates = [root / "index.html"] if not relative else [
        root / relative,
        root / relative / "index.html",
    ]
    for candidate in candidates:
        try:
            resolved = candidate.resolve()
            resolved.relative_to(root)
        except (OSError, ValueError):
            continue
        if resolved.is_file():
            return resolved
    return None


@router.get("/{path:path}", include_in_schema=False)
async def serve_static(path: str) -> FileResponse:
    """Serve a file from the front-end bundle or answer 404."""
    dist_dir = get_config().static.dist_dir
    asset = resolve_asset(Path(dist_dir), path) if dist_dir else None
    if asset is None:
        raise NotFoundError("Not found")
    return FileResponse(path=asset, media_type=get_content_type(asset.name))

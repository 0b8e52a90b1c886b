"""HTTP routes for uploading, organizing, and serving stored files."""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel

from filebay.classification import Category
from filebay.errors import ValidationError
from filebay.services import StorageServices

from .dependencies import avatar_rate_limit, get_services, require_auth

_TRUTHY = {"1", "true", "yes", "on"}

router = APIRouter()
files_router = APIRouter()


class DeleteRequest(BaseModel):
    """Body of ``DELETE /delete``; ``path`` or the legacy ``category`` + ``filename``."""

    path: Optional[str] = None
    category: Optional[str] = None
    filename: Optional[str] = None

    def target(self) -> str:
        if self.path:
            return self.path
        if not self.category or not self.filename:
            raise ValidationError("Provide 'path', or both 'category' and 'filename'.")
        try:
            category = Category.parse(self.category)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        return f"{category.value}/{self.filename}"


class DirectoryRequest(BaseModel):
    """Body of ``POST /directory``."""

    name: str
    parent: Optional[str] = None


def _require_file(file: Optional[UploadFile]) -> UploadFile:
    if file is None or not file.filename:
        raise ValidationError("No file was uploaded.")
    return file


@router.get("/health", tags=["System"])
def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/upload", dependencies=[Depends(require_auth)])
def upload_file(
    file: Optional[UploadFile] = File(default=None),
    category: Optional[str] = Form(default=None),
    namespace: Optional[str] = Form(default=None),
    services: StorageServices = Depends(get_services),
) -> dict[str, Any]:
    """Store an upload under an explicit category, a namespace, or its inferred category."""
    upload = _require_file(file)
    result = services.pipeline.upload(
        upload.file,
        upload.filename or "",
        upload.content_type,
        category=category or None,
        namespace=namespace or None,
        max_bytes=services.max_upload_bytes,
    )
    return result.to_json()


@router.post("/upload/avatar", dependencies=[Depends(avatar_rate_limit)])
def upload_avatar(
    file: Optional[UploadFile] = File(default=None),
    name: Optional[str] = Form(default=None),
    services: StorageServices = Depends(get_services),
) -> dict[str, Any]:
    """Store an image in the avatar namespace, optionally under a custom name."""
    upload = _require_file(file)
    result = services.pipeline.upload(
        upload.file,
        upload.filename or "",
        upload.content_type,
        namespace=services.config.avatars.namespace,
        custom_name=name or None,
        required_category=Category.IMAGES,
        max_bytes=services.max_avatar_bytes,
    )
    return result.to_json()


@router.delete("/delete", dependencies=[Depends(require_auth)])
def delete_entry(
    body: DeleteRequest,
    services: StorageServices = Depends(get_services),
) -> dict[str, Any]:
    """Delete a file or an empty directory."""
    path = body.target()
    entry = services.directories.delete_entry(path)
    kind = "Directory" if entry.is_directory else "File"
    return {"message": f"{kind} deleted successfully", "path": path, "entry": entry.to_json()}


@router.post("/directory", dependencies=[Depends(require_auth)])
def create_directory(
    body: DirectoryRequest,
    services: StorageServices = Depends(get_services),
) -> dict[str, Any]:
    """Create a namespace directory, optionally nested under ``parent``."""
    relative = services.directories.create_directory(body.parent, body.name)
    return {"message": "Directory created successfully", "path": relative}


@router.get("/files", dependencies=[Depends(require_auth)])
def list_files(
    directory: Optional[str] = Query(default=None, alias="dir"),
    services: StorageServices = Depends(get_services),
) -> List[dict[str, Any]]:
    """List a directory, or the storage root when ``dir`` is omitted."""
    return [entry.to_json() for entry in services.directories.list_entries(directory)]


@router.get("/file", dependencies=[Depends(require_auth)])
def file_info(
    directory: Optional[str] = Query(default=None, alias="dir"),
    name: Optional[str] = Query(default=None),
    services: StorageServices = Depends(get_services),
) -> dict[str, Any]:
    """Return metadata for one stored file."""
    stored = services.directories.file_info(directory or "", name or "")
    return stored.to_json()


@files_router.get("/{file_path:path}", include_in_schema=False)
def serve_file(
    file_path: str,
    download: Optional[str] = Query(default=None),
    services: StorageServices = Depends(get_services),
) -> FileResponse:
    """Serve stored bytes with negotiated type, disposition, and caching headers."""
    path = services.directories.resolve_file(file_path)
    requested = download is not None and download.strip().lower() in _TRUTHY
    negotiated = services.negotiator.headers(path.suffix, requested, filename=path.name)
    return FileResponse(
        path,
        media_type=negotiated.content_type,
        headers={
            "Content-Disposition": negotiated.disposition,
            "Cache-Control": negotiated.cache_control,
        },
    )


__all__ = ["DeleteRequest", "DirectoryRequest", "files_router", "router"]

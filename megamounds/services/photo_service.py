"""Task photo uploads.

The blob goes to the file storage gateway first; the TaskPhoto row is only
added once the upload succeeded.
"""
import logging
import uuid

from megamounds.core.exceptions import StoreError, ValidationError
from megamounds.integrations.file_storage import LocalFileStorage, StorageError
from megamounds.models import db
from megamounds.models.task import TaskPhoto
from megamounds.services.permission import check_permission

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "heic"}


def list_photos(task):
    return task.photos.order_by(TaskPhoto.created_at.desc(), TaskPhoto.id.desc()).all()


def upload_photo(task, filename, data, role, uploaded_by=None, storage=None):
    """Store a photo for ``task`` and record it.

    Returns:
        TaskPhoto instance (already flushed).
    """
    check_permission(role, "task_photo_upload")

    ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else ""
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"Unsupported image type '{ext}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
            details={"file": "invalid"},
        )
    if not data:
        raise ValidationError("Photo file is empty", details={"file": "required"})

    storage = storage or LocalFileStorage.from_app()
    key = storage.build_key("tasks", task.id, f"{uuid.uuid4().hex}.{ext}")
    try:
        storage.upload(key, data)
    except StorageError as e:
        raise StoreError("upload", "TaskPhoto", task.id, detail=str(e)) from e

    photo = TaskPhoto(
        task_id=task.id,
        url=storage.public_url_for(key),
        filename=filename,
        storage_key=key,
        uploaded_by=uploaded_by,
    )
    db.session.add(photo)
    db.session.flush()
    logger.info("Photo %s uploaded for task %s", photo.id, task.id)
    return photo

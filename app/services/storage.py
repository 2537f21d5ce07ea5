"""Attachment files on local disk, plus cascading cleanup for tasks/projects.

Rows are deleted in the caller's transaction; files go only after it commits.
"""
import logging
import os
import uuid
from pathlib import Path

from fastapi import HTTPException, UploadFile
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.attachment import Attachment
from app.models.comment import Comment
from app.models.project import Project
from app.models.task import Task

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

def upload_root() -> Path:
    root = Path(settings.upload_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root

def save_upload(task_id: uuid.UUID, upload: UploadFile) -> tuple[str, str, int]:
    """Stream an upload to disk. Returns (stored file name, path, size)."""
    original = os.path.basename(upload.filename or "file")
    suffix = Path(original).suffix[:16]
    file_name = f"{uuid.uuid4().hex}{suffix}"

    folder = upload_root() / str(task_id)
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / file_name

    size = 0
    with path.open("wb") as out:
        while chunk := upload.file.read(CHUNK_SIZE):
            size += len(chunk)
            if size > settings.max_upload_bytes:
                out.close()
                path.unlink(missing_ok=True)
                raise HTTPException(status_code=413, detail="file too large")
            out.write(chunk)

    return file_name, str(path), size

def remove_file(file_path: str) -> None:
    try:
        Path(file_path).unlink(missing_ok=True)
    except OSError as e:
        # the row is gone either way; a leftover file is only wasted space
        logger.warning(f"Could not remove attachment file {file_path}: {e}")

def delete_task_tree(db: Session, task: Task) -> list[str]:
    """Stage deletion of a task and its comments/attachments.

    Returns the attachment file paths; remove them with ``remove_files`` only
    once the caller's commit has gone through.
    """
    paths = []
    for a in db.scalars(select(Attachment).where(Attachment.task_id == task.id)).all():
        paths.append(a.file_path)
        db.delete(a)
    db.execute(delete(Comment).where(Comment.task_id == task.id))
    db.delete(task)
    return paths

def delete_project_tree(db: Session, project: Project) -> list[str]:
    paths = []
    for t in db.scalars(select(Task).where(Task.project_id == project.id)).all():
        paths.extend(delete_task_tree(db, t))
    db.delete(project)
    return paths

def remove_files(paths: list[str]) -> None:
    for path in paths:
        remove_file(path)

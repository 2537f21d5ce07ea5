import logging
from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.attachment import Attachment
from app.rbac.deps import AttachmentContext, TaskContext, require_attachment, require_task
from app.rbac.perms import TaskOperation
from app.schemas.attachments import AttachmentOut
from app.services.storage import remove_file, save_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["attachments"])

@router.post("/tasks/{task_id}/attachments", response_model=AttachmentOut)
def upload_attachment(
    file: UploadFile = File(...),
    ctx: TaskContext = Depends(require_task(TaskOperation.attach)),
    db: Session = Depends(get_db),
) -> AttachmentOut:
    file_name, file_path, size = save_upload(ctx.task.id, file)

    a = Attachment(
        task_id=ctx.task.id,
        user_id=ctx.user.id,
        file_name=file_name,
        original_name=Path(file.filename or file_name).name,
        file_path=file_path,
        file_size=size,
        mime_type=file.content_type or "application/octet-stream",
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    logger.info(f"User {ctx.user.id} attached {a.id} ({size} bytes) to task {ctx.task.id}")
    return AttachmentOut.model_validate(a)

@router.get("/tasks/{task_id}/attachments", response_model=list[AttachmentOut])
def list_attachments(
    ctx: TaskContext = Depends(require_task(TaskOperation.read)),
    db: Session = Depends(get_db),
) -> list[AttachmentOut]:
    q = select(Attachment).where(Attachment.task_id == ctx.task.id).order_by(Attachment.created_at)
    return [AttachmentOut.model_validate(a) for a in db.scalars(q).all()]

@router.get("/attachments/{attachment_id}/download")
def download_attachment(ctx: AttachmentContext = Depends(require_attachment(TaskOperation.read))):
    a = ctx.attachment
    if not Path(a.file_path).is_file():
        raise HTTPException(status_code=404, detail="file missing")
    return FileResponse(a.file_path, media_type=a.mime_type, filename=a.original_name)

@router.delete("/attachments/{attachment_id}")
def delete_attachment(
    ctx: AttachmentContext = Depends(require_attachment(TaskOperation.delete_attachment)),
    db: Session = Depends(get_db),
) -> dict:
    file_path = ctx.attachment.file_path
    db.delete(ctx.attachment)
    db.commit()
    remove_file(file_path)
    return {"deleted": True}

# routers/documents.py

from fastapi import (
    APIRouter, UploadFile, File, Form,
    Depends, HTTPException, Query,
)
from typing import List, Optional
from uuid import uuid4
import re

from botocore.exceptions import BotoCoreError, ClientError

from dependencies.auth import get_current_user, CurrentUser
from core.audit import log_audit
from core.logging_config import logger
from core.roles import can_manage_users, is_operations_director
from core.s3_client import PRESIGNED_URL_EXPIRY_SECONDS, document_key, get_s3, presigned_download_url, put_document
from core.supabase_client import get_supabase_client
from core.utils import sanitize, utcnow_iso
from models.document import DocumentRead, DocumentStatus
from models.enums import DocumentEntityType
from services.documents import (
    can_upload_documents,
    count_documents,
    document_status,
    ensure_can_view_entity,
    ensure_upload_slot,
    fetch_entity,
)

router = APIRouter(
    prefix="/documents",
    tags=["Documents"],
)

MAX_UPLOAD_BYTES = 25 * 1024 * 1024


# -----------------------------------------------------
# Filename sanitizer
# -----------------------------------------------------
def safe_filename(filename: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "_", filename)


def discard_upload(s3, bucket: str, key: str):
    """Remove an object whose database row could not be written."""
    try:
        s3.delete_object(Bucket=bucket, Key=key)
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"Failed to remove orphaned upload {key}: {e}")


def fetch_document(client, document_id: str) -> dict:
    result = client.table("documents").select("*").eq("id", document_id).limit(1).execute()
    if not result.data:
        raise HTTPException(404, "Document not found")
    return result.data[0]


# -----------------------------------------------------
# GET /documents
# -----------------------------------------------------
@router.get("/", response_model=List[DocumentRead])
def list_documents(
    entity_type: DocumentEntityType = Query(...),
    entity_id: str = Query(...),
    current_user: CurrentUser = Depends(get_current_user),
):
    client = get_supabase_client()
    ensure_can_view_entity(client, current_user, str(entity_type), entity_id)

    try:
        result = (
            client.table("documents")
            .select("*")
            .eq("entity_type", str(entity_type))
            .eq("entity_id", entity_id)
            .order("uploaded_at", desc=True)
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list documents: {e}")
        raise HTTPException(500, f"Failed to list documents: {str(e)}")


# -----------------------------------------------------
# GET /documents/status
# -----------------------------------------------------
@router.get("/status", response_model=DocumentStatus)
def get_document_status(
    entity_type: DocumentEntityType = Query(...),
    entity_id: str = Query(...),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Required vs uploaded documents and how many upload slots remain."""
    client = get_supabase_client()
    entity = fetch_entity(client, str(entity_type), entity_id)
    uploaded = count_documents(client, str(entity_type), entity_id)

    return DocumentStatus(
        entity_type=str(entity_type),
        entity_id=entity_id,
        **document_status(entity.get("documents_required") or 0, uploaded),
    )


# -----------------------------------------------------
# POST /documents/upload
# -----------------------------------------------------
@router.post("/upload", response_model=DocumentRead)
async def upload_document(
    file: UploadFile = File(...),
    entity_type: DocumentEntityType = Form(...),
    entity_id: str = Form(...),
    category: Optional[str] = Form("general"),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Upload a file for a work order or task.

    **Rules:**
    - Only service company staff may upload
    - The entity must require documents, and uploads stop once
      `documents_required` files are attached
    """
    if not can_upload_documents(current_user.roles):
        raise HTTPException(403, "Only service company users can upload documents")

    client = get_supabase_client()
    entity = fetch_entity(client, str(entity_type), entity_id)
    uploaded = count_documents(client, str(entity_type), entity_id)
    ensure_upload_slot(int(entity.get("documents_required") or 0), uploaded)

    content = await file.read()
    if not content:
        raise HTTPException(400, "Uploaded file is empty")
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(413, "File exceeds the 25 MB upload limit")

    original_filename = file.filename or "document"
    stored_filename = f"{uuid4().hex[:12]}_{safe_filename(original_filename)}"
    s3_key = document_key(str(entity_type), entity_id, stored_filename)

    try:
        s3, bucket, _ = get_s3()
        put_document(s3, bucket, s3_key, content, file.content_type)
    except RuntimeError as e:
        raise HTTPException(500, str(e))
    except (BotoCoreError, ClientError) as e:
        logger.error(f"S3 upload failed for {s3_key}: {e}")
        raise HTTPException(500, f"S3 upload error: {e}")

    record = sanitize({
        "entity_type": str(entity_type),
        "entity_id": entity_id,
        "filename": stored_filename,
        "original_filename": original_filename,
        "category": category,
        "content_type": file.content_type,
        "size_bytes": len(content),
        "s3_key": s3_key,
        "uploaded_by_id": current_user.id,
        "uploaded_at": utcnow_iso(),
    })

    try:
        result = client.table("documents").insert(record, returning="representation").execute()
    except Exception as e:
        logger.error(f"Failed to record document {s3_key}: {e}")
        discard_upload(s3, bucket, s3_key)
        raise HTTPException(500, f"Failed to save document: {str(e)}")

    if not result.data:
        discard_upload(s3, bucket, s3_key)
        raise HTTPException(500, "Insert returned no data")

    document = result.data[0]
    log_audit(str(entity_type), entity_id, "document_uploaded", current_user.id, new_state={"document_id": document["id"]})
    logger.info(f"Document {document['id']} uploaded to {s3_key} ({uploaded + 1}/{entity.get('documents_required')})")
    return document


# -----------------------------------------------------
# GET /documents/{id}/download
# -----------------------------------------------------
@router.get("/{document_id}/download")
def download_document(document_id: str, current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()
    document = fetch_document(client, document_id)
    ensure_can_view_entity(client, current_user, document["entity_type"], document["entity_id"])

    try:
        s3, bucket, _ = get_s3()
        url = presigned_download_url(s3, bucket, document["s3_key"])
    except RuntimeError as e:
        raise HTTPException(500, str(e))
    except (BotoCoreError, ClientError) as e:
        raise HTTPException(500, f"Failed to generate download URL: {e}")

    return {"document_id": document_id, "download_url": url, "expires_in": PRESIGNED_URL_EXPIRY_SECONDS}


# -----------------------------------------------------
# DELETE /documents/{id}
# -----------------------------------------------------
@router.delete("/{document_id}")
def delete_document(document_id: str, current_user: CurrentUser = Depends(get_current_user)):
    """Uploader, team managers, or operations directors."""
    client = get_supabase_client()
    document = fetch_document(client, document_id)

    is_owner = document.get("uploaded_by_id") == current_user.id
    if not (is_owner or can_manage_users(current_user.roles) or is_operations_director(current_user.roles)):
        raise HTTPException(403, "Not authorized to delete this document")

    try:
        s3, bucket, _ = get_s3()
        s3.delete_object(Bucket=bucket, Key=document["s3_key"])
    except RuntimeError as e:
        raise HTTPException(500, str(e))
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"S3 delete failed for {document.get('s3_key')}: {e}")

    try:
        client.table("documents").delete().eq("id", document_id).execute()
    except Exception as e:
        logger.error(f"Failed to delete document {document_id}: {e}")
        raise HTTPException(500, f"Failed to delete document: {str(e)}")

    log_audit(document["entity_type"], document["entity_id"], "document_deleted", current_user.id, previous_state=document)
    return {"success": True, "deleted_id": document_id}

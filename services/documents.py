# services/documents.py

from fastapi import HTTPException

from core.roles import RolesInput, SERVICE_COMPANY_ROLES, has_any_role, is_operations_director
from services.work_orders import ensure_can_view, fetch_work_order

# Table holding `documents_required` for each entity type
ENTITY_TABLES = {
    "work_order": "work_orders",
    "task": "work_order_tasks",
}


def document_status(documents_required: int, uploaded: int) -> dict:
    required = max(0, int(documents_required or 0))
    return {
        "documents_required": required,
        "uploaded": uploaded,
        "remaining": max(0, required - uploaded),
        "is_complete": uploaded >= required,
    }


def can_upload_documents(roles: RolesInput) -> bool:
    """Service company staff upload; client roles only read."""
    return is_operations_director(roles) or has_any_role(roles, SERVICE_COMPANY_ROLES)


def ensure_upload_slot(documents_required: int, uploaded: int):
    """Raise 400 when no more documents may be attached to the entity."""
    if not documents_required:
        raise HTTPException(400, "No documents required for this item")
    if uploaded >= documents_required:
        raise HTTPException(
            400,
            f"All required documents have already been uploaded ({uploaded}/{documents_required})",
        )


def count_documents(client, entity_type: str, entity_id: str) -> int:
    result = (
        client.table("documents")
        .select("id", count="exact")
        .eq("entity_type", entity_type)
        .eq("entity_id", entity_id)
        .execute()
    )
    if result.count is not None:
        return result.count
    return len(result.data or [])


def fetch_entity(client, entity_type: str, entity_id: str) -> dict:
    table = ENTITY_TABLES.get(entity_type)
    if not table:
        raise HTTPException(400, f"Unsupported entity type: {entity_type}")

    result = client.table(table).select("*").eq("id", entity_id).limit(1).execute()
    if not result.data:
        raise HTTPException(404, f"{entity_type.replace('_', ' ').capitalize()} not found")
    return result.data[0]


def ensure_can_view_entity(client, user, entity_type: str, entity_id: str):
    """403 unless the user can see the work order the entity belongs to."""
    if entity_type == "task":
        entity_id = fetch_entity(client, "task", entity_id).get("work_order_id")
    elif entity_type != "work_order":
        raise HTTPException(400, f"Unsupported entity type: {entity_type}")
    ensure_can_view(user, fetch_work_order(client, entity_id))

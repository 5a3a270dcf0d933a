from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..errors import Conflict, NotFound, ValidationError
from ..repositories import Repository, get_repository
from ..schemas import (
    DeleteFamilyMemberResult,
    FamilyMemberCreate,
    FamilyMemberEnvelope,
    FamilyMemberListEnvelope,
    FamilyMemberOut,
    FamilyMemberUpdateById,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/family-members",
    tags=["family-members"],
)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=FamilyMemberListEnvelope,
    summary="List Family Members",
    description="List all family members in creation order.",
)
def list_family_members(repo: Repository = Depends(get_repository)) -> FamilyMemberListEnvelope:
    return FamilyMemberListEnvelope(family_members=[FamilyMemberOut(**m) for m in repo.list_members()])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=FamilyMemberEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Family Member",
    responses={
        400: {"description": "Missing or invalid fields"},
        409: {"description": "A member with this id already exists"},
    },
)
def create_family_member(
    payload: FamilyMemberCreate, repo: Repository = Depends(get_repository)
) -> FamilyMemberEnvelope:
    """
    Create a family member with a caller-chosen id. Existing members are never overwritten.
    """
    created = repo.create_member(payload)
    logger.info("Created family member %s (%s)", created["id"], created["name"])
    return FamilyMemberEnvelope(family_member=FamilyMemberOut(**created))


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=FamilyMemberEnvelope,
    summary="Update Family Member",
    description=(
        "Coalesce-merge name and/or color into the member named by the body's id. "
        "Todos keep the name and color they were created with."
    ),
    responses={
        400: {"description": "Missing id or no fields to update"},
        404: {"description": "Family member not found"},
    },
)
def update_family_member(
    payload: FamilyMemberUpdateById, repo: Repository = Depends(get_repository)
) -> FamilyMemberEnvelope:
    if not payload.changes():
        raise ValidationError("No fields to update")
    updated = repo.update_member(payload.id, payload)
    if updated is None:
        raise NotFound(f"Family member with id {payload.id} not found")
    return FamilyMemberEnvelope(family_member=FamilyMemberOut(**updated))


# PUBLIC_INTERFACE
@router.delete(
    "",
    response_model=DeleteFamilyMemberResult,
    summary="Delete Family Member",
    responses={
        400: {"description": "Missing id"},
        404: {"description": "Family member not found"},
        409: {"description": "Member is still assigned to existing todos"},
    },
)
def delete_family_member(
    member_id: Optional[str] = Query(None, alias="id", description="Id of the member to delete"),
    repo: Repository = Depends(get_repository),
) -> DeleteFamilyMemberResult:
    """
    Delete a family member unless a todo still carries their name as assignee.

    The reference check and the delete run as two separate statements; a todo
    created for this member in between is not detected.
    """
    if not member_id:
        raise ValidationError("Family member id is required")

    member = repo.get_member(member_id)
    if member is None:
        raise NotFound(f"Family member with id {member_id} not found")

    in_use = repo.count_todos_assigned_to(member["name"])
    if in_use:
        raise Conflict(
            f"Family member {member['name']} is assigned to existing todos",
            details=f"{in_use} todo(s) reference this member",
        )

    removed = repo.delete_member(member_id)
    if removed is None:
        # Deleted concurrently between the lookup and the delete
        raise NotFound(f"Family member with id {member_id} not found")
    logger.info("Deleted family member %s (%s)", removed["id"], removed["name"])
    return DeleteFamilyMemberResult(
        message=f"Family member {removed['name']} deleted",
        deleted_member=FamilyMemberOut(**removed),
    )

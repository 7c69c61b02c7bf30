"""CRM admin routes for managing clients and contact-form inquiries."""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session, selectinload

from scalerebel.auth.database import get_db, AdminSession
from scalerebel.auth.dependencies import require_admin_session
from scalerebel.crm.database import Client, Inquiry
from scalerebel.crm.schemas import (
    ClientCreate,
    ClientUpdate,
    ClientDeleteRequest,
    ClientResponse,
    ClientDetailResponse,
    ClientListResponse,
    ClientEnvelope,
    InquiryListResponse,
    InquiryResponse,
    InquiryLinkRequest,
    SuccessResponse,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])

# Fields where an explicit null would violate the schema; nulls are ignored on update
NON_NULLABLE_UPDATE_FIELDS = {"name", "status"}


def get_client_or_404(db: Session, client_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()
    if not client:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client not found"
        )
    return client


@router.get("/clients", response_model=Union[ClientEnvelope, ClientListResponse])
def list_clients(
    id: Optional[int] = Query(None, description="Return a single client with its inquiries"),
    admin_session: AdminSession = Depends(require_admin_session),
    db: Session = Depends(get_db)
):
    """List clients, newest first, or fetch one client by ``?id=``."""
    if id is not None:
        client = db.query(Client).options(
            selectinload(Client.inquiries)
        ).filter(Client.id == id).first()
        if not client:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Client not found"
            )
        return ClientEnvelope(client=ClientDetailResponse.model_validate(client))

    clients = db.query(Client).order_by(Client.created_at.desc(), Client.id.desc()).all()
    return ClientListResponse(clients=[ClientResponse.model_validate(c) for c in clients])


@router.post("/clients", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def create_client(
    client_data: ClientCreate,
    admin_session: AdminSession = Depends(require_admin_session),
    db: Session = Depends(get_db)
):
    """Create a client."""
    values = client_data.model_dump()
    values["status"] = client_data.status.value

    client = Client(**values)
    db.add(client)
    db.commit()
    db.refresh(client)

    logging.info(f"Client {client.id} created")
    return client


@router.put("/clients", response_model=ClientResponse)
def update_client(
    client_data: ClientUpdate,
    admin_session: AdminSession = Depends(require_admin_session),
    db: Session = Depends(get_db)
):
    """
    Update a client.

    Only fields present in the request body are changed; an explicit null
    clears an optional field.
    """
    client = get_client_or_404(db, client_data.id)

    changes = client_data.model_dump(exclude_unset=True, exclude={"id"})
    for field, value in changes.items():
        if value is None and field in NON_NULLABLE_UPDATE_FIELDS:
            continue
        if field == "status":
            value = value.value
        setattr(client, field, value)

    db.commit()
    db.refresh(client)

    logging.info(f"Client {client.id} updated")
    return client


@router.delete("/clients", response_model=SuccessResponse)
def delete_client(
    payload: ClientDeleteRequest,
    admin_session: AdminSession = Depends(require_admin_session),
    db: Session = Depends(get_db)
):
    """Delete a client. Linked inquiries are kept and unlinked."""
    client = get_client_or_404(db, payload.id)

    db.query(Inquiry).filter(
        Inquiry.client_id == client.id
    ).update({Inquiry.client_id: None}, synchronize_session=False)
    db.delete(client)
    db.commit()

    logging.info(f"Client {payload.id} deleted")
    return SuccessResponse(success=True)


@router.get("/inquiries", response_model=InquiryListResponse)
def list_inquiries(
    admin_session: AdminSession = Depends(require_admin_session),
    db: Session = Depends(get_db)
):
    """List all inquiries, newest first."""
    inquiries = db.query(Inquiry).order_by(Inquiry.created_at.desc(), Inquiry.id.desc()).all()
    return InquiryListResponse(inquiries=[InquiryResponse.model_validate(i) for i in inquiries])


@router.post("/inquiries/link", response_model=SuccessResponse)
def link_inquiry(
    payload: InquiryLinkRequest,
    admin_session: AdminSession = Depends(require_admin_session),
    db: Session = Depends(get_db)
):
    """Attach an inquiry to a client, or detach it when client_id is null."""
    inquiry = db.query(Inquiry).filter(Inquiry.id == payload.inquiry_id).first()
    if not inquiry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Inquiry not found"
        )

    if payload.client_id is not None:
        get_client_or_404(db, payload.client_id)

    inquiry.client_id = payload.client_id
    db.commit()

    logging.info(f"Inquiry {inquiry.id} linked to client {payload.client_id}")
    return SuccessResponse(success=True)

# routers/contracts.py
"""
Contract API routes.

Contracts are created as draft or signed and become active through
POST /{id}/activate, which also generates their monthly invoices.
Service errors are turned into HTTP responses by the handler in main.py.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_tenant_id, require_manager
from models import Contract, ContractStatus
from schemas.contract import (
     ContractActivationResponse,
     ContractCreate,
     ContractListResponse,
     ContractResponse,
     ContractUpdate,
)
from services import storage
from services.contract_service import ContractService

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


def _build_contract_response(contract: Contract) -> ContractResponse:
     return ContractResponse.model_validate(contract)


@router.get(
     "",
     response_model=ContractListResponse,
     summary="List contracts"
)
def list_contracts(
     status: Optional[ContractStatus] = Query(None, description="Filter by status"),
     property_id: Optional[int] = Query(None, description="Filter by property"),
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     if property_id is not None:
          contracts = storage.list_contracts_by_property(db, property_id, tenant_id)
          if status is not None:
               contracts = [c for c in contracts if c.status == status]
     else:
          contracts = storage.list_contracts(db, tenant_id, status=status)
     return ContractListResponse(
          contracts=[_build_contract_response(c) for c in contracts],
          total=len(contracts),
     )


@router.post(
     "",
     response_model=ContractResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a new contract"
)
def create_contract(
     contract_data: ContractCreate,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Create a contract in draft or signed status.

     - **number**: unique within the organization
     - **payment_day**: 1-30; clamped to the month's last day when billing
     - **late_fee_type** / **late_fee_value**: none, fixed amount or percent of rent
     """
     contract = ContractService.create_contract(db, tenant_id, contract_data.model_dump())
     db.commit()
     db.refresh(contract)
     return _build_contract_response(contract)


@router.get(
     "/{contract_id}",
     response_model=ContractResponse,
     summary="Get contract by ID"
)
def get_contract(
     contract_id: int,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     return _build_contract_response(storage.get_contract(db, contract_id, tenant_id))


@router.patch(
     "/{contract_id}",
     response_model=ContractResponse,
     summary="Update contract"
)
def update_contract(
     contract_id: int,
     contract_data: ContractUpdate,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Update an existing contract. Only provided fields are changed.

     Dates, rent and payment day cannot change once invoices exist.
     """
     contract = ContractService.update_contract(
          db, tenant_id, contract_id, contract_data.model_dump(exclude_unset=True)
     )
     db.commit()
     db.refresh(contract)
     return _build_contract_response(contract)


@router.post(
     "/{contract_id}/activate",
     response_model=ContractActivationResponse,
     summary="Activate contract and generate its invoices"
)
def activate_contract(
     contract_id: int,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Activate a contract. The first activation creates one invoice per
     month of the contract; later calls create nothing.
     """
     contract, invoices, created = ContractService.activate_contract(db, tenant_id, contract_id)
     db.commit()
     db.refresh(contract)
     return ContractActivationResponse(
          contract=_build_contract_response(contract),
          invoices_created=created,
          invoice_ids=[inv.id for inv in invoices],
     )


@router.delete(
     "/{contract_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete contract"
)
def delete_contract(
     contract_id: int,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id),
     token: dict = Depends(require_manager)
):
     """
     Delete a contract with its invoices. Refused when any invoice has payments.
     """
     ContractService.delete_contract(db, tenant_id, contract_id)
     db.commit()

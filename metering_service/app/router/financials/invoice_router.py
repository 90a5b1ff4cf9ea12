from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.database import get_billing_db as get_db
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode

from ...crud.financials import invoices_crud as crud
from ...schemas.energy_iot.meter_readings_schemas import ReadingInvoiceOut
from ...schemas.financials.invoices_schemas import (
    InvoicesOverview, InvoicesRequest, InvoicesResponse, MonthlySummaryOut
)

router = APIRouter(
    prefix="/api/invoices",
    tags=["Invoices"],
)


@router.get("/all", response_model=InvoicesResponse)
def get_invoices(
        params: InvoicesRequest = Depends(),
        db: Session = Depends(get_db)):
    return crud.get_invoices(db, params)


@router.get("/overview", response_model=InvoicesOverview)
def overview(db: Session = Depends(get_db)):
    return crud.get_invoices_overview(db)


@router.get("/monthly", response_model=List[MonthlySummaryOut])
def monthly_summary(db: Session = Depends(get_db)):
    return crud.get_monthly_summary(db)


@router.get("/{invoice_id}", response_model=ReadingInvoiceOut)
def get_invoice(invoice_id: UUID, db: Session = Depends(get_db)):
    return crud.get_invoice_detail(db, invoice_id)


@router.put("/{invoice_id}/toggle-paid", response_model=None)
def toggle_paid(invoice_id: UUID, db: Session = Depends(get_db)):
    invoice = crud.toggle_paid(db, invoice_id)
    return success_response(
        data=invoice,
        message="Invoice marked paid" if invoice.paid_status else "Invoice marked unpaid",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL,
    )

from fastapi import APIRouter, HTTPException

from booking_console.api.v1.schemas import InvoiceAmountRequestSchema, InvoiceAmountResponseSchema
from booking_console.application.exceptions import SelectionValidationError
from booking_console.application.utils.invoice_amounts import validate_invoice_amount

router = APIRouter()


@router.post("/invoices/validate-amount", response_model=InvoiceAmountResponseSchema)
def validate_amount(req: InvoiceAmountRequestSchema):
    try:
        maximum = validate_invoice_amount(
            amount=req.amount,
            base_remaining=req.base_remaining,
            uninvoiced_additional_costs=req.uninvoiced_additional_costs,
            include_additional_costs=req.include_additional_costs,
        )
    except SelectionValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return InvoiceAmountResponseSchema(valid=True, max_allowed_amount=maximum)

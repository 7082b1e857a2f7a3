# phicoffee/routers/orders.py
from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Response,
    UploadFile,
    status,
)

from phicoffee.core.exceptions import OrderValidationError
from phicoffee.database import get_order_service
from phicoffee.schemas.order import (
    InvoiceRead,
    OrderCreate,
    OrderDraftRead,
    SubmissionResult,
)
from phicoffee.services.order_service import OrderService, PaymentProof

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post(
    "/draft",
    response_model=OrderDraftRead,
)
def create_draft(
    payload: OrderCreate,
    service: OrderService = Depends(get_order_service),
):
    """
    Price and number an order from the form (nothing is stored yet).

    The returned id must be sent back with the payment proof.
    """
    try:
        return service.create_draft(payload)
    except OrderValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        )


@router.post(
    "",
    response_model=SubmissionResult,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an order with its payment proof",
)
def submit_order(
    response: Response,
    order: str = Form(..., description="OrderSubmit JSON (draft id included)"),
    payment_proof: UploadFile | None = File(None),
    service: OrderService = Depends(get_order_service),
):
    """
    Upload the payment proof, store the order and notify the vendor.

    Always answers with a SubmissionResult:
      - 201 on success
      - 400 when the order or proof is invalid (nothing was stored)
      - 502 when an upstream service failed
    """
    proof = None
    if payment_proof is not None:
        proof = PaymentProof(payment_proof.content_type, payment_proof.file.read())

    result = service.submit_order(order, proof)
    if not result.success:
        response.status_code = (
            status.HTTP_400_BAD_REQUEST
            if result.failed_step == "validate"
            else status.HTTP_502_BAD_GATEWAY
        )
    return result


@router.get(
    "/{order_id}/invoice",
    response_model=InvoiceRead,
)
def get_invoice(
    order_id: str,
    service: OrderService = Depends(get_order_service),
):
    """
    Invoice for a stored order.

    - 404 if no row carries this order id.
    """
    invoice = service.get_invoice(order_id)
    if invoice is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )
    return invoice

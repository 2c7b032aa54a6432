"""Customer admission endpoint."""

from fastapi import APIRouter, Depends

from apps.api.deps import get_admission_controller
from domain.models import CustomerCreate, CustomerRecord
from services.admission import AdmissionController


router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("", response_model=CustomerRecord, status_code=201)
def create_customer(
    payload: CustomerCreate,
    controller: AdmissionController = Depends(get_admission_controller),
):
    """
    Admit a new customer identity into a tenant.

    Errors: BAD_REQUEST, FORBIDDEN, INVALID_PHONE, DUPLICATE_CUSTOMER,
    PLAN_LIMIT_REACHED, INTERNAL_ERROR.
    """
    customer = controller.admit(
        tenant_id=payload.tenant_id,
        name=payload.name,
        phone=payload.phone,
        email=payload.email,
    )
    return CustomerRecord.model_validate(customer)

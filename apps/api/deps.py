"""FastAPI dependencies shared by the routers."""

from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from core.auth import JWTAuthProvider, Principal
from core.utils_datetime import get_current_datetime
from db.session import get_db
from services.access import TenantScope, TrustedScope
from services.admission import AdmissionController
from services.availability import AvailabilityService
from services.booking_service import BookingService


bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_provider() -> JWTAuthProvider:
    """Authentication provider verifying bearer credentials."""
    return JWTAuthProvider()


def get_clock() -> Callable:
    """Source of the current time."""
    return get_current_datetime


def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> Principal:
    """Resolve the caller from the Authorization header."""
    token = credentials.credentials if credentials else None
    return auth_provider.authenticate(token)


def get_availability_service(
    db: Session = Depends(get_db),
    clock: Callable = Depends(get_clock),
) -> AvailabilityService:
    return AvailabilityService(db, clock=clock)


def get_booking_service(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
    clock: Callable = Depends(get_clock),
) -> BookingService:
    return BookingService(db, principal, clock=clock)


def get_admission_controller(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> AdmissionController:
    return AdmissionController(TenantScope(db, principal), TrustedScope(db))

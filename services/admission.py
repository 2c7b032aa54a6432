"""
Admission Controller: gate for new customer identities inside a tenant.

Checks run in a fixed order and fail fast:

1. required fields
2. tenant authorization (ownership, then membership)
3. phone normalization and minimum length
4. duplicate phone, read with the caller's visibility
5. plan quota, read with the trusted scope
6. creation
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.errors import (
    BadRequestError,
    DuplicateCustomerError,
    ForbiddenError,
    InternalError,
    InvalidPhoneError,
    PlanLimitReachedError,
)
from db.models_sqlalchemy import Customer
from domain.enums import ErrorCode
from services.access import TenantScope, TrustedScope
from services.phone import is_dialable, normalize_phone
from services.quota import PlanQuotaStore


logger = logging.getLogger(__name__)


class AdmissionController:
    """Creates customer identities under tenant and plan constraints."""

    def __init__(
        self,
        tenant_scope: TenantScope,
        trusted_scope: TrustedScope,
        quota_store: Optional[PlanQuotaStore] = None,
        default_country_code: Optional[str] = None,
    ):
        """
        Initialize the controller.

        Args:
            tenant_scope: Caller-visibility scope, used for authorization,
                duplicate detection and the write
            trusted_scope: System scope, used only for the quota count
            quota_store: Plan store (built on `trusted_scope` when omitted)
            default_country_code: Overrides the configured country code
        """
        self.tenant_scope = tenant_scope
        self.trusted_scope = trusted_scope
        self.quota_store = quota_store or PlanQuotaStore(trusted_scope)
        self.default_country_code = default_country_code

    def authorize(self, tenant_id: str) -> None:
        """Raise ForbiddenError unless the principal owns or belongs to the tenant."""
        if not self.tenant_scope.has_access(tenant_id):
            logger.warning(
                f"Principal {self.tenant_scope.principal.user_id} has no access",
                extra={"tenant_id": tenant_id, "error_code": ErrorCode.FORBIDDEN.value},
            )
            raise ForbiddenError("No access to this tenant")

    def normalize(self, phone: str) -> str:
        """Normalize a phone and apply the minimum-length gate."""
        normalized = normalize_phone(phone, self.default_country_code)
        if not is_dialable(normalized):
            raise InvalidPhoneError("Invalid phone number", details={"normalized": normalized})
        return normalized

    def admit(
        self,
        tenant_id: Optional[str],
        name: Optional[str],
        phone: Optional[str],
        email: Optional[str] = None,
        commit: bool = True,
    ) -> Customer:
        """
        Create a customer identity for a tenant.

        Args:
            tenant_id: Tenant the customer belongs to
            name: Customer name
            phone: Phone in any format
            email: Optional email
            commit: Commit the transaction; False only flushes so the caller
                can commit the customer together with other writes

        Returns:
            Created Customer

        Raises:
            BadRequestError: Missing tenant_id, name or phone
            ForbiddenError: Principal has no access to the tenant
            InvalidPhoneError: Normalized phone shorter than the minimum
            DuplicateCustomerError: Tenant already has this phone
            PlanLimitReachedError: Constrained plan has no quota left
            InternalError: The write failed
        """
        missing = [
            field_name
            for field_name, value in (("tenant_id", tenant_id), ("name", name), ("phone", phone))
            if not value
        ]
        if missing:
            raise BadRequestError("Missing required fields", details={"missing": missing})

        self.authorize(tenant_id)

        normalized_phone = self.normalize(phone)

        existing = self.tenant_scope.find_customer_by_phone(tenant_id, normalized_phone)
        if existing is not None:
            logger.info(
                "Duplicate customer phone",
                extra={"tenant_id": tenant_id, "error_code": ErrorCode.DUPLICATE_CUSTOMER.value},
            )
            raise DuplicateCustomerError("Customer already exists")

        quota = self.quota_store.status(tenant_id)
        if quota.exhausted:
            logger.info(
                "Plan limit reached",
                extra={
                    "tenant_id": tenant_id,
                    "error_code": ErrorCode.PLAN_LIMIT_REACHED.value,
                    "plan": quota.plan,
                    "limit": quota.limit,
                    "current": quota.current,
                },
            )
            raise PlanLimitReachedError(plan=quota.plan, limit=quota.limit, current=quota.current)

        return self._create(tenant_id, name, normalized_phone, email, commit)

    def _create(self, tenant_id: str, name: str, phone: str, email: Optional[str], commit: bool) -> Customer:
        db = self.tenant_scope.db
        customer = Customer(tenant_id=tenant_id, name=name, phone=phone, email=email or None)

        try:
            db.add(customer)
            if commit:
                db.commit()
                db.refresh(customer)
            else:
                db.flush()
        except IntegrityError:
            # A concurrent request created the same (tenant, phone) first
            db.rollback()
            logger.info(
                "Duplicate customer phone detected by storage",
                extra={"tenant_id": tenant_id, "error_code": ErrorCode.DUPLICATE_CUSTOMER.value},
            )
            raise DuplicateCustomerError("Customer already exists")
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Failed to create customer for tenant {tenant_id}")
            raise InternalError("Could not create customer")

        logger.info("Created customer", extra={"tenant_id": tenant_id, "customer_id": customer.id})
        return customer

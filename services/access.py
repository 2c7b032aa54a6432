"""
Authorization scopes.

Two capability contexts are passed explicitly and never derived from each
other:

- TenantScope reads with the caller's visibility (tenants the principal
  owns or is a member of).
- TrustedScope reads everything and is reserved for business-integrity
  checks such as plan quotas.
"""
import logging
from typing import Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from core.auth import Principal
from db.models_sqlalchemy import Customer, Subscription, Tenant, TenantMember


logger = logging.getLogger(__name__)


class TenantScope:
    """Database access limited to what a principal may see."""

    def __init__(self, db_session: Session, principal: Principal):
        self.db = db_session
        self.principal = principal

    def _visible_tenant_ids(self):
        member_of = select(TenantMember.tenant_id).where(
            TenantMember.user_id == self.principal.user_id
        )
        return select(Tenant.id).where(
            or_(
                Tenant.owner_id == self.principal.user_id,
                Tenant.id.in_(member_of),
            )
        )

    def owns(self, tenant_id: str) -> bool:
        """Direct ownership of the tenant."""
        owner_id = self.db.scalar(select(Tenant.owner_id).where(Tenant.id == tenant_id))
        return owner_id is not None and owner_id == self.principal.user_id

    def is_member(self, tenant_id: str) -> bool:
        """Explicit membership record for the tenant."""
        membership = self.db.scalar(
            select(TenantMember.id).where(
                and_(
                    TenantMember.tenant_id == tenant_id,
                    TenantMember.user_id == self.principal.user_id,
                )
            )
        )
        return membership is not None

    def has_access(self, tenant_id: str) -> bool:
        """Ownership first, then membership; the first match wins."""
        if self.owns(tenant_id):
            return True
        return self.is_member(tenant_id)

    def find_customer_by_phone(self, tenant_id: str, normalized_phone: str) -> Optional[Customer]:
        """Customer of a tenant with the given phone, if visible to the principal."""
        return self.db.scalar(
            select(Customer).where(
                and_(
                    Customer.tenant_id == tenant_id,
                    Customer.phone == normalized_phone,
                    Customer.tenant_id.in_(self._visible_tenant_ids()),
                )
            )
        )


class TrustedScope:
    """System-level database access that bypasses caller visibility."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def plan_type(self, tenant_id: str) -> Optional[str]:
        """Plan recorded by billing for the tenant, if any."""
        return self.db.scalar(
            select(Subscription.plan_type).where(Subscription.tenant_id == tenant_id)
        )

    def count_customers(self, tenant_id: str) -> int:
        """Authoritative number of customers of a tenant."""
        return self.db.scalar(
            select(func.count()).select_from(Customer).where(Customer.tenant_id == tenant_id)
        ) or 0

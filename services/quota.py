"""
Plan limits for subscription-based customer restrictions.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from core.settings import settings
from domain.enums import PlanType
from services.access import TrustedScope


logger = logging.getLogger(__name__)


def default_plan_limits() -> Dict[str, Optional[int]]:
    """Customer ceilings by plan. None means unlimited."""
    return {
        PlanType.FREE.value: settings.free_plan_customer_limit,
        PlanType.PRO.value: None,
        PlanType.BUSINESS.value: None,
    }


@dataclass(frozen=True)
class QuotaStatus:
    """Customer usage of a tenant against its plan."""
    plan: str
    limit: Optional[int]
    current: int

    @property
    def constrained(self) -> bool:
        return self.limit is not None

    @property
    def exhausted(self) -> bool:
        return self.limit is not None and self.current >= self.limit


class PlanQuotaStore:
    """Reads plan and customer count through the trusted scope only."""

    def __init__(self, trusted: TrustedScope, plan_limits: Optional[Dict[str, Optional[int]]] = None):
        self.trusted = trusted
        self.plan_limits = plan_limits if plan_limits is not None else default_plan_limits()

    def get_plan(self, tenant_id: str) -> str:
        """Plan of the tenant, falling back to the default plan."""
        return (self.trusted.plan_type(tenant_id) or settings.default_plan_type).lower()

    def get_limit(self, plan: str) -> Optional[int]:
        """Customer ceiling for a plan. Only plans listed with a limit are constrained."""
        return self.plan_limits.get(plan)

    def status(self, tenant_id: str) -> QuotaStatus:
        """
        Current usage of the tenant.

        The customer count is only read for constrained plans.
        """
        plan = self.get_plan(tenant_id)
        limit = self.get_limit(plan)
        if limit is None:
            return QuotaStatus(plan=plan, limit=None, current=0)
        return QuotaStatus(plan=plan, limit=limit, current=self.trusted.count_customers(tenant_id))

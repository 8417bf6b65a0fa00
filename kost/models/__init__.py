from kost.models.expense import Expense
from kost.models.payment import Payment
from kost.models.tenant import Tenant, TenantBalance

__all__ = ["Expense", "Payment", "Tenant", "TenantBalance"]

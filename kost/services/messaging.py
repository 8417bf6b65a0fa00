"""
Tenant-facing WhatsApp messages: payment confirmations, arrears and billing reminders.

Templates and toggles arrive as an explicit ``WhatsAppSettings`` object at
construction time.  Placeholders use ``{name}`` syntax:

    {nama} {kamar} {periode} {jumlah} {kwitansi} {tunggakan} {bulan}

Unknown placeholders are left as-is.
"""

import logging
import re
from collections.abc import Callable

from pydantic import BaseModel

from kost.core.config import settings as app_settings
from kost.models.tenant import Tenant
from kost.services.calculator import PaymentResult
from kost.services.formatting import format_currency, month_name
from kost.services.whatsapp import send_whatsapp

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


class MessageTemplates(BaseModel):
    payment: str
    arrears: str
    billing: str


class WhatsAppSettings(BaseModel):
    auto_confirm_payment: bool = True
    auto_reminder_arrears: bool = True
    auto_billing: bool = False
    reminder_days_before: int = 3
    templates: MessageTemplates


def default_whatsapp_settings(business_name: str | None = None) -> WhatsAppSettings:
    name = business_name or app_settings.business_name
    return WhatsAppSettings(
        templates=MessageTemplates(
            payment=(
                "Halo {nama}, pembayaran sewa kamar {kamar} untuk periode {periode} "
                "sebesar {jumlah} telah kami terima. Kwitansi: {kwitansi}. "
                f"Terima kasih - {name}"
            ),
            arrears=(
                f"Halo {{nama}}, ini adalah pengingat pembayaran sewa kamar {{kamar}} di {name}. "
                "Tunggakan Anda saat ini {tunggakan}. Mohon segera melakukan pembayaran. "
                "Terima kasih."
            ),
            billing=(
                "Halo {nama}, tagihan sewa kamar {kamar} untuk bulan {bulan} sebesar {jumlah} "
                f"sudah jatuh tempo. Mohon segera melakukan pembayaran. Terima kasih - {name}"
            ),
        )
    )


def render(template: str, values: dict[str, str]) -> str:
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)


class WhatsAppNotifier:
    def __init__(
        self,
        settings: WhatsAppSettings,
        sender: Callable[[str, str], bool] = send_whatsapp,
    ):
        self.settings = settings
        self.sender = sender

    def _deliver(self, tenant: Tenant, message: str, kind: str) -> bool:
        if not tenant.phone:
            logger.debug("No phone for tenant %s, skipping %s message", tenant.id, kind)
            return False
        sent = self.sender(tenant.phone, message)
        if not sent:
            logger.info("WhatsApp %s message to tenant %s not delivered", kind, tenant.id)
        return sent

    def payment_confirmation_text(
        self, tenant: Tenant, period_month: int, period_year: int,
        payment_amount: int, result: PaymentResult,
    ) -> str:
        return render(self.settings.templates.payment, {
            "nama": tenant.name,
            "kamar": tenant.room_number,
            "periode": f"{month_name(period_month)}/{period_year}",
            "jumlah": format_currency(payment_amount),
            "kwitansi": result.receipt_number,
        })

    def arrears_text(self, tenant: Tenant, arrears: int) -> str:
        return render(self.settings.templates.arrears, {
            "nama": tenant.name,
            "kamar": tenant.room_number,
            "tunggakan": format_currency(arrears),
        })

    def billing_text(self, tenant: Tenant, amount: int, month: int) -> str:
        return render(self.settings.templates.billing, {
            "nama": tenant.name,
            "kamar": tenant.room_number,
            "jumlah": format_currency(amount),
            "bulan": month_name(month),
        })

    def send_payment_confirmation(
        self, tenant: Tenant, period_month: int, period_year: int,
        payment_amount: int, result: PaymentResult,
    ) -> bool:
        if not self.settings.auto_confirm_payment:
            return False
        text = self.payment_confirmation_text(
            tenant, period_month, period_year, payment_amount, result
        )
        return self._deliver(tenant, text, "payment")

    def send_arrears_reminder(self, tenant: Tenant, arrears: int) -> bool:
        if not self.settings.auto_reminder_arrears or arrears <= 0:
            return False
        return self._deliver(tenant, self.arrears_text(tenant, arrears), "arrears")

    def send_billing_reminder(self, tenant: Tenant, amount: int, month: int) -> bool:
        if not self.settings.auto_billing:
            return False
        return self._deliver(tenant, self.billing_text(tenant, amount, month), "billing")

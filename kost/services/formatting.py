"""
Rupiah, date and words formatting for receipts and messages.

Pure functions, no locale database required: the Indonesian conventions
(``.`` as thousands separator, no fraction digits, long month names) are
spelled out here.
"""

from datetime import date

MONTH_NAMES = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)

STATUS_LABELS = {
    "paid_in_full": "Lunas",
    "under_paid": "Kurang Bayar",
    "over_paid": "Lebih Bayar",
}

_ONES = (
    "", "satu", "dua", "tiga", "empat", "lima", "enam", "tujuh", "delapan", "sembilan",
    "sepuluh", "sebelas", "dua belas", "tiga belas", "empat belas", "lima belas",
    "enam belas", "tujuh belas", "delapan belas", "sembilan belas",
)

_TENS = (
    "", "", "dua puluh", "tiga puluh", "empat puluh", "lima puluh",
    "enam puluh", "tujuh puluh", "delapan puluh", "sembilan puluh",
)


def format_currency(amount: int) -> str:
    """``1500000`` → ``Rp 1.500.000``; negatives keep the sign in front."""
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(int(amount)):,}".replace(",", ".")
    return f"{sign}Rp {grouped}"


def format_date(d: date) -> str:
    return f"{d.day} {MONTH_NAMES[d.month - 1]} {d.year}"


def month_name(month: int) -> str:
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    return MONTH_NAMES[month - 1]


def month_number(name: str) -> int:
    """1-12 for a known Indonesian month name (case-insensitive), else 0."""
    lowered = name.strip().lower()
    for i, candidate in enumerate(MONTH_NAMES, start=1):
        if candidate.lower() == lowered:
            return i
    return 0


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def _hundreds(n: int) -> str:
    parts: list[str] = []
    if n >= 100:
        h = n // 100
        parts.append("seratus" if h == 1 else f"{_ONES[h]} ratus")
        n %= 100
    if n >= 20:
        parts.append(_TENS[n // 10])
        if n % 10:
            parts.append(_ONES[n % 10])
    elif n > 0:
        parts.append(_ONES[n])
    return " ".join(parts)


def number_to_words(num: int) -> str:
    """Spell a non-negative rupiah amount in Indonesian, e.g. ``seribu lima ratus rupiah``."""
    if num < 0:
        raise ValueError("number_to_words expects a non-negative amount")
    if num == 0:
        return "nol rupiah"

    parts: list[str] = []
    for scale, word in ((1_000_000_000, "miliar"), (1_000_000, "juta")):
        if num >= scale:
            parts.append(f"{_hundreds(num // scale)} {word}")
            num %= scale

    if num >= 1000:
        thousands = num // 1000
        parts.append("seribu" if thousands == 1 else f"{_hundreds(thousands)} ribu")
        num %= 1000

    if num > 0:
        parts.append(_hundreds(num))

    return " ".join(parts) + " rupiah"

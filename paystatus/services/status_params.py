from typing import Mapping, Optional
from urllib.parse import parse_qsl, urlsplit

from ..schemas import LegacyOutcome

LEGACY_RESULT_CODES = {
    "00": "SUCCESS",
    "01": "FAILED",
}


def _param(params: Mapping[str, str], name: str) -> str:
    return (params.get(name) or "").strip()

def params_from_url(url: str) -> dict[str, str]:
    """Параметры запроса из ссылки возврата (…/payment-status?merchantOrderId=…)."""
    query = urlsplit(url.strip()).query
    return dict(parse_qsl(query, keep_blank_values=True))

def resolve_order_id(params: Mapping[str, str]) -> Optional[str]:
    return _param(params, "merchantOrderId") or _param(params, "reference") or None

def legacy_outcome(params: Mapping[str, str]) -> LegacyOutcome:
    # старые ссылки без merchantOrderId: статус берём прямо из resultCode
    return LegacyOutcome(
        result=LEGACY_RESULT_CODES.get(_param(params, "resultCode"), "UNKNOWN"),
        reference=_param(params, "reference") or None,
        amount=_param(params, "amount") or None,
    )

def format_rupiah(amount) -> str:
    if amount in (None, "", 0):
        return ""
    try:
        value = int(float(amount))
    except (TypeError, ValueError):
        return ""
    return "Rp " + f"{value:,}".replace(",", ".")

from html import escape

from ..schemas import LedgerOrder, LedgerStatus, LegacyOutcome, OrderStatus, OrderStatusResult
from ..services.status_params import format_rupiah


def _details(data: OrderStatusResult) -> list[str]:
    lines = []
    if data.reference:
        lines.append(f"Референс: <code>{escape(data.reference)}</code>")
    if data.amount:
        lines.append(f"Сумма: <b>{format_rupiah(data.amount)}</b>")
    if data.payment_method:
        lines.append(f"Способ оплаты: {escape(data.payment_method)}")
    return lines

def checking_text(order_id: str, attempt: int, max_attempts: int) -> str:
    return (
        "🔄 <b>Проверяем статус оплаты…</b>\n"
        f"Заказ: <code>{escape(order_id)}</code>\n"
        f"Проверка {attempt}/{max_attempts}"
    )

def result_text(order_id: str, data: OrderStatusResult) -> str:
    if data.status is OrderStatus.SUCCESS:
        head = "✅ <b>Оплата прошла успешно!</b>\nСпасибо, платёж подтверждён."
    elif data.status is OrderStatus.FAILED:
        head = "❌ <b>Оплата не прошла.</b>"
        if data.status_message:
            head += f"\n{escape(data.status_message)}"
    else:
        head = "⏳ <b>Платёж в обработке.</b>\n" + escape(data.status_message or "Платёж ещё проверяется.")
    lines = [head, f"Заказ: <code>{escape(order_id)}</code>", *_details(data)]
    return "\n".join(lines)

def timeout_text(order_id: str) -> str:
    return (
        "⚠️ <b>Не удалось подтвердить оплату.</b>\n"
        f"Заказ: <code>{escape(order_id)}</code>\n"
        "Платёж может ещё обрабатываться. Попробуйте проверить позже."
    )

def stopped_text(order_id: str) -> str:
    return f"⏹ Проверка заказа <code>{escape(order_id)}</code> остановлена."

def legacy_text(outcome: LegacyOutcome) -> str:
    if outcome.result == "SUCCESS":
        lines = ["✅ <b>Оплата прошла успешно!</b>"]
        if outcome.reference:
            lines.append(f"Референс: <code>{escape(outcome.reference)}</code>")
        if outcome.amount:
            lines.append(f"Сумма: <b>{format_rupiah(outcome.amount)}</b>")
        return "\n".join(lines)
    if outcome.result == "FAILED":
        return "❌ <b>Не удалось провести оплату.</b>\nПопробуйте оплатить ещё раз: /pay"
    return "❓ Не удалось определить статус оплаты. Обратитесь в поддержку."

def link_expired_text() -> str:
    return "Ссылка на оплату истекла или не найдена. Оформите оплату заново: /pay"

_LEDGER_ICONS = {
    LedgerStatus.PENDING: "⏳",
    LedgerStatus.PAID: "✅",
    LedgerStatus.PROCESSING: "📦",
    LedgerStatus.FULFILLED: "🎉",
    LedgerStatus.FAILED: "❌",
}

def _fmt_order(o: LedgerOrder) -> str:
    dt = (o.last_updated or o.created_at).strftime("%Y-%m-%d %H:%M")
    what = escape(o.product_name) if o.product_name else "заказ"
    price = f" - {format_rupiah(o.amount)}" if o.amount else ""
    return f"{_LEDGER_ICONS[o.status]} <code>{escape(o.merchant_order_id)}</code> • {dt} • {what}{price}"

def history_text(orders: list[LedgerOrder], total: int | None = None) -> str:
    if not orders:
        return "Пока нет заказов. Создать платёж: /pay"
    lines = ["🧾 <b>История заказов</b>", f"Всего: {total if total is not None else len(orders)}", ""]
    lines += [_fmt_order(o) for o in orders]
    return "\n".join(lines)

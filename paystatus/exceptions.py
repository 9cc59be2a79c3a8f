# paystatus/exceptions.py


class PaymentsApiError(Exception):
    """
    Любой неуспешный запрос к бэкенду оплаты: сеть, таймаут, не-2xx ответ
    или тело, которое не удалось разобрать.
    """
    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status
        self.message = message


class PaymentLinkExpired(Exception):
    """Ссылка на оплату истекла или её нет. Нужно начать оплату заново."""


class StorageError(Exception):
    """Ошибка постоянного хранилища (Redis и т.п.)."""

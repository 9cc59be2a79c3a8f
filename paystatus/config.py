import os

PAYMENT_API_BASE = os.getenv("PAYMENT_API_BASE", "http://localhost:8081").rstrip("/")
PAYMENT_API_TIMEOUT_SEC = float(os.getenv("PAYMENT_API_TIMEOUT_SEC", "15"))

# эндпоинты бэкенда оплаты
EP_CREATE_PAYMENT = "/api/create_payment"
EP_ORDER_STATUS = "/api/order_status"
EP_SIMULATE_CALLBACK = "/api/simulate_callback"

POLL_INTERVAL_SEC = float(os.getenv("POLL_INTERVAL_SEC", "3"))
POLL_MAX_ATTEMPTS = int(os.getenv("POLL_MAX_ATTEMPTS", "20"))  # 20 * 3 сек = минута

PAYMENT_URL_TTL_MINUTES = int(os.getenv("PAYMENT_URL_TTL_MINUTES", "30"))

REDIS_URL = os.getenv("REDIS_URL", "")

BOT_TOKEN = os.getenv("BOT_TOKEN", "")
LOG_LEVEL = os.getenv("BOT_LOG_LEVEL", "INFO").upper()

SANDBOX_ENABLED = os.getenv("SANDBOX_ENABLED", "0").lower() in ("1", "true", "yes")
SANDBOX_PAYMENT_BASE = os.getenv("SANDBOX_PAYMENT_BASE", "https://sandbox.pay.example/checkout").rstrip("/")
SANDBOX_PORT = int(os.getenv("SANDBOX_PORT", "8081"))
SESSIONS_MAX_CHATS = int(os.getenv("SESSIONS_MAX_CHATS", "1000"))

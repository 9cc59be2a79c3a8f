import logging
import uvicorn
from fastapi import FastAPI

from ..config import LOG_LEVEL, SANDBOX_PORT
from .routers import orders

app = FastAPI(title="Payment API sandbox")
app.include_router(orders.router)

@app.get("/health")
async def health():
    return {"ok": True}

def run():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("paystatus.sandbox.main:app", host="0.0.0.0", port=SANDBOX_PORT, reload=False)

if __name__ == "__main__":
    run()

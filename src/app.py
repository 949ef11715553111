"""ShopDesk back office FastAPI application.

Processes order, stats and automation requests synchronously over HTTP.
Each store request is wrapped in the back office domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from fastapi.responses import JSONResponse

from backoffice.api import create_app
from backoffice.domain import backoffice

# Initialized at module level so uvicorn workers share it.
backoffice.init()

app = create_app()


@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": backoffice.name}})

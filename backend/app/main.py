# backend/app/main.py
from fastapi import FastAPI

from backend.app.api.analyze import router as analyze_router

app = FastAPI(title="gateway-inspector API")
app.include_router(analyze_router, prefix="/api")

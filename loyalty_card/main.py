import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from loyalty_card import config
from loyalty_card.db import engine, Base, SessionLocal
from loyalty_card.errors import LoyaltyError

from loyalty_card.models.customer import Customer
from loyalty_card.models.purchase import Purchase
from loyalty_card.models.discount import Discount
from loyalty_card.models.point_adjustment import PointAdjustment
from loyalty_card.models.store_owner import StoreOwner
from loyalty_card.models.admin import Admin
from loyalty_card.models.auth_session import AuthSession

from loyalty_card.routes.auth import router as auth_router
from loyalty_card.routes.store import router as store_router
from loyalty_card.routes.me import router as me_router
from loyalty_card.routes.admin import router as admin_router
from loyalty_card.services.credential_service import ensure_admin


logger = logging.getLogger(__name__)

app = FastAPI(title="Loyalty Card")

# ─── CORS ─────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "https://localhost:3000",
        "http://127.0.0.1:3000",
        "https://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LoyaltyError)
def handle_loyalty_error(request: Request, exc: LoyaltyError):
    if exc.status_code >= 500:
        logger.error("request failed", extra={"path": request.url.path, "error": exc.code})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
def startup():
    config.configure_logging()
    Base.metadata.create_all(bind=engine)

    if config.BOOTSTRAP_ADMIN_USERNAME and config.BOOTSTRAP_ADMIN_PASSWORD:
        db = SessionLocal()
        try:
            ensure_admin(db, config.BOOTSTRAP_ADMIN_USERNAME, config.BOOTSTRAP_ADMIN_PASSWORD)
        finally:
            db.close()


app.include_router(auth_router)
app.include_router(store_router)
app.include_router(me_router)
app.include_router(admin_router)


@app.get("/")
def read_root():
    return {"message": "Loyalty Card is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("loyalty_card.main:app", host="127.0.0.1", port=8001, reload=True)

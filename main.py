import logging
import sys
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pymongo.errors import PyMongoError

import database
from access import Viewer
from catalog import get_deal, list_deals
from claims import claim_stats, get_claim, list_claims, public_claim, submit_claim
from config import settings
from database import ensure_indexes, get_db
from errors import DealsError, NotAuthenticated
from identity import authenticate, get_profile, load_viewer, public_user, register, update_profile, verify_email
from security import bearer_token, decode_session_token

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


app = FastAPI(title="StartupVault API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Error mapping ----------

async def deals_error_handler(request: Request, exc: DealsError):
    content = {"detail": exc.message}
    if exc.reason:
        content["reason"] = exc.reason
    if exc.status_code >= 500:
        logger.error("Request to %s failed: %s", request.url.path, exc.message)
        content = {"detail": "Internal server error"}
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = first.get("msg", "invalid input")
    detail = f"Validation error: {field}: {message}" if field else f"Validation error: {message}"
    return JSONResponse(status_code=400, content={"detail": detail})


async def global_exception_handler(request: Request, exc: Exception):
    # Storage and runtime details stay in the logs
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def register_exception_handlers(application: FastAPI) -> None:
    application.add_exception_handler(DealsError, deals_error_handler)
    application.add_exception_handler(RequestValidationError, validation_error_handler)
    application.add_exception_handler(PyMongoError, global_exception_handler)
    application.add_exception_handler(Exception, global_exception_handler)


register_exception_handlers(app)


# ---------- Request Models ----------

class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str


class LoginRequest(BaseModel):
    email: str
    password: str


class VerifyEmailRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    verification_token: str = Field(..., alias="verificationToken")


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None


# ---------- Startup: ensure indexes ----------

@app.on_event("startup")
def prepare_database():
    configure_logging()
    if database.db is None:
        logger.warning("DATABASE_URL not set; requests needing storage will fail")
        return
    ensure_indexes(database.db)


# ---------- Auth dependencies ----------

def get_optional_viewer(authorization: Optional[str] = Header(None), db=Depends(get_db)) -> Optional[Viewer]:
    """Anonymous when there is no usable bearer token."""
    token = bearer_token(authorization)
    if not token:
        return None
    claims = decode_session_token(token)
    if claims is None:
        return None
    return load_viewer(db, claims.user_id)


def get_current_viewer(authorization: Optional[str] = Header(None), db=Depends(get_db)) -> Viewer:
    token = bearer_token(authorization)
    if not token:
        raise NotAuthenticated("Missing or invalid authorization header")
    claims = decode_session_token(token)
    if claims is None:
        raise NotAuthenticated("Invalid or expired token")
    viewer = load_viewer(db, claims.user_id)
    if viewer is None:
        raise NotAuthenticated("User not found")
    return viewer


# ---------- Public endpoints ----------

@app.get("/health")
def health():
    resp = {"status": "ok", "database": "not configured"}
    if database.db is not None:
        try:
            database.db.command("ping")
            resp["database"] = "connected"
        except PyMongoError:
            logger.exception("Database ping failed")
            resp["database"] = "unreachable"
    return resp


# ---------- Auth endpoints ----------

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


@auth_router.post("/register", status_code=201)
def register_user(payload: RegisterRequest, db=Depends(get_db)):
    created = register(db, payload.email, payload.password, payload.name)
    resp = {"message": "User registered successfully", "email": created["email"]}
    if settings.EXPOSE_VERIFICATION_TOKEN:
        resp["verificationToken"] = created["verification_token"]
    return resp


@auth_router.post("/login")
def login(payload: LoginRequest, db=Depends(get_db)):
    token, user = authenticate(db, payload.email, payload.password)
    return {"token": token, "user": public_user(user)}


@auth_router.post("/verify-email")
def verify(payload: VerifyEmailRequest, db=Depends(get_db)):
    verify_email(db, payload.verification_token)
    return {"message": "Email verified successfully"}


@auth_router.get("/me")
def me(viewer: Viewer = Depends(get_current_viewer), db=Depends(get_db)):
    return public_user(get_profile(db, viewer.user_id))


@auth_router.put("/profile")
def profile(payload: ProfileUpdateRequest, viewer: Viewer = Depends(get_current_viewer), db=Depends(get_db)):
    user = update_profile(db, viewer.user_id, name=payload.name, company=payload.company, role=payload.role)
    return public_user(user)


# ---------- Deal endpoints ----------

deals_router = APIRouter(prefix="/api/deals", tags=["deals"])


@deals_router.get("")
def deals(
    search: Optional[str] = None,
    category: Optional[str] = None,
    accessLevel: Optional[str] = "all",
    limit: int = 20,
    skip: int = 0,
    viewer: Optional[Viewer] = Depends(get_optional_viewer),
    db=Depends(get_db),
):
    page = list_deals(db, viewer, search=search, category=category, access_level=accessLevel, limit=limit, skip=skip)
    return {"deals": page.items, "total": page.total, "limit": page.limit, "skip": page.skip}


@deals_router.get("/{deal_id}")
def deal_detail(deal_id: str, viewer: Optional[Viewer] = Depends(get_optional_viewer), db=Depends(get_db)):
    return get_deal(db, deal_id, viewer)


@deals_router.post("/{deal_id}/claim", status_code=201)
def claim_deal(deal_id: str, viewer: Viewer = Depends(get_current_viewer), db=Depends(get_db)):
    claim = submit_claim(db, deal_id, viewer)
    return public_claim(claim)


# ---------- Claim endpoints ----------

claims_router = APIRouter(prefix="/api/claims", tags=["claims"])


@claims_router.get("")
def my_claims(
    status: Optional[str] = None,
    limit: int = 20,
    skip: int = 0,
    viewer: Viewer = Depends(get_current_viewer),
    db=Depends(get_db),
):
    page = list_claims(db, viewer, status=status, limit=limit, skip=skip)
    return {"claims": page.items, "total": page.total, "limit": page.limit, "skip": page.skip}


@claims_router.get("/stats/overview")
def my_claim_stats(viewer: Viewer = Depends(get_current_viewer), db=Depends(get_db)):
    return claim_stats(db, viewer)


@claims_router.get("/{claim_id}")
def claim_detail(claim_id: str, viewer: Viewer = Depends(get_current_viewer), db=Depends(get_db)):
    return get_claim(db, claim_id, viewer)


app.include_router(auth_router)
app.include_router(deals_router)
app.include_router(claims_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)

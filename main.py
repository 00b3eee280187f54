import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from src.api.deps import require_role
from src.api.routes import admin, auth, orders, products
from src.core.config import get_settings
from src.core.database import engine
from src.models.database import Base
from src.models.schemas import Role

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("cafeteria")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Without a store the service is useless; refuse to start
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.critical(f"Could not connect to the store: {str(e)}")
        raise SystemExit(1)

    logger.info(f"Connected to store, stock write mode is {settings.stock_write_mode}")
    yield
    logger.info("Closing store connections")
    engine.dispose()


app = FastAPI(
    title="Cafeteria Backend",
    description="Ordering, inventory and accounts for a multi-branch cafeteria",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a 400, rejected before any store call"""
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())}
    )


# Include routers
app.include_router(orders.router, prefix="/api/v1/orders", tags=["orders"])
app.include_router(products.router, prefix="/api/v1", tags=["products"])
app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(
    admin.router,
    prefix="/api/v1/admin",
    tags=["admin"],
    dependencies=[Depends(require_role(Role.admin))]
)

@app.get("/")
async def root():
    return {"message": "Cafeteria Backend API"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

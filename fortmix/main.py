from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from fortmix.config import Settings, get_settings
from fortmix.database import Database
from fortmix.exceptions import generic_exception_handler
from fortmix.users.seed import seed_owner

from fortmix.users.routers import router as user_router, auth_router
from fortmix.stock.products.router import router as product_router
from fortmix.stock.movements.router import router as stock_router
from fortmix.sales.router import router as sales_router
from fortmix.dashboard.router import router as dashboard_router
from fortmix.reports.router import router as reports_router
from fortmix.audit.router import router as audit_router


_log_sink_id: Optional[int] = None


def configure_logging(settings: Settings):
    """File sink next to loguru's default stderr sink; replaced on reconfigure."""
    global _log_sink_id
    if _log_sink_id is not None:
        logger.remove(_log_sink_id)
    _log_sink_id = logger.add(
        settings.LOG_FILE,
        rotation=settings.LOG_ROTATION,
        level=settings.LOG_LEVEL,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    db = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

    # Database startup
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        logger.info(f"Application startup ({db.backend} store)")
        db.create_all()
        with db.session() as session:
            seed_owner(session, settings)
        yield
        db.dispose()
        logger.info("Application shutdown")

    app = FastAPI(
        title="FORTMIX ERP",
        description="An API for managing shop operations including Products, Stock, Sales (PDV), Reports and Audit.",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.db = db

    app.add_exception_handler(Exception, generic_exception_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
    app.include_router(user_router, prefix="/api/users", tags=["Users"])
    app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])
    app.include_router(product_router, prefix="/api/products", tags=["Stock - Products"])
    app.include_router(stock_router, prefix="/api/stock", tags=["Stock - Movements"])
    app.include_router(sales_router, prefix="/api/sales", tags=["Sales"])
    app.include_router(reports_router, prefix="/api/reports", tags=["Reports"])
    app.include_router(audit_router, prefix="/api/audit", tags=["Audit"])

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()


def run():
    settings = get_settings()
    uvicorn.run("fortmix.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()

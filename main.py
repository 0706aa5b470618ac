import os
if os.getenv("DEBUGPY", "0") == "1":
    import debugpy
    debugpy.listen(("0.0.0.0", 5678))

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from config.logging_config import configure_logging

configure_logging()

from middleware.error_handlers import register_exception_handlers
from middleware.rate_limit import limiter
from middleware.request_logging import RequestLoggingMiddleware
from routers.analytics_routes import router as analytics_router
from routers.auth_routes import router as auth_router
from routers.budget_routes import router as budget_router
from routers.category_routes import router as category_router
from routers.stock_routes import router as stock_router
from routers.transaction_routes import router as transaction_router
from routers.user_routes import router as user_router


app = FastAPI(title="Finance Tracker API")

origins = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# default limits run in the middleware; @limiter.limit routes keep their own
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
register_exception_handlers(app)

# Include routers
app.include_router(auth_router, prefix="/api/auth")
app.include_router(user_router, prefix="/api/user")
app.include_router(transaction_router, prefix="/api/transactions")
app.include_router(category_router, prefix="/api/categories")
app.include_router(budget_router, prefix="/api/budgets")
app.include_router(stock_router, prefix="/api/stocks")
app.include_router(analytics_router, prefix="/api")

# db startup
from database import Base, engine
import models  # this triggers models/__init__.py which imports all tables

Base.metadata.create_all(bind=engine)

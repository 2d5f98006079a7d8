"""
Main FastAPI application entry point.
Configures and initializes the Medicine Cabinet API.
"""
from fastapi import FastAPI, Request
from mangum import Mangum
from src.core import config
from src.core.exception_handler import register_exception_handlers
from src.core.logger import get_logger, setup_logging
from src.api.routes import alert_routes, auth_routes, drug_routes, health_routes

setup_logging(config.settings.log_level)
logger = get_logger(__name__)

# Create FastAPI application
app = FastAPI(
    title=config.settings.api_title,
    version=config.settings.api_version,
    description="Personal medicine cabinet with drug search, statistics and expiry alerts",
    root_path=f"/{config.settings.environment}"
)

# Register exception handlers
register_exception_handlers(app)

# Register routes
app.include_router(health_routes.router)
app.include_router(auth_routes.router)
app.include_router(drug_routes.router)
app.include_router(alert_routes.router)


@app.middleware("http")
async def log_request(request: Request, call_next):
    response = await call_next(request)
    logger.info("%s %s -> %d", request.method, request.url.path, response.status_code)
    return response

# Lambda handler for AWS
handler = Mangum(app, lifespan="off")


# For local development
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

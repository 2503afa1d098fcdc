import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from markova.core.domain.errors import MarkovaError
from markova.infrastructure.config import config
from markova.infrastructure.dependencies import Container, setup_dependencies
from markova.infrastructure.middleware import LoggingMiddleware
from markova.logging_config import setup_logging

# Setup logging
logger = setup_logging(config.SERVICE_NAME, config.LOG_LEVEL)


def create_app(container: Optional[Container] = None) -> FastAPI:
    """Build the FastAPI app around a wired container"""
    container = container or setup_dependencies()
    generation = container.generation_controller
    records = container.records_controller
    system = container.system_controller

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Markova API starting", extra={
            "credential_configured": container.credentials.has_valid_key(),
            "database": container.database.engine.url.get_backend_name()
        })
        yield
        await container.video_use_case.shutdown()
        logger.info("Markova API stopped")

    app = FastAPI(title=config.APP_TITLE, version=config.APP_VERSION, lifespan=lifespan)
    app.state.container = container

    # Add middleware
    app.add_middleware(LoggingMiddleware)

    @app.exception_handler(MarkovaError)
    async def markova_error_handler(request: Request, exc: MarkovaError):
        log = logger.warning if exc.status_code < 500 else logger.error
        log("Request failed", extra={
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "error": exc.message,
            "status_code": exc.status_code
        })
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unexpected error", extra={
            "path": request.url.path,
            "error_type": type(exc).__name__
        })
        return JSONResponse(status_code=500, content={
            "error": "Internal server error",
            "error_type": "InternalError"
        })

    # Health and media
    @app.get("/api/health")
    async def health_check():
        """Report whether the remote credential is configured"""
        return await system.health_check()

    @app.get("/download-video/{filename}")
    async def download_video(filename: str, request: Request):
        """Serve a rehosted video"""
        return await system.download_video(filename, request)

    # Generation
    @app.post("/api/campaign")
    async def plan_campaign(request: Request):
        """Plan campaign copy and return the validated post list"""
        return await generation.plan_campaign(request)

    @app.post("/api/campaigns/generate")
    async def generate_campaign(request: Request):
        """Plan, illustrate and store a campaign"""
        return await generation.generate_campaign(request)

    @app.post("/api/image")
    async def generate_image(request: Request):
        return await generation.generate_image(request)

    @app.post("/api/campaigns/{campaign_id}/posts/{post_id}/image")
    async def regenerate_post_image(campaign_id: str, post_id: str, request: Request):
        return await generation.regenerate_post_image(campaign_id, post_id, request)

    @app.post("/api/video")
    async def start_video(request: Request):
        """Start a video job; polling continues in the background"""
        return await generation.start_video(request)

    @app.get("/api/video/{job_id}")
    async def get_video(job_id: str, request: Request):
        return await generation.get_video(job_id, request)

    @app.delete("/api/video/{job_id}")
    async def cancel_video(job_id: str, request: Request):
        return await generation.cancel_video(job_id, request)

    @app.post("/api/strategy")
    async def generate_strategy(request: Request):
        return await generation.generate_strategy(request)

    @app.get("/api/strategic-plans")
    async def list_strategic_plans(request: Request):
        return await records.list_strategic_plans(request)

    # Brand kits
    @app.get("/api/brand-kits")
    async def list_brand_kits(request: Request):
        return await records.list_brand_kits(request)

    @app.post("/api/brand-kits", status_code=201)
    async def create_brand_kit(request: Request):
        return await records.create_brand_kit(request)

    @app.get("/api/brand-kits/{brand_id}")
    async def get_brand_kit(brand_id: str, request: Request):
        return await records.get_brand_kit(brand_id, request)

    @app.put("/api/brand-kits/{brand_id}")
    async def update_brand_kit(brand_id: str, request: Request):
        return await records.update_brand_kit(brand_id, request)

    @app.delete("/api/brand-kits/{brand_id}", status_code=204)
    async def delete_brand_kit(brand_id: str, request: Request):
        return await records.delete_brand_kit(brand_id, request)

    # Campaigns
    @app.get("/api/campaigns")
    async def list_campaigns(request: Request):
        return await records.list_campaigns(request)

    @app.get("/api/campaigns/{campaign_id}")
    async def get_campaign(campaign_id: str, request: Request):
        return await records.get_campaign(campaign_id, request)

    @app.put("/api/campaigns/{campaign_id}")
    async def update_campaign(campaign_id: str, request: Request):
        return await records.update_campaign(campaign_id, request)

    @app.put("/api/campaigns/{campaign_id}/posts/{post_id}")
    async def update_post(campaign_id: str, post_id: str, request: Request):
        return await records.update_post(campaign_id, post_id, request)

    @app.delete("/api/campaigns/{campaign_id}", status_code=204)
    async def delete_campaign(campaign_id: str, request: Request):
        return await records.delete_campaign(campaign_id, request)

    # Plans
    @app.get("/api/plans")
    async def list_plans(request: Request):
        return await records.list_plans(request)

    @app.post("/api/plans", status_code=201)
    async def create_plan(request: Request):
        return await records.create_plan(request)

    @app.put("/api/plans/{plan_id}")
    async def update_plan(plan_id: str, request: Request):
        return await records.update_plan(plan_id, request)

    @app.delete("/api/plans/{plan_id}", status_code=204)
    async def delete_plan(plan_id: str, request: Request):
        return await records.delete_plan(plan_id, request)

    # Users
    @app.get("/api/users")
    async def list_users(request: Request):
        return await records.list_users(request)

    @app.post("/api/users", status_code=201)
    async def create_user(request: Request):
        return await records.create_user(request)

    @app.get("/api/users/{user_id}")
    async def get_user(user_id: str, request: Request):
        return await records.get_user(user_id, request)

    @app.put("/api/users/{user_id}")
    async def update_user(user_id: str, request: Request):
        return await records.update_user(user_id, request)

    @app.delete("/api/users/{user_id}", status_code=204)
    async def delete_user(user_id: str, request: Request):
        return await records.delete_user(user_id, request)

    return app


app = create_app()

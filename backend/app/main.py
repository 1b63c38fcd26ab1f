# backend/app/main.py
from dotenv import load_dotenv

load_dotenv()  # Loads .env automatically

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .agents.iteration_agent import run_iteration_agent
from .agents.mock_agent import create_mock_thumbnails
from .agents.rewrite_agent import SUPPORTED_INDUSTRIES, fallback_prompt, run_rewrite_agent
from .agents.variation_agent import run_variation_agent
from .config import Settings
from .gemini_client import ImageGenerationClient
from .logging_config import get_metrics_snapshot, inc_metric, log, measure, set_metric
from .models import GenerationRequest, IterateRequest, RewriteRequest
from .openai_client import TextGenerationClient
from .prompt_builder import (
    ASPECT_RATIO_DIMENSIONS,
    TemplateLibrary,
    build_final_prompt,
    resolve_aspect_ratio,
)
from .utils import ImageValidationError, crop_to_aspect_ratio, decode_image

VERSION = "2.5.0"

router = APIRouter()


# ==========================================================
#                    THUMBNAIL GENERATION
# ==========================================================


@router.post("/api/generate")
async def generate_thumbnails(body: GenerationRequest, request: Request):
    """
    Build the final prompt from the selected options and produce the
    thumbnail set (Gemini primary + variations, or mock thumbnails).
    """
    state = request.app.state
    settings: Settings = state.settings

    if not body.image:
        return JSONResponse({"error": "Image is required"}, status_code=400)

    try:
        image = decode_image(body.image, settings.max_upload_bytes)
    except ImageValidationError as e:
        log.warning(f"⚠️ Rejected upload: {e}")
        return JSONResponse({"error": str(e)}, status_code=400)

    try:
        inc_metric("generate_requests")
        aspect_ratio, width, height = resolve_aspect_ratio(body.aspect_ratio)
        if settings.crop_uploads:
            image = crop_to_aspect_ratio(image, width, height)

        final_prompt = build_final_prompt(
            state.templates,
            prompt=body.prompt,
            category=body.category,
            style=body.style,
            text_option=body.text_option,
            focus=body.focus,
            color_scheme=body.color_scheme,
            selected_template=body.selected_template,
            aspect_ratio=aspect_ratio,
        )
        log.info(f"🚀 Generating thumbnails ({aspect_ratio}, template={body.selected_template})")

        try:
            with measure("generate"):
                thumbnails = await run_variation_agent(
                    state.image_client,
                    final_prompt,
                    image,
                    aspect_ratio=aspect_ratio,
                    model_label=settings.image_model_label,
                )
        except Exception as e:
            log.error(f"❌ Variation agent failed, using mock thumbnails: {e}")
            thumbnails = create_mock_thumbnails(image.data_uri, final_prompt, aspect_ratio)

        return {
            "success": True,
            "thumbnails": [t.to_json() for t in thumbnails],
            "originalPrompt": body.prompt,
            "optimizedPrompt": final_prompt,
            "metadata": {
                "category": body.category,
                "style": body.style,
                "textOption": body.text_option,
                "focus": body.focus,
                "colorScheme": body.color_scheme,
                "template": body.selected_template,
                "aspectRatio": aspect_ratio,
                "dimensions": {"width": width, "height": height},
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        }

    except Exception as e:
        log.error(f"💥 Generate pipeline error: {e}")
        return JSONResponse({"error": "Failed to generate thumbnails"}, status_code=500)


@router.get("/api/generate")
async def generate_status(request: Request):
    state = request.app.state
    settings: Settings = state.settings
    return {
        "status": "healthy",
        "models": [settings.image_model_label],
        "apiConfigured": settings.image_generation_enabled,
        "features": [
            "Simple Prompt Input",
            "Template Presets",
            "Custom Options",
            "Multi-variation Generation",
            "Quality Scoring",
            "Multiple Aspect Ratios",
        ],
        "templates": state.templates.ids(),
        "aspectRatios": {
            ratio: {"width": w, "height": h}
            for ratio, (w, h) in ASPECT_RATIO_DIMENSIONS.items()
        },
        "version": VERSION,
    }


# ==========================================================
#                    PROMPT REWRITING
# ==========================================================


@router.post("/api/rewrite")
async def rewrite_prompt(body: RewriteRequest, request: Request):
    if not body.prompt:
        return JSONResponse({"error": "Prompt is required"}, status_code=400)

    try:
        inc_metric("rewrite_requests")
        with measure("rewrite"):
            return await run_rewrite_agent(
                request.app.state.text_client,
                body.prompt,
                industry=body.industry,
                target_audience=body.target_audience,
                style_preferences=body.style_preferences,
                iterations=body.iterations,
            )
    except Exception as e:
        log.error(f"❌ Prompt rewrite failed: {e}")
        return JSONResponse(
            {
                "error": "Failed to rewrite prompt",
                "details": str(e),
                "fallbackPrompt": fallback_prompt(body.prompt, body.industry),
            },
            status_code=500,
        )


@router.get("/api/rewrite")
async def rewrite_status(request: Request):
    return {
        "status": "healthy",
        "apiConfigured": request.app.state.settings.text_generation_enabled,
        "availableTools": [
            "Color Psychology Optimization",
            "Industry-Specific Enhancement",
            "Audience Targeting",
            "Corrective RAG Analysis",
            "Multi-iteration Refinement",
            "A/B Testing Variations",
            "Quality Score Validation",
        ],
        "supportedIndustries": SUPPORTED_INDUSTRIES,
        "version": VERSION,
    }


# ==========================================================
#                    THUMBNAIL ITERATION
# ==========================================================


@router.post("/api/iterate")
async def iterate_thumbnail(body: IterateRequest, request: Request):
    state = request.app.state

    if not body.original_prompt or not body.iteration_type:
        return JSONResponse(
            {"error": "Original prompt and iteration type are required"},
            status_code=400,
        )

    image = None
    if body.image:
        try:
            image = decode_image(body.image, state.settings.max_upload_bytes)
        except ImageValidationError as e:
            return JSONResponse({"error": str(e)}, status_code=400)

    try:
        inc_metric("iterate_requests")
        aspect_ratio, _, _ = resolve_aspect_ratio(body.aspect_ratio)
        iteration = await run_iteration_agent(
            state.image_client,
            body.original_prompt,
            body.iteration_type,
            modifications=body.modifications,
            original_thumbnail_id=body.original_thumbnail_id,
            image=image,
            aspect_ratio=aspect_ratio,
        )
        return {
            "success": True,
            "iteration": iteration.to_json(),
            "message": "Iteration generated successfully",
        }
    except Exception as e:
        log.error(f"❌ Iteration failed: {e}")
        return JSONResponse({"error": "Failed to generate iteration"}, status_code=500)


# ==========================================================
#                     METRICS + HEALTH
# ==========================================================


@router.get("/metrics")
async def metrics():
    return get_metrics_snapshot()


@router.get("/health")
async def health(request: Request):
    state = request.app.state
    return {
        "status": "ok",
        "imageGeneration": state.settings.image_generation_enabled,
        "textGeneration": state.settings.text_generation_enabled,
        "templates": len(state.templates),
    }


# ==========================================================
#                     APP FACTORY
# ==========================================================

# Reported when a route gets no JSON body at all.
MISSING_BODY_ERRORS = {
    "/api/generate": "Image is required",
    "/api/rewrite": "Prompt is required",
    "/api/iterate": "Original prompt and iteration type are required",
}


def describe_validation_errors(errors) -> str:
    parts = []
    for err in errors:
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return "; ".join(parts)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Body validation failures use the same 400 {error} shape as the routes."""
    errors = exc.errors()
    inc_metric("invalid_requests")
    log.warning(f"⚠️ Rejected request to {request.url.path}: {describe_validation_errors(errors)}")

    if any(tuple(err.get("loc", ())) == ("body",) for err in errors):
        message = MISSING_BODY_ERRORS.get(request.url.path, "Request body is required")
    else:
        message = f"Invalid request: {describe_validation_errors(errors)}"
    return JSONResponse({"error": message}, status_code=400)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    log.info("🚀 Starting Vizora API")
    log.info(f"Image model: {settings.image_model} (enabled={settings.image_generation_enabled})")
    log.info(f"Text model: {settings.text_model} (enabled={settings.text_generation_enabled})")
    yield
    log.info("Shutting down...")


def create_app(
    settings: Optional[Settings] = None,
    image_client: Optional[ImageGenerationClient] = None,
    text_client: Optional[TextGenerationClient] = None,
    templates: Optional[TemplateLibrary] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="Vizora Thumbnail API", version=VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Process-scoped, read-only after this point.
    app.state.settings = settings
    if templates is None:
        templates = TemplateLibrary.load(settings.templates_dir)
    app.state.templates = templates
    set_metric("templates_loaded", len(templates))
    app.state.image_client = image_client or ImageGenerationClient(
        api_key=settings.google_api_key,
        model=settings.image_model,
        max_retries=settings.max_retries,
        base_delay=settings.retry_base_delay,
        timeout=settings.image_timeout,
    )
    app.state.text_client = text_client or TextGenerationClient(
        api_key=settings.openai_api_key,
        model=settings.text_model,
    )

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("backend.app.main:app", host="127.0.0.1", port=8000, reload=True)

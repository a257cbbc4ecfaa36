from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from enrollment.api.routes import router
from enrollment.api.admin_routes import router as admin_router
from enrollment.observability.logging import log
from enrollment.settings import settings

app = FastAPI(title="Enrollment Flow API")

origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Enrollment API is running. Use /health and POST /api/enrollment/{flowId}/actions."
    }


@app.get("/health")
def health():
    return {"status": "ok"}


# Step failures are already converted by the controller; anything reaching
# here is an infrastructure fault (Redis down, bug). Keep the body generic.
@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    log(event="unhandled_exception", path=request.url.path, errorType=type(exc).__name__, error=str(exc)[:300])
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "Something went wrong. Please try again."
        },
    )

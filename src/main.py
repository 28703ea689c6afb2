from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os
import uvicorn
from controllers.config import logger, CORS_ORIGINS
from routes.tests import router as tests_router


app = FastAPI(
    title="EQAO Practice Test API",
    description="Generates 10-question EQAO practice tests from a single source question",
    version="1.0.0",
)


@app.middleware("http")
async def logging_middleware(request, call_next):
    import time

    start_time = time.time()

    # Log incoming request
    logger.info(f"Incoming request: {request.method} {request.url}")

    response = await call_next(request)

    # Log response time and status
    process_time = time.time() - start_time
    logger.info(
        f"Request completed: {request.method} {request.url} - Status: {response.status_code} - Time: {process_time:.4f}s"
    )

    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.get("/")
def read_root():
    logger.info("Health check endpoint accessed")
    return {"status": "EQAO practice test backend is running"}


app.include_router(tests_router)


if __name__ == "__main__":
    from utils.db import init_db

    init_db()
    port = int(os.environ.get("PORT", 8000))
    logger.info(f"Starting EQAO practice test backend on port {port}")
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        log_level="info",
        access_log=True,
    )

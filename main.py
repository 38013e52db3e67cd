import sys
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ydsprep.core.config import settings
from ydsprep.presentation.api.routers.assessment_router import router as assessment_router
from ydsprep.presentation.api.routers.admin_router import router as admin_router
from ydsprep.infrastructure.db.session import Base, engine
from ydsprep.infrastructure.db.models.exam_model import ExamModel, ExamQuestionModel  # noqa: F401
from ydsprep.infrastructure.db.models.attempt_model import AttemptModel  # noqa: F401

# Create tables
Base.metadata.create_all(bind=engine)

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(title="YDS Prep API")


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal server error occurred."}
    )

# Include routers
app.include_router(assessment_router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {"message": "Welcome to YDS Prep API"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)

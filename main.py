from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import CORS_ORIGINS
from database.conexion import Base, engine
import models  # 👈 asegura que todos los modelos estén registrados
from services.cleaning_errors import (
    CleaningError,
    InvalidRoom,
    NotFound,
    PartialMaterialization,
    TransientStorageError,
    VisitIncomplete,
)
from utils.logging_utils import log_event, log_error
from utils.rate_limiter import setup_rate_limiting

try:
    Base.metadata.create_all(bind=engine)
    log_event("startup", "system", "Tablas creadas (o ya existian)")
except Exception as e:
    log_error("startup", "system", "Crear tablas", str(e))

app = FastAPI(title="Cleaning Visits API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
setup_rate_limiting(app)

_ERROR_STATUS = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidRoom: status.HTTP_400_BAD_REQUEST,
    VisitIncomplete: status.HTTP_409_CONFLICT,
    PartialMaterialization: status.HTTP_207_MULTI_STATUS,
    TransientStorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(CleaningError)
async def cleaning_error_handler(request: Request, exc: CleaningError):
    status_code = next(
        (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


from endpoints import cleaning_tasks, cleaning_visits, cleaning_visit_tasks
app.include_router(cleaning_tasks.router)
app.include_router(cleaning_visits.router)
app.include_router(cleaning_visit_tasks.router)


@app.get("/health")
def health():
    return {"status": "ok"}

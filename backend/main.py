import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.database import Base, engine, ensure_vote_schema
from backend.models import candidate, user, vote
from backend.routes import auth_routes, candidate_routes, results_routes, vote_routes

logger = logging.getLogger(__name__)


def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine, tables=[user.User.__table__, candidate.Candidate.__table__, vote.Vote.__table__])
        ensure_vote_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@asynccontextmanager
async def lifespan(_app: FastAPI):
    initialize_database()
    yield


app = FastAPI(title='Digital Voting API', lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {'loc': list(error.get('loc', ())), 'msg': error.get('msg', '')}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'detail': errors})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error('Unhandled database error on %s %s', request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'detail': 'Internal server error.'},
    )


@app.get('/')
def root():
    return {'status': 'Digital Voting API Running'}


app.include_router(auth_routes.router, prefix=config.API_PREFIX)
app.include_router(candidate_routes.router, prefix=config.API_PREFIX)
app.include_router(vote_routes.router, prefix=config.API_PREFIX)
app.include_router(results_routes.router, prefix=config.API_PREFIX)

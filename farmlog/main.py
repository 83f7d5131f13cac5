# farmlog/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS, configure_logging
from .database import Base, engine
from . import models  # noqa: F401
from .routers import lookups, work_logs

configure_logging()

# create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Farmlog work-log service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"status": "Backend is running!"}


app.include_router(work_logs.router)
app.include_router(lookups.router)

from fastapi import FastAPI, Depends, HTTPException, Header, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from contextlib import asynccontextmanager
from dotenv import load_dotenv
import logging
import os

import uvicorn

from notes_database.db import SessionLocal, storage_lock
from notes_database.errors import NotesError, NotFoundOrForbidden, ValidationError
from notes_database.init_db import init_db
from notes_database.utils import parse_int_prefix
from notes_database import note_store, user_directory

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def verify_caller_enabled():
    return os.getenv("NOTES_VERIFY_CALLER", "").strip().lower() in ("1", "true", "yes")


# Pydantic models for serialization and validation

class UserCreate(BaseModel):
    username: Optional[str] = Field(default=None, description="Unique, case-sensitive username")

class UserOut(BaseModel):
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)

class NoteCreate(BaseModel):
    id: Optional[int] = Field(default=None, description="Client-chosen id; defaults to a timestamp")
    title: Optional[str] = None
    content: Optional[str] = None
    is_hidden: Optional[bool] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)

class NoteUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    is_hidden: Optional[bool] = None

class NoteOut(BaseModel):
    id: int
    title: str
    content: str
    is_hidden: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None
    user_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

class Message(BaseModel):
    message: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


# FastAPI app config
app = FastAPI(
    title="Personal Notes Backend API",
    description="Backend API for registering users and managing their personal notes.",
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Users", "description": "Register and look up users"},
        {"name": "Notes", "description": "Create, list, update and soft-delete notes"}
    ]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # adjust for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# DATABASE Dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        with storage_lock():
            db.close()

def resolve_caller(x_user_id: Optional[str] = Header(default=None), db=Depends(get_db)) -> Optional[int]:
    """
    Acting user id from the X-User-Id header, read like parseInt ("12abc" is 12).
    A header with no leading number resolves to None, which owns no notes.
    """
    if not x_user_id:
        raise ValidationError("User ID header is required.")
    user_id = parse_int_prefix(x_user_id)
    logger.debug("Request made as user %s", user_id)
    if verify_caller_enabled() and user_directory.fetch_by_id(db, user_id) is None:
        raise NotFoundOrForbidden("User not found.")
    return user_id

# Root Health Check
@app.get("/", summary="Health Check", tags=["General"])
def health_check():
    """Simple health check endpoint."""
    return {"message": "Healthy"}


#####################
# USER ENDPOINTS
#####################

# PUBLIC_INTERFACE
@app.post("/users", response_model=UserOut, status_code=201, summary="Register or fetch a user", tags=["Users"])
def register(user: UserCreate, response: Response, db=Depends(get_db)):
    """
    Register a username.
    Answers 201 with the new user, or 200 with the existing user when the
    username is already taken.
    """
    user_obj, created = user_directory.register_or_fetch(db, user.username)
    if not created:
        response.status_code = 200
    return user_obj

# PUBLIC_INTERFACE
@app.get("/users/{user_id}", summary="Get a user by id", tags=["Users"])
def get_user(user_id: str, db=Depends(get_db)):
    """
    Look up a user. Ids that are not numbers are simply not found.
    """
    user_obj = user_directory.fetch_by_id(db, user_id)
    if user_obj is None:
        return JSONResponse(status_code=404, content={"status": "not found"})
    return {"status": "ok", "user": UserOut.model_validate(user_obj).model_dump()}


#####################
# NOTES ENDPOINTS
#####################

# PUBLIC_INTERFACE
@app.get("/notes", response_model=List[NoteOut], summary="List the caller's notes", tags=["Notes"])
def list_notes(db=Depends(get_db), user_id: Optional[int] = Depends(resolve_caller)):
    """
    Get all notes of the calling user that have not been deleted.
    """
    return note_store.list_visible(db, user_id)

# PUBLIC_INTERFACE
@app.post("/notes", response_model=NoteOut, status_code=201, summary="Create a new note", tags=["Notes"])
def create_note(note: NoteCreate, db=Depends(get_db), user_id: Optional[int] = Depends(resolve_caller)):
    """
    Create a new note owned by the calling user.
    """
    return note_store.create(
        db,
        user_id,
        title=note.title,
        content=note.content,
        id=note.id,
        is_hidden=note.is_hidden,
        created_at=note.created_at,
    )

# PUBLIC_INTERFACE
@app.patch("/notes/{note_id}", response_model=Message, summary="Update a note", tags=["Notes"])
def update_note(note_id: str, note_update: NoteUpdate, db=Depends(get_db), user_id: Optional[int] = Depends(resolve_caller)):
    """
    Partially update a live note belonging to the calling user.
    Only the fields present in the body are changed.
    """
    note_store.update(db, user_id, note_id, note_update.model_dump(exclude_unset=True))
    return {"message": "Note updated successfully."}

# PUBLIC_INTERFACE
@app.delete("/notes/{note_id}", response_model=Message, summary="Delete a note", tags=["Notes"])
def delete_note(note_id: str, db=Depends(get_db), user_id: Optional[int] = Depends(resolve_caller)):
    """
    Soft-delete a note belonging to the calling user.
    """
    note_store.soft_delete(db, user_id, note_id)
    return {"message": "Note deleted successfully."}


# Error handlers
@app.exception_handler(NotesError)
def notes_error_handler(request: Request, exc: NotesError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
    )

@app.exception_handler(HTTPException)
def custom_http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
    )

@app.exception_handler(RequestValidationError)
def request_validation_handler(request, exc):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request.", "details": jsonable_encoder(exc.errors())},
    )

@app.exception_handler(Exception)
def unhandled_exception_handler(request, exc):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return PlainTextResponse("Something broke!", status_code=500)


if __name__ == "__main__":
    uvicorn.run(
        "notes_backend.src.api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
    )

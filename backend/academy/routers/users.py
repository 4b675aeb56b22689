# academy/routers/users.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from academy import auth, models, schemas
from academy.db import get_db
from academy.services import users as user_service
from academy.services.store import commit
from typing import List
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"]
)

def _email_taken(db: Session, email: str, exclude_id: uuid.UUID = None) -> bool:
    query = db.query(models.User).filter(models.User.email == email)
    if exclude_id is not None:
        query = query.filter(models.User.id != exclude_id)
    return query.first() is not None

def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required.")
    return name

# --- Own profile (any signed-in user) ---
@router.get("/me", response_model=schemas.UserOut)
def read_me(current_user=Depends(auth.get_current_user)):
    return current_user

@router.put("/me", response_model=schemas.UserOut)
def update_me(
    payload: schemas.ProfileUpdate,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    current_user.name = _clean_name(payload.name)
    current_user.contact_number = user_service.clean_contact_number(payload.contact_number)
    current_user.profile_image_url = (payload.profile_image_url or "").strip() or None
    commit(db, "profile update")
    db.refresh(current_user)
    return current_user

# --- Staff list (admin only) ---
@router.get("", response_model=List[schemas.UserOut])
def list_users(
    current_user=Depends(auth.require_admin),
    db: Session = Depends(get_db)
):
    return db.query(models.User).order_by(models.User.created_at.desc(), models.User.name).all()

# --- Create staff account (admin only) ---
@router.post("", response_model=schemas.UserCreated, status_code=201)
def create_user(
    payload: schemas.UserCreate,
    current_user=Depends(auth.require_admin),
    db: Session = Depends(get_db)
):
    if _email_taken(db, payload.email):
        raise HTTPException(status_code=400, detail="User already exists")

    temporary_password = user_service.generate_temporary_password()
    new_user = models.User(
        name=_clean_name(payload.name),
        email=payload.email,
        contact_number=user_service.clean_contact_number(payload.contact_number),
        role=payload.role,
        password_hash=auth.hash_password(temporary_password)
    )
    db.add(new_user)
    commit(db, "user create")
    db.refresh(new_user)
    logger.info("User created. user=%s role=%s by=%s", new_user.id, new_user.role, current_user.id)
    return {"user": new_user, "temporary_password": temporary_password}

# --- Update staff account (admin only) ---
@router.put("/{user_id}", response_model=schemas.UserOut)
def update_user(
    user_id: uuid.UUID,
    payload: schemas.UserUpdate,
    current_user=Depends(auth.require_admin),
    db: Session = Depends(get_db)
):
    user = db.get(models.User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if _email_taken(db, payload.email, exclude_id=user_id):
        raise HTTPException(status_code=400, detail="Email already in use")

    user.name = _clean_name(payload.name)
    user.email = payload.email
    user.contact_number = user_service.clean_contact_number(payload.contact_number)
    user.role = payload.role
    commit(db, "user update")
    db.refresh(user)
    return user

# --- Delete staff account (admin only) ---
@router.delete("/{user_id}")
def delete_user(
    user_id: uuid.UUID,
    current_user=Depends(auth.require_admin),
    db: Session = Depends(get_db)
):
    user_service.delete_user(db, user_id, current_user)
    return {"message": f"User {user_id} deleted successfully"}

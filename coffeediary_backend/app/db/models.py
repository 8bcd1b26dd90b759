# models.py  (local mirror of the hosted schema: users + coffee_entries)

from __future__ import annotations
from typing import Optional
from uuid import uuid4
from sqlmodel import SQLModel, Field, Column, JSON
from datetime import datetime, timezone


def _uuid() -> str:
    return str(uuid4())

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- Identity (stands in for the platform's auth schema) ----------

class UserAccount(SQLModel, table=True):
    id: str = Field(default_factory=_uuid, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    email_confirmed: bool = True
    created_at: datetime = Field(default_factory=utcnow)

class AuthToken(SQLModel, table=True):
    token: str = Field(primary_key=True)
    user_id: str = Field(foreign_key="useraccount.id", index=True, ondelete="CASCADE")
    created_at: datetime = Field(default_factory=utcnow)


# ---------- Profiles (one per identity) ----------

class UserProfile(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(foreign_key="useraccount.id", primary_key=True, ondelete="CASCADE")
    username: Optional[str] = Field(default=None, unique=True)
    nickname: str
    bio: Optional[str] = None
    favorite_types: Optional[list] = Field(default=None, sa_column=Column(JSON))
    avatar_url: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ---------- Tasting entries ----------

class CoffeeEntry(SQLModel, table=True):
    __tablename__ = "coffee_entries"

    id: str = Field(default_factory=_uuid, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    bean_name: str
    bean_origin: Optional[str] = None
    roast_level: Optional[str] = None
    shop: Optional[str] = None
    brew_method: Optional[str] = None
    made_by_user: bool = True
    grind_size: Optional[str] = None
    sourness: int = 3
    sweetness: int = 3
    bitterness: int = 3
    richness: int = 3
    flavor_notes: Optional[list] = Field(default=None, sa_column=Column(JSON))
    rating: int = 3
    memo: Optional[str] = None
    photos: Optional[list] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

# schemas.py  (entries, profiles, auth, dashboard views)

from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict
from pydantic import BaseModel, Field, conint, constr, ConfigDict, field_validator


# ===================== Enums & vocabularies =====================

class RoastLevel(str, Enum):
    LIGHT = "浅煎り"
    MEDIUM_LIGHT = "中浅煎り"
    MEDIUM = "中煎り"
    MEDIUM_DARK = "中深煎り"
    DARK = "深煎り"

ROAST_LEVELS: List[str] = [r.value for r in RoastLevel]
OTHER_ROAST_LABEL = "その他/不明"      # histogram bucket for empty/unknown roast

class SortMode(str, Enum):
    DATE = "date"
    RATING = "rating"

FLAVOR_NOTES: List[str] = [
    "ナッティ", "チョコレート", "キャラメル", "ベリー系", "柑橘系", "フローラル",
    "スパイシー", "ハーブ", "フルーティ", "ワイニー", "スイート",
]

COFFEE_TYPES: List[str] = [
    "浅煎り", "中煎り", "深煎り", "エスプレッソ", "カフェラテ",
    "ハンドドリップ", "コールドブリュー", "シングルオリジン", "ブレンド",
]

TASTE_ATTRIBUTES: List[str] = ["sourness", "sweetness", "bitterness", "richness"]
TASTE_LABELS: Dict[str, str] = {
    "sourness": "酸味", "sweetness": "甘味", "bitterness": "苦味", "richness": "コク",
}

NONE_LABEL = "なし"                  # top method/origin when nothing recorded
DEFAULT_NICKNAME = "名称未設定"       # set by the registration trigger
NAV_FALLBACK_NICKNAME = "名前未設定"  # header fallback when no profile row

NICKNAME_MAX = 20
BIO_MAX = 100
TASTE_DEFAULT = 3

Score = conint(ge=1, le=5)


# ===================== Entries =====================

class EntryCreate(BaseModel):
    bean_name: constr(strip_whitespace=True, min_length=1)
    bean_origin: Optional[str] = None
    roast_level: Optional[RoastLevel] = None
    shop: Optional[str] = None
    brew_method: Optional[str] = None
    made_by_user: bool = True
    grind_size: Optional[str] = None          # only meaningful when made_by_user
    sourness: Score = TASTE_DEFAULT
    sweetness: Score = TASTE_DEFAULT
    bitterness: Score = TASTE_DEFAULT
    richness: Score = TASTE_DEFAULT
    flavor_notes: List[str] = Field(default_factory=list)
    rating: Score = TASTE_DEFAULT
    memo: Optional[str] = None
    photos: List[str] = Field(default_factory=list)

    @field_validator("grind_size")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return (v or "").strip() or None


class Entry(BaseModel):
    """Stored entry as read back from the store.

    Scores are not range-checked here: aggregation must tolerate rows
    written by other clients.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    bean_name: str = ""
    bean_origin: Optional[str] = None
    roast_level: Optional[str] = None
    shop: Optional[str] = None
    brew_method: Optional[str] = None
    made_by_user: bool = True
    grind_size: Optional[str] = None
    sourness: int = TASTE_DEFAULT
    sweetness: int = TASTE_DEFAULT
    bitterness: int = TASTE_DEFAULT
    richness: int = TASTE_DEFAULT
    flavor_notes: List[str] = Field(default_factory=list)
    rating: int = TASTE_DEFAULT
    memo: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    created_at: datetime

    @field_validator("flavor_notes", "photos", mode="before")
    @classmethod
    def _null_list(cls, v):
        return v or []

    @field_validator("sourness", "sweetness", "bitterness", "richness", "rating", mode="before")
    @classmethod
    def _null_score(cls, v):
        return TASTE_DEFAULT if v is None else v


class EntryFilter(BaseModel):
    q: str = ""
    origin: str = ""
    roast: str = ""
    brew_method: str = ""
    min_rating: conint(ge=0, le=5) = 0
    sort: SortMode = SortMode.DATE


# ===================== Profiles =====================

class Profile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    username: Optional[str] = None
    nickname: str = DEFAULT_NICKNAME
    bio: Optional[str] = None
    favorite_types: List[str] = Field(default_factory=list)
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("favorite_types", mode="before")
    @classmethod
    def _null_list(cls, v):
        return v or []

    def is_incomplete(self) -> bool:
        return not self.bio or not self.favorite_types


class ProfileUpdate(BaseModel):
    nickname: constr(strip_whitespace=True, min_length=1, max_length=NICKNAME_MAX)
    bio: constr(max_length=BIO_MAX) = ""
    favorite_types: List[str] = Field(default_factory=list)
    avatar_url: Optional[str] = None


# ===================== Auth =====================

class AuthUser(BaseModel):
    id: str
    email: str
    nickname: Optional[str] = None

class AuthSession(BaseModel):
    access_token: str
    user: AuthUser

class SignUpIn(BaseModel):
    email: constr(strip_whitespace=True, min_length=1)
    password: str
    nickname: constr(strip_whitespace=True) = ""

class LoginIn(BaseModel):
    email: constr(strip_whitespace=True, min_length=1)
    password: str

class PasswordResetIn(BaseModel):
    email: str = ""


# ===================== Dashboard =====================

class Histogram(BaseModel):
    labels: List[str]
    data: List[float]

class DashboardSummary(BaseModel):
    total: int
    avg_rating: str                 # one decimal, "0.0" when empty
    top_method: str
    top_origin: str
    this_month: int

class Trends(BaseModel):
    roast_levels: Histogram
    ratings: Histogram
    monthly: Histogram
    taste_profile: Histogram
    brew_methods: Histogram

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from coffeediary_backend.app.services.router_helpers import entry_helpers as H
from .deps import Page, read_image, require_page

router = APIRouter(prefix="/record", tags=["record"])


@router.get("")
def record_form(page: Page = Depends(require_page)) -> Dict[str, Any]:
    return H.record_form_options()


@router.post("")
def record_entry(
    page: Page = Depends(require_page),
    bean_name: str = Form(""),
    bean_origin: Optional[str] = Form(None),
    roast_level: Optional[str] = Form(None),
    shop: Optional[str] = Form(None),
    brew_method: Optional[str] = Form(None),
    made_by_user: bool = Form(True),
    grind_size: Optional[str] = Form(None),
    sourness: Optional[str] = Form(None),
    sweetness: Optional[str] = Form(None),
    bitterness: Optional[str] = Form(None),
    richness: Optional[str] = Form(None),
    rating: Optional[str] = Form(None),
    flavor_notes: List[str] = Form([]),
    custom_flavor: Optional[str] = Form(None),
    memo: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
):
    """
    Multipart form. The photo (if any) is stored first and its public URL
    goes into the entry's photo list.
    """
    fields = {
        "bean_name": bean_name, "bean_origin": bean_origin, "roast_level": roast_level,
        "shop": shop, "brew_method": brew_method, "made_by_user": made_by_user,
        "grind_size": grind_size, "sourness": sourness, "sweetness": sweetness,
        "bitterness": bitterness, "richness": richness, "rating": rating,
        "flavor_notes": flavor_notes, "custom_flavor": custom_flavor, "memo": memo,
    }
    view = H.record_entry(page.client, page.user, fields, read_image("photo", photo))
    return JSONResponse(view, status_code=201)

"""
Auth Router
Username/email + password login and account registration
"""

from fastapi import APIRouter, Depends

from tourguide.core.errors import MethodNotAllowedError
from tourguide.db.storage import Storage, get_storage
from tourguide.models.user import LoginRequest, RegisterRequest, UserOut
from tourguide.services import auth as auth_service

router = APIRouter(prefix="/api/auth", tags=["authentication"])


@router.post("/login", response_model=UserOut)
async def login(body: LoginRequest, storage: Storage = Depends(get_storage)):
    """
    Check credentials and return the user without the password.

    Looks the user up by username first, then by email. No token or session
    is issued; the client keeps the returned user.
    """
    return await auth_service.authenticate(storage, body.username, body.email, body.password)


@router.api_route("/login", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def login_wrong_method():
    raise MethodNotAllowedError("Method not allowed - Only POST requests are accepted for login")


@router.post("/register", status_code=201, response_model=UserOut)
async def register(body: RegisterRequest, storage: Storage = Depends(get_storage)):
    """
    Create a tourist or guide account. Guides may include `guide_profile`,
    which is stored as a separate guide profile document.
    """
    return await auth_service.register(storage, body)

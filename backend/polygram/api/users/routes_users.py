"""User account routes."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from polygram.api.deps import (
    clear_session_cookie,
    get_current_user,
    get_optional_user,
    get_user_service,
    set_session_cookie,
)
from polygram.domain.users.models import User
from polygram.domain.users.services import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


class RegisterRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyRequest(BaseModel):
    username: Optional[str] = None
    otp: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class EditDetailsRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None


class SendOTPRequest(BaseModel):
    email: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None
    new_password: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None


class GoogleOAuthRequest(BaseModel):
    token: Optional[str] = None
    type: Optional[str] = None  # 'login' never creates an account


class ProfilePictureRequest(BaseModel):
    image: Optional[str] = None  # data:image/...;base64,...


class DeleteAccountRequest(BaseModel):
    password: Optional[str] = None


def public_profile(user: User) -> dict:
    """User fields safe to show to anyone."""
    return {
        "id": user.id,
        "username": user.username,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "bio": user.bio,
        "profile_picture": user.profile_picture,
        "followed_topics": list(user.followed_topics),
        "created_at": user.created_at,
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, service: UserService = Depends(get_user_service)):
    """Create an unverified account and email its OTP."""
    await service.register(
        first_name=request.first_name,
        last_name=request.last_name,
        username=request.username,
        email=request.email,
        password=request.password,
    )
    return {"msg": "User created successfully"}


@router.post("/verify")
async def verify(
    request: VerifyRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
):
    """Verify the account with its OTP and log in."""
    user = await service.verify(request.username, request.otp)
    set_session_cookie(response, user.id)
    return {"msg": "Account verified & Logged In"}


@router.post("/login")
async def login(
    request: LoginRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
):
    user = await service.login(request.username, request.password)
    set_session_cookie(response, user.id)
    logger.info("User %s logged in", user.id)
    return {"msg": "Successfully Logged In"}


@router.post("/logout")
async def logout(response: Response):
    clear_session_cookie(response)
    return {"msg": "Successfully Logged Out"}


@router.get("/is-logged-in")
async def is_logged_in(user: Optional[User] = Depends(get_optional_user)):
    """Never fails; a stale or invalid cookie is cleared."""
    return {"data": {"is_user_logged_in": user is not None}}


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)):
    return {"msg": "User Found", "data": {"user": {**public_profile(user), "email": user.email}}}


@router.put("/me")
async def edit_details(
    request: EditDetailsRequest,
    user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    await service.edit_details(user, request.first_name, request.last_name, request.bio)
    return {"msg": "User details updated successfully"}


@router.post("/send-otp", status_code=status.HTTP_201_CREATED)
async def send_otp(request: SendOTPRequest, service: UserService = Depends(get_user_service)):
    """Email a password reset OTP."""
    await service.send_reset_otp(request.email)
    return {"msg": "OTP send"}


@router.post("/forgot-password")
async def forgot_password(
    request: ForgotPasswordRequest, service: UserService = Depends(get_user_service)
):
    await service.forgot_password(request.email, request.otp, request.new_password)
    return {"msg": "Password changed successfully"}


@router.post("/change-password", status_code=status.HTTP_201_CREATED)
async def change_password(
    request: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    await service.change_password(user, request.old_password, request.new_password)
    return {"msg": "Password changed successfully"}


@router.post("/google-oauth")
async def google_oauth(
    request: GoogleOAuthRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
):
    user = await service.google_oauth(request.token, request.type)
    set_session_cookie(response, user.id)
    return {"msg": "Logged In Successfully"}


@router.put("/profile-picture", status_code=status.HTTP_201_CREATED)
async def update_profile_picture(
    request: ProfilePictureRequest,
    user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    image_url = await service.update_profile_picture(user, request.image)
    return {"msg": "Profile picture updated successfully", "data": {"profile_picture": image_url}}


@router.post("/delete-account")
async def delete_account(
    request: DeleteAccountRequest,
    response: Response,
    user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Delete the account and everything it owns, then log out."""
    await service.delete_account(user, request.password)
    clear_session_cookie(response)
    return {"msg": "Account deleted successfully"}


@router.get("/{username}")
async def get_user(username: str, service: UserService = Depends(get_user_service)):
    """Public profile of a verified user."""
    user = await service.get_public_user(username)
    return {"msg": "User Found", "data": {"user": public_profile(user)}}

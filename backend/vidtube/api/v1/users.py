# 사용자 라우터 (/api/v1/users)
# - 회원가입, 로그인, 로그아웃, 토큰 재발급
# - 비밀번호 변경, 현재 사용자 조회, 정보/아바타/커버 이미지 수정
# - 채널 프로필, 시청 기록
#
# 라우트마다 pipeline(...)에 실행할 요청 처리 단계를 순서대로 적는다.

from fastapi import APIRouter, Depends, Response, status

from ...core.security import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, cookie_options
from ...schemas.response_schema import envelope
from ...schemas.user_schema import (
    ChangePasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
    UpdateDetailsRequest,
)
from ...services.account_service import AccountService, get_account_service
from ...services.auth_service import AuthService, get_auth_service
from ..context import RequestContext, accept_files, authenticate, parse_body, pipeline

router = APIRouter(prefix="/users", tags=["users"])

register_stages = pipeline(parse_body, accept_files("avatar", "coverImage"))
body_stages = pipeline(parse_body)
auth_stages = pipeline(authenticate)
auth_body_stages = pipeline(authenticate, parse_body)
avatar_stages = pipeline(authenticate, accept_files("avatar"))
cover_image_stages = pipeline(authenticate, accept_files("coverImage"))


def _set_token_cookies(response: Response, tokens: TokenPair) -> None:
    options = cookie_options()
    response.set_cookie(ACCESS_TOKEN_COOKIE, tokens.access_token, **options)
    response.set_cookie(REFRESH_TOKEN_COOKIE, tokens.refresh_token, **options)


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="회원가입 (중복 체크, 아바타 업로드 포함)")
async def register(ctx: RequestContext = Depends(register_stages), service: AuthService = Depends(get_auth_service)):
    payload = ctx.parsed(RegisterRequest)
    user = await service.register(payload, ctx.file_path("avatar"), ctx.file_path("coverImage"))
    return envelope(user, "User registered successfully", status.HTTP_201_CREATED)

@router.post("/login", summary="로그인 (JWT Access/Refresh 토큰 발급, 쿠키 설정)")
async def login(response: Response, ctx: RequestContext = Depends(body_stages), service: AuthService = Depends(get_auth_service)):
    result = await service.login(ctx.parsed(LoginRequest))
    _set_token_cookies(response, TokenPair(access_token=result.access_token, refresh_token=result.refresh_token))
    return envelope(result, "User logged in successfully")

@router.post("/logout", summary="로그아웃 (refresh 토큰 삭제, 쿠키 제거)")
async def logout(response: Response, ctx: RequestContext = Depends(auth_stages), service: AuthService = Depends(get_auth_service)):
    await service.logout(ctx.user_id)
    options = cookie_options()
    response.delete_cookie(ACCESS_TOKEN_COOKIE, **options)
    response.delete_cookie(REFRESH_TOKEN_COOKIE, **options)
    return envelope({}, "User logged out")

@router.post("/refresh-token", summary="Access 토큰 재발급 (refresh 토큰 rotation)")
async def refresh_token(response: Response, ctx: RequestContext = Depends(body_stages), service: AuthService = Depends(get_auth_service)):
    presented = ctx.request.cookies.get(REFRESH_TOKEN_COOKIE) or ctx.parsed(RefreshRequest).refresh_token
    tokens = await service.refresh(presented)
    _set_token_cookies(response, tokens)
    return envelope(tokens, "Access token refreshed")

@router.post("/change-password", summary="비밀번호 변경")
async def change_password(ctx: RequestContext = Depends(auth_body_stages), service: AuthService = Depends(get_auth_service)):
    await service.change_password(ctx.user_id, ctx.parsed(ChangePasswordRequest))
    return envelope({}, "Password changed successfully")

@router.post("/get-user", summary="현재 사용자 조회")
@router.get("/current-user", summary="현재 사용자 조회")
async def current_user(ctx: RequestContext = Depends(auth_stages), service: AccountService = Depends(get_account_service)):
    user = await service.current_user(ctx.user_id)
    return envelope(user, "Current user fetched successfully")

@router.post("/update-details", summary="이름/이메일 수정")
@router.patch("/update-details", summary="이름/이메일 수정")
async def update_details(ctx: RequestContext = Depends(auth_body_stages), service: AccountService = Depends(get_account_service)):
    user = await service.update_details(ctx.user_id, ctx.parsed(UpdateDetailsRequest))
    return envelope(user, "Account details updated successfully")

@router.post("/update-avatar", summary="아바타 교체")
@router.patch("/update-avatar", summary="아바타 교체")
async def update_avatar(ctx: RequestContext = Depends(avatar_stages), service: AccountService = Depends(get_account_service)):
    user = await service.update_avatar(ctx.user_id, ctx.file_path("avatar"))
    return envelope(user, "Avatar updated successfully")

@router.post("/update-coverImage", summary="커버 이미지 교체")
@router.patch("/update-coverImage", summary="커버 이미지 교체")
async def update_cover_image(ctx: RequestContext = Depends(cover_image_stages), service: AccountService = Depends(get_account_service)):
    user = await service.update_cover_image(ctx.user_id, ctx.file_path("coverImage"))
    return envelope(user, "Cover image updated successfully")

@router.get("/c/{username}", summary="채널 프로필 (구독자 수, 구독 여부)")
async def channel_profile(username: str, ctx: RequestContext = Depends(auth_stages), service: AccountService = Depends(get_account_service)):
    channel = await service.channel_profile(username, ctx.user_id)
    return envelope(channel, "Channel fetched successfully")

@router.get("/history", summary="시청 기록")
async def watch_history(ctx: RequestContext = Depends(auth_stages), service: AccountService = Depends(get_account_service)):
    history = await service.watch_history(ctx.user_id)
    return envelope(history, "Watch history fetched successfully")

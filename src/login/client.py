"""
Login client.

Purpose:
- Password, social, cross-auth and platform account authentication
- Session token storage (remembered through the "login" save slot)
- Token validation and payload accessors
- User attributes and account linking

Identity backend errors come back as {"error": {"code", "description"}} and
are classified with classify_login_response.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qs, quote, urlencode, urlparse

import httpx

from src.error_handler import ErrorHandler
from src.integrations.clients.real_http.request_builder import RequestBuilder
from src.integrations.contracts.interfaces import ErrorRecord, RequestVerb, Result, SaveStore, TargetPlatform
from src.integrations.contracts.login import (
    AccountLinkingCode,
    AuthenticationRequest,
    AuthToken,
    GetAttributesRequest,
    LoginData,
    LoginUrlResponse,
    PasswordResetRequest,
    PlatformTokenResponse,
    RegistrationRequest,
    SocialUrlResponse,
    TokenValidationRequest,
    UpdateAttributesRequest,
    UserAttribute,
    UserAttributesResponse,
)
from src.integrations.policy.codec import SchemaMismatchError, build_model, decode_model, encode_model, parse_json
from src.integrations.policy.completion import Completion, ErrorCallback, SuccessCallback
from src.integrations.policy.dispatch import dispatch
from src.integrations.policy.response_classifier import classify_login_response
from src.login import token as token_utils
from src.utils.config_loader import SDKConfig

logger = logging.getLogger(__name__)

SAVE_SLOT = "login"
MISSING_TOKEN_MESSAGE = "Can't find token in login url"

UrlOpener = Callable[[str], Any]


class LoginClient:
    def __init__(
        self,
        config: SDKConfig,
        builder: RequestBuilder,
        saves: SaveStore,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self.config = config
        self.builder = builder
        self.saves = saves
        self.errors = error_handler or ErrorHandler()

        self.api_url = config.login_api_url.rstrip("/")
        self.project_id = config.project_id
        self.login_project_id = config.login_project_id

        self.login_data = LoginData()
        self.user_attributes: List[UserAttribute] = []
        self.pending_social_authentication_url = ""

    def initialize(self, project_id: Optional[str] = None, login_project_id: Optional[str] = None) -> None:
        if project_id:
            self.project_id = project_id
        if login_project_id:
            self.login_project_id = login_project_id
        self.load_saved()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load_saved(self) -> None:
        data = self.saves.load(SAVE_SLOT)
        try:
            self.login_data = build_model(LoginData, data) if data else LoginData()
        except SchemaMismatchError as exc:
            logger.warning("Ignoring unreadable login save: %s", exc)
            self.login_data = LoginData()

    def save(self) -> None:
        if self.login_data.remember_me:
            self.saves.save(SAVE_SLOT, self.login_data.model_dump())
        else:
            self.saves.delete(SAVE_SLOT)

    def get_login_data(self) -> LoginData:
        return self.login_data.model_copy(deep=True)

    def drop_login_data(self) -> None:
        self.login_data = LoginData()
        self.saves.delete(SAVE_SLOT)

    def set_token(self, token: str) -> None:
        self.login_data.auth_token = AuthToken(jwt=token, verified=False)
        self.save()

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    def _url(self, path: str, **params: str) -> str:
        url = f"{self.api_url}/{path.lstrip('/')}"
        return f"{url}?{urlencode(params)}" if params else url

    def _auth_params(self) -> Dict[str, str]:
        params = {"projectId": self.login_project_id}
        if self.config.callback_url:
            params["login_url"] = self.config.callback_url
        return params

    def registration_url(self) -> str:
        path = "proxy/registration" if self.config.use_proxy_login else "user"
        return self._url(path, **self._auth_params())

    def login_url(self) -> str:
        path = "proxy/login" if self.config.use_proxy_login else "login"
        return self._url(path, **self._auth_params())

    def reset_password_url(self) -> str:
        path = "proxy/password/reset" if self.config.use_proxy_login else "password/reset/request"
        return self._url(path, **self._auth_params())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _send(
        self,
        completion: Completion,
        url: str,
        on_response: Callable[[httpx.Response], None],
        verb: RequestVerb = RequestVerb.POST,
        auth_token: str = "",
        content: str = "",
    ) -> "asyncio.Future[Result[Any]]":
        dispatch(
            self.builder,
            url,
            verb,
            completion,
            on_response,
            auth_token=auth_token,
            content=content,
            classify=classify_login_response,
            error_handler=self.errors,
        )
        return completion.future

    def _apply_login_url(self, completion: Completion, response: httpx.Response) -> Optional[str]:
        """Pull the session token out of a returned ``login_url``; fails the completion when absent."""
        login_url = decode_model(response.text, LoginUrlResponse).login_url
        tokens = parse_qs(urlparse(login_url).query).get("token")
        if not tokens or not tokens[0]:
            logger.error("%s: %s", MISSING_TOKEN_MESSAGE, login_url)
            completion.fail(ErrorRecord(response.status_code, 0, MISSING_TOKEN_MESSAGE))
            return None
        return tokens[0]

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def register_user(
        self,
        username: str,
        password: str,
        email: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[None]]":
        completion = Completion(on_success, on_error, self.errors, name="register_user")
        body = RegistrationRequest(username=username, password=password, email=email)
        return self._send(
            completion,
            self.registration_url(),
            lambda response: completion.succeed(None),
            content=encode_model(body),
        )

    def authenticate_user(
        self,
        username: str,
        password: str,
        remember_me: bool = False,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[LoginData]]":
        """Password login. The session is stored and then validated before the result is delivered."""
        completion = Completion(on_success, on_error, self.errors, name="authenticate_user")
        body = AuthenticationRequest(username=username, password=password, remember_me=remember_me)

        def on_response(response: httpx.Response) -> None:
            jwt = self._apply_login_url(completion, response)
            if jwt is None:
                return
            self.login_data = LoginData(
                auth_token=AuthToken(jwt=jwt),
                username=username,
                remember_me=remember_me,
            )
            self.save()
            self._validate(completion)

        return self._send(completion, self.login_url(), on_response, content=encode_model(body))

    def reset_user_password(
        self,
        username: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[None]]":
        completion = Completion(on_success, on_error, self.errors, name="reset_user_password")
        return self._send(
            completion,
            self.reset_password_url(),
            lambda response: completion.succeed(None),
            content=encode_model(PasswordResetRequest(username=username)),
        )

    def validate_token(
        self,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[LoginData]]":
        completion = Completion(on_success, on_error, self.errors, name="validate_token")
        self._validate(completion)
        return completion.future

    def _validate(self, completion: Completion) -> None:
        body = TokenValidationRequest(token=self.login_data.auth_token.jwt)

        def on_response(response: httpx.Response) -> None:
            self.login_data.auth_token.verified = True
            self.save()
            completion.succeed(self.get_login_data())

        self._send(completion, self.config.token_validation_url, on_response, content=encode_model(body))

    def get_social_authentication_url(
        self,
        provider: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[str]]":
        completion = Completion(on_success, on_error, self.errors, name="get_social_authentication_url")
        url = self._url(f"social/{quote(provider, safe='')}/login_url", **self._auth_params())
        return self._send(
            completion,
            url,
            lambda response: completion.succeed(decode_model(response.text, SocialUrlResponse).url),
            verb=RequestVerb.GET,
        )

    def launch_social_authentication(
        self,
        social_authentication_url: str,
        opener: Optional[UrlOpener] = None,
        remember_me: bool = False,
    ) -> None:
        """Remember the provider page URL and open it; the host feeds the resulting token to set_token."""
        self.pending_social_authentication_url = social_authentication_url
        self.login_data.remember_me = remember_me

        if opener is not None:
            opener(social_authentication_url)
        elif self.config.use_platform_browser:
            webbrowser.open(social_authentication_url)

    def get_pending_social_authentication_url(self) -> str:
        return self.pending_social_authentication_url

    def authenticate_with_session_ticket(
        self,
        provider: str,
        session_ticket: str,
        app_id: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[LoginData]]":
        completion = Completion(on_success, on_error, self.errors, name="authenticate_with_session_ticket")
        url = self._url(
            f"social/{quote(provider, safe='')}/cross_auth",
            projectId=self.login_project_id,
            app_id=app_id,
            with_logout="1",
            session_ticket=session_ticket,
        )

        def on_response(response: httpx.Response) -> None:
            jwt = self._apply_login_url(completion, response)
            if jwt is None:
                return
            self.set_token(jwt)
            completion.succeed(self.get_login_data())

        return self._send(completion, url, on_response, verb=RequestVerb.GET)

    def authenticate_platform_account_user(
        self,
        user_id: str,
        platform: TargetPlatform,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[LoginData]]":
        completion = Completion(on_success, on_error, self.errors, name="authenticate_platform_account_user")
        query = urlencode({"user_id": user_id, "platform": TargetPlatform(platform).value})
        url = f"{self.config.platform_authentication_url}?{query}"

        def on_response(response: httpx.Response) -> None:
            self.set_token(decode_model(response.text, PlatformTokenResponse).token)
            completion.succeed(self.get_login_data())

        return self._send(completion, url, on_response)

    # ------------------------------------------------------------------
    # User attributes
    # ------------------------------------------------------------------

    def update_user_attributes(
        self,
        auth_token: str,
        user_id: str = "",
        keys: Optional[List[str]] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[List[UserAttribute]]]":
        completion = Completion(on_success, on_error, self.errors, name="update_user_attributes")
        body = GetAttributesRequest(
            keys=list(keys or []),
            publisher_project_id=self.project_id or None,
            user_id=user_id or None,
        )

        def on_response(response: httpx.Response) -> None:
            data = parse_json(response.text)
            # The backend answers with a bare array of attributes.
            if isinstance(data, list):
                data = {"attributes": data}
            self.user_attributes = build_model(UserAttributesResponse, data).attributes
            completion.succeed(list(self.user_attributes))

        return self._send(
            completion,
            self._url("attributes/users/me/get"),
            on_response,
            auth_token=auth_token,
            content=encode_model(body),
        )

    def modify_user_attributes(
        self,
        auth_token: str,
        attributes: List[UserAttribute],
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[None]]":
        body = UpdateAttributesRequest(attributes=list(attributes), publisher_project_id=self.project_id or None)
        return self._update_attributes("modify_user_attributes", auth_token, body, on_success, on_error)

    def remove_user_attributes(
        self,
        auth_token: str,
        keys: List[str],
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[None]]":
        body = UpdateAttributesRequest(publisher_project_id=self.project_id or None, removing_keys=list(keys))
        return self._update_attributes("remove_user_attributes", auth_token, body, on_success, on_error)

    def _update_attributes(
        self,
        name: str,
        auth_token: str,
        body: UpdateAttributesRequest,
        on_success: Optional[SuccessCallback],
        on_error: Optional[ErrorCallback],
    ) -> "asyncio.Future[Result[None]]":
        completion = Completion(on_success, on_error, self.errors, name=name)
        return self._send(
            completion,
            self._url("attributes/users/me/update"),
            lambda response: completion.succeed(None),
            auth_token=auth_token,
            content=encode_model(body),
        )

    def get_user_attributes(self) -> List[UserAttribute]:
        return list(self.user_attributes)

    # ------------------------------------------------------------------
    # Account linking
    # ------------------------------------------------------------------

    def create_account_linking_code(
        self,
        auth_token: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[str]]":
        completion = Completion(on_success, on_error, self.errors, name="create_account_linking_code")
        return self._send(
            completion,
            self._url("users/account/code"),
            lambda response: completion.succeed(decode_model(response.text, AccountLinkingCode).code),
            auth_token=auth_token,
        )

    def link_account(
        self,
        user_id: str,
        platform: TargetPlatform,
        code: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[None]]":
        completion = Completion(on_success, on_error, self.errors, name="link_account")
        query = urlencode({"user_id": user_id, "platform": TargetPlatform(platform).value, "code": code})
        return self._send(
            completion,
            f"{self.config.account_linking_url}?{query}",
            lambda response: completion.succeed(None),
        )

    # ------------------------------------------------------------------
    # Token accessors
    # ------------------------------------------------------------------

    @staticmethod
    def get_user_id(token: str) -> str:
        return token_utils.get_user_id(token)

    @staticmethod
    def get_token_provider(token: str) -> str:
        return token_utils.get_token_provider(token)

    @staticmethod
    def get_token_parameter(token: str, parameter: str) -> str:
        return token_utils.get_token_parameter(token, parameter)

    @staticmethod
    def is_master_account(token: str) -> bool:
        return token_utils.is_master_account(token)

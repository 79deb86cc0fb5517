# painel/auth.py
"""
Login fictício do painel.

Compara e-mail/senha com o par configurado e guarda um flag de sessão
(``orla33_mock_auth = "true"``). Não é autenticação de verdade: não há
hash, troca de token nem verificação no servidor de dados.

No navegador o flag fica num cookie de sessão (sem Max-Age), que some ao
fechar o navegador. O valor vai assinado com JWT para não ser forjado à mão.
"""
import asyncio
from typing import Callable, Dict, List, Optional

import jwt
from fastapi import Depends, HTTPException, Request, Response, status

from . import config
from .errors import InvalidCredentials
from .schemas import SessionUser

LOADING = "loading"
AUTHENTICATED = "authenticated"
UNAUTHENTICATED = "unauthenticated"

MOCK_USER_ID = "mock-user-123"
ALGO = "HS256"

Listener = Callable[[str, Optional[SessionUser]], None]


class MemoryStorage:
    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class CookieStorage:
    """Lê os cookies da requisição; as mudanças vão para a resposta em ``apply``."""

    def __init__(self, cookies: Dict[str, str]):
        self.cookies = dict(cookies)
        self.pending: Dict[str, Optional[str]] = {}

    def get_item(self, key: str) -> Optional[str]:
        token = self.pending[key] if key in self.pending else self.cookies.get(key)
        if not token:
            return None
        try:
            payload = jwt.decode(token, config.SECRET_KEY, algorithms=[ALGO])
        except jwt.PyJWTError:
            return None
        return payload.get("value")

    def set_item(self, key: str, value: str) -> None:
        self.pending[key] = jwt.encode({"value": value}, config.SECRET_KEY, algorithm=ALGO)

    def remove_item(self, key: str) -> None:
        self.pending[key] = None

    def apply(self, response: Response) -> None:
        for key, token in self.pending.items():
            if token is None:
                response.delete_cookie(key)
            else:
                response.set_cookie(key, token, httponly=True, samesite="lax")


class AuthGate:
    """Estado da sessão: loading -> authenticated | unauthenticated."""

    def __init__(self, storage, email: Optional[str] = None, password: Optional[str] = None,
                 delay_ms: Optional[int] = None):
        self.storage = storage
        self.email = config.MOCK_EMAIL if email is None else email
        self.password = config.MOCK_PASSWORD if password is None else password
        self.delay = (config.MOCK_AUTH_DELAY_MS if delay_ms is None else delay_ms) / 1000
        self.state = LOADING
        self.user: Optional[SessionUser] = None
        self._listeners: List[Listener] = []

    @property
    def is_authenticated(self) -> bool:
        return self.state == AUTHENTICATED

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, state: str, user: Optional[SessionUser]) -> None:
        self.state, self.user = state, user
        for listener in list(self._listeners):
            listener(state, user)

    def _mock_user(self) -> SessionUser:
        return SessionUser(id=MOCK_USER_ID, email=self.email)

    def start(self) -> str:
        if self.storage.get_item(config.SESSION_KEY) == "true":
            self._set(AUTHENTICATED, self._mock_user())
        else:
            self._set(UNAUTHENTICATED, None)
        return self.state

    async def sign_in(self, email: str, password: str) -> SessionUser:
        previous = (self.state, self.user)
        self._set(LOADING, self.user)
        await asyncio.sleep(self.delay)

        if email == self.email and password == self.password:
            user = self._mock_user()
            self.storage.set_item(config.SESSION_KEY, "true")
            self._set(AUTHENTICATED, user)
            return user

        self._set(*previous)
        if self.state == LOADING:
            self._set(UNAUTHENTICATED, None)
        raise InvalidCredentials()

    def sign_out(self) -> None:
        self.storage.remove_item(config.SESSION_KEY)
        self._set(UNAUTHENTICATED, None)


# -----------------------------------------------------------------------------
# Dependências FastAPI
# -----------------------------------------------------------------------------
def get_auth_gate(request: Request) -> AuthGate:
    gate = AuthGate(CookieStorage(request.cookies))
    gate.start()
    return gate


def require_session(gate: AuthGate = Depends(get_auth_gate)) -> SessionUser:
    if not gate.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Faça login para continuar")
    return gate.user

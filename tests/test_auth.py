import asyncio

import pytest
from fastapi import Response

from painel import config
from painel.auth import (
    AUTHENTICATED,
    LOADING,
    MOCK_USER_ID,
    UNAUTHENTICATED,
    AuthGate,
    CookieStorage,
    MemoryStorage,
)
from painel.errors import InvalidCredentials


def _gate(storage=None):
    return AuthGate(storage or MemoryStorage(), email="a@b.com", password="segredo", delay_ms=0)


def test_starts_loading_then_reads_storage():
    gate = _gate()
    assert gate.state == LOADING
    assert gate.start() == UNAUTHENTICATED

    remembered = _gate(MemoryStorage({config.SESSION_KEY: "true"}))
    assert remembered.start() == AUTHENTICATED
    assert remembered.user.id == MOCK_USER_ID
    assert remembered.user.email == "a@b.com"


def test_sign_in_persists_flag():
    storage = MemoryStorage()
    gate = _gate(storage)
    gate.start()

    user = asyncio.run(gate.sign_in("a@b.com", "segredo"))

    assert user.id == MOCK_USER_ID
    assert gate.is_authenticated
    assert storage.items == {config.SESSION_KEY: "true"}


def test_invalid_credentials_keep_previous_state():
    storage = MemoryStorage()
    gate = _gate(storage)
    gate.start()

    with pytest.raises(InvalidCredentials) as exc:
        asyncio.run(gate.sign_in("a@b.com", "errada"))
    assert exc.value.detail == "Credenciais inválidas"
    assert gate.state == UNAUTHENTICATED
    assert storage.items == {}


def test_listeners_see_transitions_until_unsubscribed():
    gate = _gate()
    seen = []
    unsubscribe = gate.subscribe(lambda state, user: seen.append(state))

    gate.start()
    asyncio.run(gate.sign_in("a@b.com", "segredo"))
    assert seen == [UNAUTHENTICATED, LOADING, AUTHENTICATED]

    unsubscribe()
    gate.sign_out()
    assert len(seen) == 3
    assert gate.state == UNAUTHENTICATED


def test_cookie_storage_signs_and_rejects_forged_values():
    storage = CookieStorage({})
    storage.set_item(config.SESSION_KEY, "true")
    assert storage.get_item(config.SESSION_KEY) == "true"

    response = Response()
    storage.apply(response)
    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{config.SESSION_KEY}=")
    assert "httponly" in cookie.lower()
    assert "max-age" not in cookie.lower()

    forged = CookieStorage({config.SESSION_KEY: "true"})
    assert forged.get_item(config.SESSION_KEY) is None
    assert _gate(forged).start() == UNAUTHENTICATED


def test_cookie_storage_remove():
    storage = CookieStorage({})
    storage.set_item(config.SESSION_KEY, "true")
    storage.remove_item(config.SESSION_KEY)
    assert storage.get_item(config.SESSION_KEY) is None

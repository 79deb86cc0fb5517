# painel/configuracoes.py
"""Configurações da loja: uma única linha (id = 1) em ``configuracoes_loja``."""
import logging
from datetime import datetime

from .gateway import Gateway, Row
from .schemas import Integrations, StoreSettings
from .utils import backend_call

logger = logging.getLogger(__name__)

TABLE = "configuracoes_loja"
SETTINGS_ID = 1


def settings_from_wire(row: Row) -> StoreSettings:
    return StoreSettings(
        store_name=row.get("nome_loja") or "",
        logo_url=row.get("logo_url") or "",
        opening_time=row.get("horario_abertura") or "18:00",
        closing_time=row.get("horario_fechamento") or "23:00",
        integrations=Integrations(
            whatsapp=bool(row.get("integracao_whatsapp")),
            payment_gateway=bool(row.get("integracao_gateway_pagamento")),
        ),
        updated_at=row.get("ultima_atualizacao"),
    )


def settings_to_wire(settings: StoreSettings) -> Row:
    return {
        "id": SETTINGS_ID,
        "nome_loja": settings.store_name,
        "logo_url": settings.logo_url,
        "horario_abertura": settings.opening_time,
        "horario_fechamento": settings.closing_time,
        "integracao_whatsapp": settings.integrations.whatsapp,
        "integracao_gateway_pagamento": settings.integrations.payment_gateway,
        "ultima_atualizacao": datetime.utcnow(),
    }


class SettingsService:
    def __init__(self, gateway: Gateway):
        self.gw = gateway

    def get_settings(self) -> StoreSettings:
        """Linha única; sem linha gravada devolve os valores padrão."""
        with backend_call(logger, "Erro ao buscar configurações", "Erro ao carregar configurações."):
            row = self.gw.table(TABLE).select("*").eq("id", SETTINGS_ID).single()
        return settings_from_wire(row or {})

    def save_settings(self, settings: StoreSettings) -> StoreSettings:
        with backend_call(logger, "Erro ao salvar configurações", "Erro ao salvar configurações."):
            rows = self.gw.table(TABLE).upsert(settings_to_wire(settings))
        return settings_from_wire(rows[0])

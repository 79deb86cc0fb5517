# painel/errors.py
"""Erros do painel.

Cada erro carrega a mensagem mostrada ao usuário (``detail``) e o status
HTTP usado pela API, no mesmo formato de ``HTTPException``.
"""


class PainelError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class BackendError(PainelError):
    """Falha de rede/validação/permissão no banco remoto."""
    status_code = 502


class GatewayError(BackendError):
    """Erro bruto devolvido pelo gateway de tabelas."""


class FormError(PainelError):
    """Formulário inválido: nada é enviado ao banco."""
    status_code = 400


class ComposerError(FormError):
    pass


class NotFound(PainelError):
    status_code = 404


class InvalidCredentials(PainelError):
    status_code = 401

    def __init__(self, detail: str = "Credenciais inválidas"):
        super().__init__(detail)

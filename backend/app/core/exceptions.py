"""
Exceções da aplicação.
Projeto: Guardiões Financeiro (Eventos Financeiros)

Define as exceções de domínio para um tratamento centralizado de erros.

NOTA: BusinessValidationError é distinta de pydantic.ValidationError.
- pydantic.ValidationError: erros de formato/tipo na entrada (FastAPI → 422)
- BusinessValidationError: violações de regra de negócio (nosso handler → 422)
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "BusinessValidationError",
    "ValidationError",       # alias de BusinessValidationError
    "ConflictError",
    "AuthenticationError",
    "StoreError",
    "StorageError",
    "SubmissionError",
]


class AppException(Exception):
    """
    Exceção base da aplicação.

    Attributes:
        status_code: HTTP status code devolvido ao cliente
        error_code: Identificador único do erro para o frontend
        detail: Mensagem legível para o usuário
        extra: Dados adicionais para o frontend
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    default_detail: str = "Erro interno"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Inicializa a exceção.

        Args:
            detail: Mensagem de erro (padrão: a da classe)
            error_code: Identificador único (padrão: o da classe)
            extra: Dados adicionais para o frontend (padrão: None)
        """
        self.detail = detail if detail is not None else self.default_detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(self.detail)


class NotFoundError(AppException):
    """
    Recurso não encontrado.

    O adaptador de registros devolve None para leituras simples; esta
    exceção só aparece na borda HTTP ou quando uma operação exige o registro.
    """

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"
    default_detail: str = "Recurso não encontrado"


class BusinessValidationError(ValueError, AppException):
    """
    Violação de regra de negócio ou de validação de formulário.

    Herda de ValueError para ser capturada pelos validadores Pydantic.
    Os erros por campo viajam em extra["fields"].

    Exemplos:
        - "Placa do veículo inválida"
        - "Extensão de arquivo não permitida: exe"
    """

    status_code: int = 422
    error_code: str = "BUSINESS_VALIDATION_ERROR"
    default_detail: str = "Validação dos dados falhou"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Chama AppException.__init__ diretamente para evitar o ValueError
        AppException.__init__(self, detail, error_code, extra)


# Alias de compatibilidade
ValidationError = BusinessValidationError


class ConflictError(AppException):
    """
    Conflito de estado.

    Usada quando a operação não pode ocorrer no estado atual,
    por exemplo um envio de formulário já em andamento.
    """

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"
    default_detail: str = "Conflito de estado"


class AuthenticationError(AppException):
    """Sessão ausente, expirada ou senha incorreta."""

    status_code: int = 401
    error_code: str = "NOT_AUTHENTICATED"
    default_detail: str = "Autenticação necessária"


class StoreError(AppException):
    """
    Falha do banco de dados.

    Carrega a mensagem original do backend; quem chama traduz para o usuário.
    """

    status_code: int = 502
    error_code: str = "STORE_ERROR"
    default_detail: str = "Erro ao acessar os eventos financeiros"


class StorageError(AppException):
    """Falha ao gravar ou remover um arquivo do bucket."""

    status_code: int = 502
    error_code: str = "STORAGE_ERROR"
    default_detail: str = "Erro ao enviar o arquivo"


class SubmissionError(AppException):
    """
    Falha ao salvar um formulário de evento.

    extra["notifications"] traz as notificações acumuladas no envio.
    """

    status_code: int = 502
    error_code: str = "SUBMISSION_FAILED"
    default_detail: str = "Ocorreu um erro ao processar os dados"

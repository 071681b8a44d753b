"""Service-layer error taxonomy.

Services raise these; create_app() registers a handler that renders them
as {"error": message} with the matching status code. Ownership mismatches
raise NotFoundError so another doctor's records are indistinguishable
from missing ones.
"""


class ServiceError(Exception):
    status_code = 500
    default_message = "Erro ao processar a solicitação"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Dados inválidos"


class AuthenticationError(ServiceError):
    status_code = 401
    default_message = "Não autorizado"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Recurso não encontrado"

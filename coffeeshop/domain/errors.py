# coffeeshop/domain/errors.py


class ServiceError(Exception):
    """Bazowy blad domenowy, routery mapuja go na status HTTP."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(ServiceError):
    status_code = 400


class Unauthorized(ServiceError):
    status_code = 401


class Forbidden(ServiceError):
    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409


class InternalError(ServiceError):
    status_code = 500


class GatewayError(InternalError):
    """Midtrans odpowiedzial bledem albo byl nieosiagalny."""

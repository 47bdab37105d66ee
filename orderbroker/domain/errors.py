# orderbroker/domain/errors.py


class OrderBrokerError(Exception):
    """Bazowy blad domenowy, niesie kod HTTP dla routerow."""

    status_code = 500


class NotFound(OrderBrokerError):
    status_code = 404


class Forbidden(OrderBrokerError):
    status_code = 403


class InvalidArgument(OrderBrokerError):
    status_code = 400


class Unauthenticated(OrderBrokerError):
    status_code = 401


class DeliveryFailed(OrderBrokerError):
    """Provider odrzucil wiadomosc. Obslugiwane tylko wewnatrz kolejki."""

    status_code = 502

# app/exceptions.py


class BookingAPIError(Exception):
    """Base error; the message is safe to return to the caller."""

    status_code = 500
    default_message = "Erro interno"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidTimeInput(BookingAPIError):
    status_code = 400
    default_message = "Data ou hora inválida"


class MissingBookingFields(BookingAPIError):
    status_code = 400
    default_message = "Dados em falta para criar o evento."


class MissingDeleteKey(BookingAPIError):
    status_code = 400
    default_message = "Falta o id do evento Google Calendar"


class NoEventsFound(BookingAPIError):
    status_code = 404
    default_message = "Nenhum evento encontrado"


class UpstreamNoIdentifier(BookingAPIError):
    status_code = 502
    default_message = "Evento criado mas sem ID retornado pelo Google."


class UpstreamCallFailed(BookingAPIError):
    status_code = 500
    default_message = "Erro ao comunicar com o Google Calendar"

    def __init__(self, operation: str, message: str | None = None):
        self.operation = operation
        super().__init__(message)


class EventNotFound(Exception):
    """Raised by the calendar adapter when the provider no longer has the event."""

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"event {event_id} not found")

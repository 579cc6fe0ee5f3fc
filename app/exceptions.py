"""
Errores de dominio del motor de reservas y de solicitudes de unión.

Los servicios lanzan estas excepciones; los routers las dejan propagar y
app.main las traduce a respuestas HTTP con el status_code de cada clase.
"""


class CourtBookingError(Exception):
    status_code = 400
    code = "court_booking_error"
    default_message = "Request could not be processed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


# Turnos y reservas


class SlotUnavailable(CourtBookingError):
    status_code = 409
    code = "slot_unavailable"
    default_message = "This slot is no longer available"


class InvalidWindow(CourtBookingError):
    code = "invalid_window"
    default_message = "The requested window is not part of the court schedule"


class CourtInactive(CourtBookingError):
    code = "court_inactive"
    default_message = "Court is not available for booking"


class InvalidSelection(CourtBookingError):
    code = "invalid_selection"
    default_message = "At least one distinct window must be selected"


class BookingNotFinished(CourtBookingError):
    code = "booking_not_finished"
    default_message = "A booking can only be completed after its window has ended"


class MaintenanceConflict(CourtBookingError):
    status_code = 409
    code = "maintenance_conflict"
    default_message = "Cannot block a window that already has a booking"


# Partidos y solicitudes


class DuplicateRequest(CourtBookingError):
    status_code = 409
    code = "duplicate_request"
    default_message = "You already have a pending or accepted request for this match"


class MatchFull(CourtBookingError):
    status_code = 409
    code = "match_full"
    default_message = "This match is not accepting more players"


class CannotJoinOwnMatch(CourtBookingError):
    code = "cannot_join_own_match"
    default_message = "You cannot join your own match"


class InvalidMatch(CourtBookingError):
    code = "invalid_match"
    default_message = "Match must be scheduled in the future"


class InvalidTransition(CourtBookingError):
    status_code = 409
    code = "invalid_transition"
    default_message = "Join request has already been processed"


# Concurrencia


class ConcurrencyConflict(CourtBookingError):
    status_code = 409
    code = "concurrency_conflict"
    default_message = "A concurrent update was detected, please retry"


# Permisos y búsquedas


class PermissionDenied(CourtBookingError):
    status_code = 403
    code = "permission_denied"
    default_message = "You are not allowed to perform this action"


class NotFound(CourtBookingError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class CourtNotFound(NotFound):
    code = "court_not_found"
    default_message = "Court not found"


class FacilityNotFound(NotFound):
    code = "facility_not_found"
    default_message = "Facility not found"


class BookingNotFound(NotFound):
    code = "booking_not_found"
    default_message = "Booking not found"


class MaintenanceBlockNotFound(NotFound):
    code = "maintenance_block_not_found"
    default_message = "Maintenance block not found"


class MatchNotFound(NotFound):
    code = "match_not_found"
    default_message = "Match not found"


class JoinRequestNotFound(NotFound):
    code = "join_request_not_found"
    default_message = "Join request not found"

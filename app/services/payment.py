"""
Punto de integración con el proveedor de pagos.

El motor de reservas llama a confirm() después de confirmar cada turno. Hoy no hay
un cobro real: NoopPaymentGateway aprueba todo. Un rechazo deja la reserva con
payment_status = pending, sin liberar el turno.
"""

import logging

from app.models.booking import Booking

logger = logging.getLogger(__name__)


class PaymentGateway:
    def confirm(self, booking: Booking) -> bool:
        raise NotImplementedError


class NoopPaymentGateway(PaymentGateway):
    def confirm(self, booking: Booking) -> bool:
        logger.debug(f"Payment auto-approved for booking {booking.id}")
        return True


def get_payment_gateway() -> PaymentGateway:
    return NoopPaymentGateway()

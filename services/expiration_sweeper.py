"""
Jobs periódicos sobre reservas
- Expiración de reservas impagas (cada 5 minutos)
- Cierre de estadías: PROCESSING -> COMPLETED pasado el período de gracia tras el checkout

Uso (cron): python -m services.expiration_sweeper [--job expire|complete|all] [--dry-run]
Seguros ante ejecuciones solapadas: cada reserva pasa por un primitivo de ReservationService
"""
import argparse
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import List

from sqlalchemy.orm import sessionmaker

from config import COMPLETION_GRACE_HOURS
from models.booking import Booking, BookingStatus
from services.errors import BookingNotFound, InvalidState
from utils.logging_utils import log_event


@dataclass
class SweepReport:
    examined: int = 0
    expired_order_codes: List[str] = field(default_factory=list)

    @property
    def expired_count(self) -> int:
        return len(self.expired_order_codes)


@dataclass
class CompletionReport:
    examined: int = 0
    completed_order_codes: List[str] = field(default_factory=list)

    @property
    def completed_count(self) -> int:
        return len(self.completed_order_codes)


# ========================================================================
# EXPIRACIÓN
# ========================================================================

def find_expired_candidates(session_factory: sessionmaker, now) -> List[tuple]:
    """(id, order_code) de reservas WAITING_PAYMENT con expires_at < now"""
    # La sesión se cierra antes de expirar: en SQLite cada transacción toma el lock de escritura
    with session_factory() as db:
        rows = (
            db.query(Booking.id, Booking.order_code)
            .filter(
                Booking.status == BookingStatus.WAITING_PAYMENT,
                Booking.expires_at < now,
            )
            .order_by(Booking.expires_at)
            .all()
        )
    return [(row[0], row[1]) for row in rows]


def run_expiration_sweep(service, session_factory: sessionmaker, clock) -> SweepReport:
    """Expira cada candidata vía service.expire(); las ya procesadas por otro sweep se ignoran"""
    now = clock.now()
    report = SweepReport()

    for booking_id, order_code in find_expired_candidates(session_factory, now):
        report.examined += 1
        try:
            if service.expire(booking_id):
                report.expired_order_codes.append(order_code)
        except BookingNotFound:
            log_event("sweeper", "sistema", "Reserva inexistente durante el sweep", f"booking_id={booking_id}")

    if report.examined:
        log_event(
            "sweeper",
            "sistema",
            "Sweep de expiración",
            f"examinadas={report.examined}, expiradas={report.expired_count}",
        )
    return report


# ========================================================================
# COMPLETION
# ========================================================================

def find_completion_candidates(session_factory: sessionmaker, now,
                               grace: timedelta = timedelta(hours=COMPLETION_GRACE_HOURS)) -> List[tuple]:
    """(id, order_code) de reservas PROCESSING cuyo checkout (00:00) quedó antes de now - grace"""
    deadline = now - grace
    with session_factory() as db:
        rows = (
            db.query(Booking.id, Booking.order_code, Booking.check_out)
            .filter(
                Booking.status == BookingStatus.PROCESSING,
                # Prefiltro por fecha; el corte exacto se hace abajo
                Booking.check_out <= deadline.date(),
            )
            .order_by(Booking.check_out, Booking.order_code)
            .all()
        )
    return [
        (booking_id, order_code)
        for booking_id, order_code, check_out in rows
        if datetime.combine(check_out, time.min) < deadline
    ]


def run_completion_sweep(service, session_factory: sessionmaker, clock,
                         grace: timedelta = timedelta(hours=COMPLETION_GRACE_HOURS)) -> CompletionReport:
    """Cierra cada candidata vía service.complete(); las que otro proceso ya movió se ignoran"""
    report = CompletionReport()

    for booking_id, order_code in find_completion_candidates(session_factory, clock.now(), grace):
        report.examined += 1
        try:
            service.complete(booking_id)
        except (BookingNotFound, InvalidState) as e:
            log_event("sweeper", "sistema", "Reserva omitida al completar", f"order_code={order_code}, motivo={e.code}")
            continue
        report.completed_order_codes.append(order_code)

    if report.examined:
        log_event(
            "sweeper",
            "sistema",
            "Sweep de completion",
            f"examinadas={report.examined}, completadas={report.completed_count}",
        )
    return report


# ========================================================================
# CLI
# ========================================================================

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Jobs periódicos de reservas")
    parser.add_argument(
        "--job",
        choices=["expire", "complete", "all"],
        default="expire",
        help="expire: reservas impagas vencidas; complete: estadías terminadas",
    )
    parser.add_argument("--dry-run", action="store_true", help="Solo lista las reservas afectadas")
    args = parser.parse_args(argv)

    from database.connection import SessionLocal
    from services.payment_gateway import build_payment_gateway
    from services.reservation_service import ReservationService
    from utils.timezone import SystemClock

    clock = SystemClock()
    run_expire = args.job in ("expire", "all")
    run_complete = args.job in ("complete", "all")

    if args.dry_run:
        if run_expire:
            candidates = find_expired_candidates(SessionLocal, clock.now())
            for _, order_code in candidates:
                print(f"  - {order_code}")
            print(f"[DRY-RUN] {len(candidates)} reservas vencidas")
        if run_complete:
            candidates = find_completion_candidates(SessionLocal, clock.now())
            for _, order_code in candidates:
                print(f"  - {order_code}")
            print(f"[DRY-RUN] {len(candidates)} reservas para completar")
        return 0

    service = ReservationService(SessionLocal, build_payment_gateway(), clock)
    if run_expire:
        report = run_expiration_sweep(service, SessionLocal, clock)
        print(f"[OK] Expiradas {report.expired_count} de {report.examined} reservas")
    if run_complete:
        completion = run_completion_sweep(service, SessionLocal, clock)
        print(f"[OK] Completadas {completion.completed_count} de {completion.examined} reservas")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

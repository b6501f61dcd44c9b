from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from database.connection import Base, engine, SessionLocal
import models  # 👈 asegura que todos los modelos estén registrados
from endpoints import bookings
from services.payment_gateway import build_payment_gateway
from services.reservation_service import ReservationService
from utils.timezone import SystemClock


origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


# uvicorn main:create_app --factory --reload
def create_app(reservation_service: ReservationService = None) -> FastAPI:
    """Construye la app con un ReservationService explícito (inyectable en tests)"""
    app = FastAPI()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if reservation_service is None:
        Base.metadata.create_all(bind=engine)
        print("[OK] Tablas creadas (o ya existian)")
        reservation_service = ReservationService(SessionLocal, build_payment_gateway(), SystemClock())

    app.state.reservation_service = reservation_service
    app.include_router(bookings.router)

    @app.get("/")
    def read_root():
        return {"message": "Reservation engine up"}

    return app

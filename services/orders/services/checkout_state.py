"""Estado del flujo de compra: selector de cantidad y datos de tarjeta"""
from dataclasses import dataclass
from typing import Optional

MAX_TICKETS_PER_ORDER = 5


@dataclass
class QuantitySelector:
    """Cantidad de tickets de una orden, siempre dentro de [0, 5]"""
    quantity: int = 1
    maximum: int = MAX_TICKETS_PER_ORDER

    def __post_init__(self):
        self.quantity = self.clamp(self.quantity)

    def clamp(self, value: int) -> int:
        return max(0, min(self.maximum, value))

    def increase(self) -> int:
        self.quantity = self.clamp(self.quantity + 1)
        return self.quantity

    def decrease(self) -> int:
        self.quantity = self.clamp(self.quantity - 1)
        return self.quantity

    @property
    def can_checkout(self) -> bool:
        return self.quantity > 0

    def total_price(self, unit_price: float, is_free: bool = False) -> float:
        """Total de la orden; 0 si el evento es gratuito o el precio es 0"""
        if is_free or not unit_price:
            return 0.0
        return round(self.quantity * float(unit_price), 2)


@dataclass
class CardEntryState:
    """Completitud de los campos de tarjeta (número / vencimiento / cvc)"""
    number_complete: bool = False
    expiry_complete: bool = False
    cvc_complete: bool = False

    def update(self, field: str, complete: bool) -> None:
        if field not in ("number", "expiry", "cvc"):
            raise ValueError(f"Campo de tarjeta desconocido: {field}")
        setattr(self, f"{field}_complete", bool(complete))

    @property
    def is_complete(self) -> bool:
        return self.number_complete and self.expiry_complete and self.cvc_complete

    def can_submit(self, client_secret: Optional[str], processing: bool = False) -> bool:
        """El pago solo se envía con tarjeta completa y un client secret vigente"""
        return self.is_complete and bool(client_secret) and not processing

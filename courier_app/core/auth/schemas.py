# courier_app/core/auth/schemas.py
from pydantic import Field
from typing import Optional

from courier_app.shared.schemas.common import WireModel


class Courier(WireModel):
    """Perfil del repartidor devuelto por el login"""
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    position: str
    status: str
    photo_url: Optional[str] = Field(None, alias="profile_photo")
    employee_code: str = Field(..., alias="Employee_id")

    class Config:
        populate_by_name = True
        extra = 'ignore'
        json_schema_extra = {
            "example": {
                "id": 7,
                "first_name": "Somchai",
                "last_name": "Vongsa",
                "email": "somchai@seeucafe.la",
                "phone": "02055551044",
                "position": "delivery",
                "status": "active",
                "profile_photo": None,
                "Employee_id": "1044"
            }
        }

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class LoginRequest(WireModel):
    """Schema para login del repartidor"""
    employee_id: str = Field(..., alias="employeeId", description="Código de empleado")


class LoginResponse(WireModel):
    """Respuesta del endpoint de login"""
    success: bool
    employee: Optional[Courier] = None
    message: Optional[str] = None
    token: Optional[str] = None

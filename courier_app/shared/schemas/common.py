# courier_app/shared/schemas/common.py
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


class WireModel(BaseModel):
    """
    Base de los modelos intercambiados con el backend.

    Los nombres de campo del wire se declaran como alias; el modelo acepta
    tanto el alias como el nombre del atributo y se serializa por alias.
    """

    class Config:
        populate_by_name = True
        extra = 'ignore'

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Pagination(WireModel):
    page: int
    limit: int
    total_count: int = Field(..., alias="totalCount")
    total_pages: int = Field(..., alias="totalPages")
    has_next_page: bool = Field(..., alias="hasNextPage")
    has_previous_page: bool = Field(..., alias="hasPreviousPage")


class CatalogRef(WireModel):
    """Referencia a un producto del menú (comida o bebida)"""
    id: int
    name: str

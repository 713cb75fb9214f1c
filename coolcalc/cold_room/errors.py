from __future__ import annotations

from typing import Iterable, List

from .models import ValidationIssue


class LoadCalculationError(ValueError):
    """Error recuperable: el llamador debe volver a pedir los datos."""

    def __init__(self, issues: Iterable[ValidationIssue]):
        self.issues: List[ValidationIssue] = list(issues)
        super().__init__("; ".join(i.message for i in self.issues) or self.__class__.__name__)

    @property
    def fields(self) -> List[str]:
        return [i.field for i in self.issues if i.field]


class InvalidInputError(LoadCalculationError):
    """Valor no numerico, fuera de rango o que provocaria una division por cero."""


class PhysicallyInconsistentInputError(LoadCalculationError):
    """Entradas validas una a una pero sin sentido fisico (p. ej. ΔT < 0)."""

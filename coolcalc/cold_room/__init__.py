"""
Motor de cálculo de carga térmica para cámaras frías.

Expone la transformación pura ``calculate_cold_room_load`` y la clase
:class:`ColdRoomLoadCalculator`, que carga las tablas de referencia una vez.
"""

from .calculator import ColdRoomLoadCalculator, calculate_cold_room_load
from .errors import InvalidInputError, LoadCalculationError, PhysicallyInconsistentInputError
from .models import LoadBreakdown, LoadResult, NormalizedInputs, ValidationIssue
from .normalization import FIELD_DEFAULTS, FIELD_SOURCES, normalize_inputs
from .summary import results_table, summary_table

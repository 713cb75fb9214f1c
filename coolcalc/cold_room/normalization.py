"""
Normalizacion de entradas.

Los formularios guardaron los mismos datos bajo distintas claves segun la
version (p. ej. la temperatura exterior puede venir en ``conditions`` o en
``room``). Aqui cada campo logico se resuelve UNA vez, probando las fuentes
de ``FIELD_SOURCES`` en orden (esquema actual, luego legado) y terminando en
``FIELD_DEFAULTS``. Las formulas solo ven :class:`NormalizedInputs`.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import InvalidInputError
from .models import (
    Construction,
    NormalizedInputs,
    OperatingConditions,
    ProductLoad,
    RoomGeometry,
    Usage,
    ValidationIssue,
)

logger = logging.getLogger(__name__)

ROOM = "room"
CONDITIONS = "conditions"
PRODUCT = "product"

NUMBER = "number"
COUNT = "count"
TEXT = "text"

# campo -> fuentes en orden de precedencia
FIELD_SOURCES: Dict[str, Tuple[Tuple[str, str], ...]] = {
    # geometria
    "length": ((ROOM, "length"),),
    "width": ((ROOM, "width"),),
    "height": ((ROOM, "height"),),
    "door_width": ((ROOM, "doorWidth"), (CONDITIONS, "doorWidth")),
    "door_height": ((ROOM, "doorHeight"), (CONDITIONS, "doorHeight")),
    # construccion
    "insulation_type": ((ROOM, "insulationType"), (ROOM, "type")),
    "wall_thickness": ((ROOM, "wallThickness"), (ROOM, "insulationThickness"), (ROOM, "thickness")),
    "ceiling_thickness": ((ROOM, "ceilingThickness"), (ROOM, "insulationThickness"), (ROOM, "thickness")),
    "floor_thickness": ((ROOM, "floorThickness"), (ROOM, "insulationThickness"), (ROOM, "thickness")),
    "number_of_heaters": ((ROOM, "numberOfHeaters"),),
    "number_of_doors": ((ROOM, "numberOfDoors"),),
    # condiciones
    "external_temp": ((CONDITIONS, "externalTemp"), (ROOM, "externalTemp")),
    "internal_temp": ((CONDITIONS, "internalTemp"), (ROOM, "internalTemp")),
    "operating_hours": ((CONDITIONS, "operatingHours"), (ROOM, "operatingHours")),
    "pull_down_time": ((CONDITIONS, "pullDownTime"), (ROOM, "pullDownTime"), (PRODUCT, "pullDownTime")),
    "door_openings": ((CONDITIONS, "doorOpenings"), (ROOM, "doorOpenings")),
    "door_clear_opening": ((CONDITIONS, "doorClearOpening"), (ROOM, "doorClearOpening")),
    "humidity": ((CONDITIONS, "humidity"), (ROOM, "humidity")),
    "storage_density": (
        (CONDITIONS, "storageDensity"),
        (PRODUCT, "storageDensity"),
        (PRODUCT, "storageCapacity"),
    ),
    "humidifier_capacity": ((CONDITIONS, "humidifierCapacity"), (ROOM, "humidifierCapacity")),
    "cooling_type": ((CONDITIONS, "coolingType"), (ROOM, "coolingType")),
    # uso (personal y equipos)
    "number_of_people": ((PRODUCT, "numberOfPeople"), (CONDITIONS, "numberOfPeople"), (ROOM, "numberOfPeople")),
    "working_hours": ((PRODUCT, "workingHours"), (CONDITIONS, "workingHours"), (ROOM, "workingHours")),
    "lighting_wattage": (
        (PRODUCT, "lightingWattage"),
        (CONDITIONS, "lightingWattage"),
        (ROOM, "lightingWattage"),
        (PRODUCT, "lightLoad"),
    ),
    "equipment_load": ((PRODUCT, "equipmentLoad"), (CONDITIONS, "equipmentLoad"), (ROOM, "equipmentLoad")),
    # ventiladores del evaporador
    "fan_motor_rating": (
        (ROOM, "fanMotorRating"),
        (PRODUCT, "fanMotorRating"),
        (CONDITIONS, "fanMotorRating"),
    ),
    "number_of_fans": ((ROOM, "numberOfFans"), (PRODUCT, "numberOfFans"), (CONDITIONS, "numberOfFans")),
    "air_flow_per_fan": (
        (CONDITIONS, "airFlowPerFan"),
        (ROOM, "airFlowPerFan"),
        (PRODUCT, "airFlowPerFan"),
    ),
    # producto
    "product_type": ((PRODUCT, "productType"), (PRODUCT, "type")),
    "daily_load": ((PRODUCT, "dailyLoad"), (PRODUCT, "mass")),
    "incoming_temp": ((PRODUCT, "incomingTemp"),),
    "outgoing_temp": ((PRODUCT, "outgoingTemp"),),
    "specific_heat": ((PRODUCT, "specificHeat"),),
    "respiration_rate": ((PRODUCT, "respirationRate"),),
    "storage_type": ((PRODUCT, "storageType"),),
}

FIELD_DEFAULTS: Dict[str, Any] = {
    "length": 6.0,
    "width": 4.0,
    "height": 3.0,
    "door_width": 1.2,
    "door_height": 2.1,
    "insulation_type": "PUF",
    "wall_thickness": 100.0,
    "ceiling_thickness": 100.0,
    "floor_thickness": 100.0,
    "number_of_heaters": 1,
    "number_of_doors": 1,
    "external_temp": 35.0,
    "internal_temp": 4.0,
    "operating_hours": 24.0,
    "pull_down_time": 8.0,
    "door_openings": 30.0,
    "door_clear_opening": 2000.0,
    "humidity": 85.0,
    "storage_density": 8.0,
    "humidifier_capacity": 0.0,
    "cooling_type": "Chilled Storage",
    "number_of_people": 3.0,
    "working_hours": 8.0,
    "lighting_wattage": 300.0,
    "equipment_load": 750.0,
    "fan_motor_rating": 0.37,
    "number_of_fans": 1,
    "air_flow_per_fan": 4163.0,
    "product_type": "General Food Items",
    "daily_load": 3000.0,
    "incoming_temp": 25.0,
    "outgoing_temp": 4.0,
    "specific_heat": 4.1,
    "respiration_rate": 50.0,
    "storage_type": "Palletized",
}

FIELD_KINDS: Dict[str, str] = {
    name: (TEXT if isinstance(default, str) else COUNT if isinstance(default, int) else NUMBER)
    for name, default in FIELD_DEFAULTS.items()
}


class _Unparsable(ValueError):
    pass


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _lookup(record: Any, key: str) -> Any:
    if record is None:
        return None
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


def parse_number(value: Any) -> float:
    """Convierte numeros o cadenas numericas; rechaza bool, NaN e infinitos."""
    if isinstance(value, bool):
        raise _Unparsable(f"valor booleano {value!r}")
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str):
        try:
            num = float(value.strip())
        except ValueError:
            raise _Unparsable(f"{value!r} no es numerico") from None
    else:
        raise _Unparsable(f"tipo no soportado {type(value).__name__}")
    if not math.isfinite(num):
        raise _Unparsable(f"{value!r} no es finito")
    return num


def parse_count(value: Any) -> int:
    num = parse_number(value)
    if not num.is_integer():
        raise _Unparsable(f"{value!r} no es un entero")
    return int(num)


def _coerce(kind: str, value: Any) -> Any:
    if kind == NUMBER:
        return parse_number(value)
    if kind == COUNT:
        return parse_count(value)
    text = str(value).strip()
    if not text:
        raise _Unparsable("texto vacio")
    return text


def resolve_field(
    name: str,
    records: Mapping[str, Any],
    strict: bool = True,
) -> Tuple[Any, Optional[str], Optional[ValidationIssue]]:
    """Resuelve un campo logico.

    Devuelve ``(valor, fuente, issue)``. ``fuente`` es ``"record.key"`` o
    ``None`` si se uso el valor por defecto. En modo estricto un valor no
    numerico produce un issue de nivel ``error``; en modo tolerante un issue
    ``warning`` y el valor por defecto.
    """
    kind = FIELD_KINDS[name]
    for record_name, key in FIELD_SOURCES[name]:
        raw = _lookup(records.get(record_name), key)
        if _is_missing(raw):
            continue
        source = f"{record_name}.{key}"
        try:
            return _coerce(kind, raw), source, None
        except _Unparsable as exc:
            if strict:
                return None, source, ValidationIssue("error", f"{source}: {exc}", field=name)
            logger.warning("Valor invalido en %s (%s); se usa el valor por defecto", source, exc)
            return (
                FIELD_DEFAULTS[name],
                None,
                ValidationIssue("warning", f"{source}: {exc}; se usa {FIELD_DEFAULTS[name]!r}", field=name),
            )
    return FIELD_DEFAULTS[name], None, None


def merge_room_records(room: Optional[Mapping], construction: Optional[Mapping]) -> Dict[str, Any]:
    """Combina datos de sala y de construccion; la construccion tiene prioridad."""
    merged: Dict[str, Any] = dict(room or {})
    merged.update(construction or {})
    return merged


def normalize_inputs(
    room: Optional[Mapping] = None,
    conditions: Optional[Mapping] = None,
    product: Optional[Mapping] = None,
    strict: bool = True,
) -> NormalizedInputs:
    records = {ROOM: room, CONDITIONS: conditions, PRODUCT: product}
    values: Dict[str, Any] = {}
    defaulted: List[str] = []
    notes: List[str] = []
    errors: List[ValidationIssue] = []

    for name in FIELD_SOURCES:
        value, source, issue = resolve_field(name, records, strict=strict)
        if issue is not None:
            if issue.level == "error":
                errors.append(issue)
                continue
            notes.append(issue.message)
        if source is None:
            defaulted.append(name)
        values[name] = value

    if errors:
        raise InvalidInputError(errors)

    if defaulted:
        logger.debug("Campos con valor por defecto: %s", ", ".join(defaulted))

    return NormalizedInputs(
        geometry=RoomGeometry(
            length_m=values["length"],
            width_m=values["width"],
            height_m=values["height"],
            door_width_m=values["door_width"],
            door_height_m=values["door_height"],
        ),
        construction=Construction(
            insulation_type=values["insulation_type"].upper(),
            wall_thickness_mm=values["wall_thickness"],
            ceiling_thickness_mm=values["ceiling_thickness"],
            floor_thickness_mm=values["floor_thickness"],
            number_of_heaters=values["number_of_heaters"],
            number_of_doors=values["number_of_doors"],
        ),
        conditions=OperatingConditions(
            external_temp_C=values["external_temp"],
            internal_temp_C=values["internal_temp"],
            operating_hours=values["operating_hours"],
            pull_down_time_h=values["pull_down_time"],
            door_openings=values["door_openings"],
            door_clear_opening_mm=values["door_clear_opening"],
            humidity_pct=values["humidity"],
            storage_density_kg_m3=values["storage_density"],
            humidifier_capacity_kg_h=values["humidifier_capacity"],
            cooling_type=values["cooling_type"],
        ),
        usage=Usage(
            number_of_people=values["number_of_people"],
            working_hours=values["working_hours"],
            lighting_W=values["lighting_wattage"],
            equipment_W=values["equipment_load"],
            fan_motor_kw=values["fan_motor_rating"],
            number_of_fans=values["number_of_fans"],
            air_flow_per_fan_cfm=values["air_flow_per_fan"],
        ),
        product=ProductLoad(
            product_type=values["product_type"],
            daily_load_kg=values["daily_load"],
            incoming_temp_C=values["incoming_temp"],
            outgoing_temp_C=values["outgoing_temp"],
            specific_heat_kjkgk=values["specific_heat"],
            respiration_rate_w_t=values["respiration_rate"],
            storage_type=values["storage_type"],
        ),
        defaulted=tuple(defaulted),
        notes=tuple(notes),
    )

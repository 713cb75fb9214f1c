from __future__ import annotations

from typing import Dict, Iterable, List

from .errors import InvalidInputError, PhysicallyInconsistentInputError
from .models import NormalizedInputs, ValidationIssue

# campos cuyos errores son de consistencia fisica, no de formato
INCONSISTENT_FIELDS = ("temperature_difference", "product_temperatures")


def validate_inputs(inputs: NormalizedInputs, rules: Dict | None = None) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    limits = (rules or {}).get("limits", {})

    def add(field: str, msg: str, level: str = "error"):
        issues.append(ValidationIssue(level=level, message=msg, field=field))

    g = inputs.geometry
    c = inputs.construction
    k = inputs.conditions
    u = inputs.usage
    p = inputs.product

    # valores que deben ser > 0
    for field, val in (
        ("length", g.length_m),
        ("width", g.width_m),
        ("height", g.height_m),
        ("door_width", g.door_width_m),
        ("door_height", g.door_height_m),
        ("wall_thickness", c.wall_thickness_mm),
        ("ceiling_thickness", c.ceiling_thickness_mm),
        ("floor_thickness", c.floor_thickness_mm),
        ("pull_down_time", k.pull_down_time_h),
        ("storage_density", k.storage_density_kg_m3),
        ("specific_heat", p.specific_heat_kjkgk),
        ("air_flow_per_fan", u.air_flow_per_fan_cfm),
    ):
        if val <= 0:
            add(field, f"{field.upper()} debe ser mayor que 0 (recibido {val})")

    # valores que deben ser >= 0
    for field, val in (
        ("number_of_heaters", c.number_of_heaters),
        ("number_of_doors", c.number_of_doors),
        ("door_openings", k.door_openings),
        ("door_clear_opening", k.door_clear_opening_mm),
        ("humidifier_capacity", k.humidifier_capacity_kg_h),
        ("number_of_people", u.number_of_people),
        ("lighting_wattage", u.lighting_W),
        ("equipment_load", u.equipment_W),
        ("fan_motor_rating", u.fan_motor_kw),
        ("number_of_fans", u.number_of_fans),
        ("daily_load", p.daily_load_kg),
        ("respiration_rate", p.respiration_rate_w_t),
    ):
        if val < 0:
            add(field, f"{field.upper()} no puede ser negativo (recibido {val})")

    for field, val in (("operating_hours", k.operating_hours), ("working_hours", u.working_hours)):
        if not 0 <= val <= 24:
            add(field, f"{field.upper()} debe estar entre 0 y 24 h (recibido {val})")
    if not 0 <= k.humidity_pct <= 100:
        add("humidity", f"HUMIDITY debe estar entre 0 y 100 % (recibido {k.humidity_pct})")
    regime = k.cooling_type.strip().lower()
    if not regime.startswith(("chilled", "frozen")):
        add(
            "cooling_type",
            f"COOLING_TYPE debe ser Chilled Storage o Frozen Storage (recibido {k.cooling_type!r})",
        )

    # consistencia fisica
    if k.temperature_difference < 0:
        add(
            "temperature_difference",
            f"La temperatura exterior ({k.external_temp_C} °C) es menor que la interior "
            f"({k.internal_temp_C} °C)",
        )
    if p.outgoing_temp_C > p.incoming_temp_C:
        add(
            "product_temperatures",
            f"La temperatura de salida del producto ({p.outgoing_temp_C} °C) es mayor que la de "
            f"entrada ({p.incoming_temp_C} °C)",
        )

    # reglas suaves
    max_dim = limits.get("max_dim_m")
    min_dim = limits.get("min_dim_m")
    for field, val in (("length", g.length_m), ("width", g.width_m), ("height", g.height_m)):
        if max_dim and val > max_dim:
            add(field, f"{field.upper()} supera {max_dim} m", "warning")
        if min_dim and 0 < val < min_dim:
            add(field, f"{field.upper()} es menor a {min_dim} m", "warning")
    if g.door_height_m > g.height_m > 0:
        add("door_height", "La puerta es mas alta que la camara", "warning")
    max_openings = limits.get("max_door_openings_day")
    if max_openings and k.door_openings > max_openings:
        add("door_openings", f"DOOR_OPENINGS supera {max_openings} por dia", "warning")
    min_tint = limits.get("min_internal_temp_C")
    if min_tint is not None and k.internal_temp_C < min_tint:
        add("internal_temp", f"INTERNAL_TEMP es menor a {min_tint} °C", "warning")
    if k.internal_temp_C < 0 and regime.startswith("chilled"):
        add("cooling_type", "Temperatura interior bajo 0 °C con Chilled Storage", "warning")
    if k.temperature_difference == 0:
        add("temperature_difference", "ΔT = 0: no hay carga por transmision", "warning")
    return issues


def raise_for_errors(issues: Iterable[ValidationIssue]) -> None:
    """Lanza la excepcion de la taxonomia que corresponda a los errores."""
    errors = [i for i in issues if i.level == "error"]
    if not errors:
        return
    invalid = [i for i in errors if i.field not in INCONSISTENT_FIELDS]
    if invalid:
        raise InvalidInputError(errors)
    raise PhysicallyInconsistentInputError(errors)

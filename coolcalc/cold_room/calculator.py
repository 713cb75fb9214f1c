from __future__ import annotations

import logging
import math
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from .constants import (
    BTUH_PER_KW,
    KW_PER_TR,
    SAFETY_FACTOR,
    LoadConstants,
    load_air_changes_table,
    load_constants,
    load_insulation_table,
    load_validation_rules,
)
from .errors import InvalidInputError
from .models import (
    AirFlowInfo,
    HeaterBreakdown,
    LoadBreakdown,
    LoadResult,
    MiscellaneousBreakdown,
    NormalizedInputs,
    StorageInfo,
    TransmissionBreakdown,
    ValidationIssue,
)
from .normalization import merge_room_records, normalize_inputs
from .psychrometrics import GRAVITY, dry_air_density, moist_air_enthalpy
from .validation import raise_for_errors, validate_inputs

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0


# ---------------------------- CALCULADORA ---------------------------- #


class ColdRoomLoadCalculator:
    """Carga de refrigeracion de una camara fria (kW, TR, BTU/hr).

    Las tablas de referencia se leen una sola vez al construir la
    instancia; :meth:`compute` es una funcion pura de sus entradas.
    """

    def __init__(self, data_dir: str | Path | None = None, constants: LoadConstants | None = None):
        data_dir = Path(data_dir) if data_dir else None
        self.constants = constants or load_constants(data_dir)
        self.insulation, self.default_insulation = load_insulation_table(data_dir)
        self.air_changes_tbl = load_air_changes_table(data_dir)
        self.rules = load_validation_rules(data_dir)

    # utilidades
    def _conductivity(self, insulation_type: str) -> Tuple[float, Optional[str]]:
        code = (insulation_type or "").strip().upper()
        if code in self.insulation:
            return self.insulation[code], None
        logger.warning("Aislamiento %r desconocido; se usa %s", insulation_type, self.default_insulation)
        return (
            self.insulation[self.default_insulation],
            f"Aislamiento {insulation_type!r} desconocido; se usa k de {self.default_insulation}",
        )

    @staticmethod
    def _u_value(k: float, thickness_mm: float) -> float:
        return k / (thickness_mm / 1000.0)

    def u_factor(self, insulation_type: str, thickness_mm: float) -> float:
        """U (W/m²K) = k / espesor; decrece con el espesor."""
        k, _ = self._conductivity(insulation_type)
        return self._u_value(k, thickness_mm)

    def _air_changes(self, volume_ft3: float, freezing: bool) -> float:
        for row in self.air_changes_tbl:
            if volume_ft3 <= row["max_volume_ft3"]:
                return row["air_changes_24h_freezing"] if freezing else row["air_changes_24h_refrigeration"]
        last = self.air_changes_tbl[-1]
        return last["air_changes_24h_freezing"] if freezing else last["air_changes_24h_refrigeration"]

    def _transmission(self, inputs: NormalizedInputs, k: float) -> Tuple[TransmissionBreakdown, Tuple[float, float, float]]:
        g = inputs.geometry
        c = inputs.construction
        dT = inputs.conditions.temperature_difference
        u_wall = self._u_value(k, c.wall_thickness_mm)
        u_ceiling = self._u_value(k, c.ceiling_thickness_mm)
        u_floor = self._u_value(k, c.floor_thickness_mm)
        trans = TransmissionBreakdown(
            walls=u_wall * g.wall_area_m2 * dT / 1000.0,
            ceiling=u_ceiling * g.ceiling_area_m2 * dT / 1000.0,
            floor=u_floor * g.floor_area_m2 * dT / 1000.0,
        )
        return trans, (u_wall, u_ceiling, u_floor)

    def _product_kw(self, inputs: NormalizedInputs) -> float:
        p = inputs.product
        dT = p.incoming_temp_C - p.outgoing_temp_C
        kj_per_h = p.daily_load_kg * p.specific_heat_kjkgk * dT / inputs.conditions.pull_down_time_h
        return kj_per_h / 3600.0

    def _respiration_kw(self, inputs: NormalizedInputs) -> float:
        p = inputs.product
        return p.daily_load_kg / 1000.0 * p.respiration_rate_w_t / 1000.0

    def _enthalpy_difference(self, inputs: NormalizedInputs) -> float:
        """
        Δh (kJ/kg) del aire que entra; nunca menor que la parte sensible
        cp·ΔT (aire exterior mas seco que el de la camara).
        """
        k = inputs.conditions
        h_out = moist_air_enthalpy(k.external_temp_C, k.humidity_pct / 100.0)
        h_in = moist_air_enthalpy(k.internal_temp_C, self.constants.room_relative_humidity_pct / 100.0)
        return max(h_out - h_in, self.constants.air_cp_kj_kgk * k.temperature_difference)

    def _air_change(self, inputs: NormalizedInputs, dh: float) -> Tuple[float, float, float, float]:
        """
        Devuelve (total_kw, sensible_kw, latent_kw, renovaciones_24h).
        La columna (refrigerado / congelado) la fija ``cooling_type``.
        """
        cst = self.constants
        k = inputs.conditions
        volume_m3 = inputs.geometry.volume_m3
        ach = self._air_changes(volume_m3 * cst.ft3_per_m3, k.frozen_storage)
        ach *= 1.0 + k.door_openings * cst.door_opening_air_change_factor

        mass_kg_day = volume_m3 * ach * cst.air_density_kg_m3
        exposure = k.operating_hours / 24.0
        total_kw = max(0.0, mass_kg_day * dh / SECONDS_PER_DAY * exposure)
        sensible_kw = mass_kg_day * cst.air_cp_kj_kgk * k.temperature_difference / SECONDS_PER_DAY * exposure
        sensible_kw = min(max(0.0, sensible_kw), total_kw)
        return total_kw, sensible_kw, total_kw - sensible_kw, ach

    def _door_opening(self, inputs: NormalizedInputs, dh: float) -> Tuple[float, float, float]:
        """
        Infiltracion por apertura de puerta (Gosney-Olama, ASHRAE).
        Devuelve (total_kw, sensible_kw, latent_kw).
        """
        cst = self.constants
        g = inputs.geometry
        k = inputs.conditions
        dT = k.temperature_difference
        if dT <= 0 or dh <= 0 or k.door_openings <= 0:
            return 0.0, 0.0, 0.0

        rho_room = dry_air_density(k.internal_temp_C)
        rho_amb = dry_air_density(k.external_temp_C)
        density_factor = (2.0 / (1.0 + (rho_room / rho_amb) ** (1.0 / 3.0))) ** 1.5
        q_open_kw = (
            0.221
            * g.door_area_m2
            * dh
            * rho_room
            * math.sqrt(1.0 - rho_amb / rho_room)
            * math.sqrt(GRAVITY * g.door_height_m)
            * density_factor
        )
        open_fraction = min(1.0, k.door_openings * cst.door_open_seconds / SECONDS_PER_DAY)
        total_kw = q_open_kw * open_fraction
        sensible_frac = min(1.0, cst.air_cp_kj_kgk * dT / dh)
        sensible_kw = total_kw * sensible_frac
        return total_kw, sensible_kw, total_kw - sensible_kw

    def _miscellaneous(self, inputs: NormalizedInputs) -> MiscellaneousBreakdown:
        cst = self.constants
        u = inputs.usage
        op_hours = inputs.conditions.operating_hours
        presence = min(u.working_hours, op_hours) / op_hours if op_hours > 0 else 0.0
        return MiscellaneousBreakdown(
            occupancy=u.number_of_people * cst.person_heat_gain_kw * presence,
            lighting=u.lighting_W / 1000.0 * cst.lighting_duty_factor,
            equipment=u.equipment_W / 1000.0 * cst.equipment_duty_factor,
            fans=u.fan_motor_kw * u.number_of_fans * cst.fan_duty_factor,
        )

    def _heaters(self, inputs: NormalizedInputs) -> HeaterBreakdown:
        cst = self.constants
        c = inputs.construction
        k = inputs.conditions
        steam = 0.0
        if k.humidifier_capacity_kg_h > 0:
            steam = k.humidifier_capacity_kg_h * cst.steam_enthalpy_kj_kg / 3600.0 * k.operating_hours / 24.0
        return HeaterBreakdown(
            peripheral=c.number_of_heaters * cst.peripheral_heater_kw,
            door=c.number_of_doors * cst.door_heater_kw,
            steam=steam,
        )

    # ------------------------------------------------------------------ #

    def compute(
        self,
        room: Optional[Mapping] = None,
        conditions: Optional[Mapping] = None,
        product: Optional[Mapping] = None,
        construction: Optional[Mapping] = None,
        strict: bool = True,
    ) -> LoadResult:
        if construction is not None:
            room = merge_room_records(room, construction)
        inputs = normalize_inputs(room, conditions, product, strict=strict)
        return self.compute_normalized(inputs)

    def compute_normalized(self, inputs: NormalizedInputs) -> LoadResult:
        cst = self.constants
        issues: List[ValidationIssue] = validate_inputs(inputs, self.rules)
        raise_for_errors(issues)
        warnings = list(inputs.notes) + [i.message for i in issues if i.level == "warning"]

        k_ins, ins_note = self._conductivity(inputs.construction.insulation_type)
        if ins_note:
            warnings.append(ins_note)

        transmission, (u_wall, u_ceiling, u_floor) = self._transmission(inputs, k_ins)
        dh = self._enthalpy_difference(inputs)
        air_kw, air_sens, air_lat, ach = self._air_change(inputs, dh)
        door_kw, door_sens, door_lat = self._door_opening(inputs, dh)
        heaters = self._heaters(inputs)

        breakdown = LoadBreakdown(
            transmission=transmission,
            product=self._product_kw(inputs),
            respiration=self._respiration_kw(inputs),
            air_change=air_kw,
            door_opening=door_kw,
            miscellaneous=self._miscellaneous(inputs),
            heaters=heaters,
        )

        # margen unico sobre la suma de todos los terminos
        total_before_safety = breakdown.total
        safety_factor_load = total_before_safety * SAFETY_FACTOR
        final_load = total_before_safety + safety_factor_load

        latent = air_lat + door_lat + heaters.steam
        sensible = max(0.0, total_before_safety - latent)
        shr = sensible / total_before_safety if total_before_safety > 0 else 1.0

        op_hours = inputs.conditions.operating_hours
        volume_m3 = inputs.geometry.volume_m3
        max_storage = volume_m3 * inputs.conditions.storage_density_kg_m3
        current = inputs.product.daily_load_kg
        utilization = current / max_storage * 100.0
        if utilization > 100.0:
            warnings.append(f"Utilizacion de almacenamiento {utilization:.1f} % supera la capacidad")

        required_cfm = volume_m3 * cst.ft3_per_m3 * cst.circulation_changes_per_hour / 60.0
        recommended_cfm = required_cfm * cst.recommended_cfm_margin
        usage = inputs.usage
        installed_cfm = usage.number_of_fans * usage.air_flow_per_fan_cfm
        if installed_cfm < recommended_cfm:
            warnings.append(
                f"Caudal instalado {installed_cfm:.0f} CFM menor que el recomendado {recommended_cfm:.0f} CFM"
            )

        result = LoadResult(
            inputs=inputs,
            u_factor_wall=u_wall,
            u_factor_ceiling=u_ceiling,
            u_factor_floor=u_floor,
            breakdown=breakdown,
            total_before_safety=total_before_safety,
            safety_factor_load=safety_factor_load,
            final_load=final_load,
            total_tr=final_load / KW_PER_TR,
            total_btu=final_load * BTUH_PER_KW,
            daily_kj=final_load * op_hours * 3600.0,
            daily_kwh=final_load * op_hours,
            sensible_load=sensible,
            latent_load=latent,
            shr=shr,
            storage_info=StorageInfo(
                max_storage=max_storage,
                current_load=current,
                utilization=utilization,
                available_capacity=max_storage - current,
            ),
            air_flow_info=AirFlowInfo(
                required_cfm=required_cfm,
                recommended_cfm=recommended_cfm,
                air_flow_per_fan=usage.air_flow_per_fan_cfm,
                installed_cfm=installed_cfm,
                fans_required=math.ceil(recommended_cfm / usage.air_flow_per_fan_cfm),
            ),
            air_changes_per_day=ach,
            warnings=warnings,
        )
        _ensure_finite(result)
        logger.debug(
            "Carga camara: base %.3f kW, final %.3f kW (%.2f TR)",
            total_before_safety,
            final_load,
            result.total_tr,
        )
        return result


def _iter_numbers(blob, path: str = ""):
    if isinstance(blob, dict):
        for key, val in blob.items():
            yield from _iter_numbers(val, f"{path}.{key}" if path else key)
    elif isinstance(blob, (int, float)) and not isinstance(blob, bool):
        yield path, blob


def _ensure_finite(result: LoadResult) -> None:
    bad: Dict[str, float] = {p: v for p, v in _iter_numbers(result.as_dict()) if not math.isfinite(v)}
    if bad:
        raise InvalidInputError(
            ValidationIssue("error", f"Resultado no finito en {path}", field=path) for path in bad
        )


@lru_cache(maxsize=1)
def default_calculator() -> ColdRoomLoadCalculator:
    return ColdRoomLoadCalculator()


def calculate_cold_room_load(
    room: Optional[Mapping] = None,
    conditions: Optional[Mapping] = None,
    product: Optional[Mapping] = None,
    construction: Optional[Mapping] = None,
    strict: bool = True,
) -> LoadResult:
    """Punto de entrada funcional: ``(room, conditions, product) -> LoadResult``."""
    return default_calculator().compute(room, conditions, product, construction=construction, strict=strict)

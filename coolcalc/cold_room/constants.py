from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

DATA_DIR = Path(__file__).resolve().parents[1] / "data" / "cold_room"

# fijos: no se leen de datos ni se aceptan en el constructor
SAFETY_FACTOR = 0.10
KW_PER_TR = 3.517
BTUH_PER_KW = 3412.142


def _load_json(name: str, data_dir: Path | None = None) -> Dict:
    path = Path(data_dir or DATA_DIR) / name
    if not path.exists():
        raise FileNotFoundError(f"No se encontró el archivo de datos: {path}")
    with path.open(encoding="utf-8") as f:
        return json.load(f)


@dataclass(frozen=True)
class LoadConstants:
    """Constantes de referencia (ASHRAE) usadas por el motor.

    Se cargan de ``load_constants.json``. El factor de seguridad y las
    conversiones TR/BTU no estan aqui: son ``SAFETY_FACTOR``, ``KW_PER_TR``
    y ``BTUH_PER_KW``.
    """

    ft3_per_m3: float = 35.3147

    person_heat_gain_kw: float = 0.270
    lighting_duty_factor: float = 1.0
    equipment_duty_factor: float = 1.0
    fan_duty_factor: float = 1.0

    peripheral_heater_kw: float = 0.15
    door_heater_kw: float = 0.27
    steam_enthalpy_kj_kg: float = 2676.0

    air_density_kg_m3: float = 1.2
    air_cp_kj_kgk: float = 1.006
    room_relative_humidity_pct: float = 90.0
    door_opening_air_change_factor: float = 0.01
    door_open_seconds: float = 15.0
    circulation_changes_per_hour: float = 30.0
    recommended_cfm_margin: float = 1.25

    @classmethod
    def from_dict(cls, data: Dict) -> "LoadConstants":
        conv = data.get("conversions", {})
        internal = data.get("internal", {})
        heaters = data.get("heaters", {})
        air = data.get("air", {})
        base = cls()
        return cls(
            ft3_per_m3=float(conv.get("ft3_per_m3", base.ft3_per_m3)),
            person_heat_gain_kw=float(internal.get("person_heat_gain_kw", base.person_heat_gain_kw)),
            lighting_duty_factor=float(internal.get("lighting_duty_factor", base.lighting_duty_factor)),
            equipment_duty_factor=float(internal.get("equipment_duty_factor", base.equipment_duty_factor)),
            fan_duty_factor=float(internal.get("fan_duty_factor", base.fan_duty_factor)),
            peripheral_heater_kw=float(heaters.get("peripheral_heater_kw", base.peripheral_heater_kw)),
            door_heater_kw=float(heaters.get("door_heater_kw", base.door_heater_kw)),
            steam_enthalpy_kj_kg=float(heaters.get("steam_enthalpy_kj_kg", base.steam_enthalpy_kj_kg)),
            air_density_kg_m3=float(air.get("density_kg_m3", base.air_density_kg_m3)),
            air_cp_kj_kgk=float(air.get("cp_kj_kgk", base.air_cp_kj_kgk)),
            room_relative_humidity_pct=float(
                air.get("room_relative_humidity_pct", base.room_relative_humidity_pct)
            ),
            door_opening_air_change_factor=float(
                air.get("door_opening_air_change_factor", base.door_opening_air_change_factor)
            ),
            door_open_seconds=float(air.get("door_open_seconds", base.door_open_seconds)),
            circulation_changes_per_hour=float(
                air.get("circulation_changes_per_hour", base.circulation_changes_per_hour)
            ),
            recommended_cfm_margin=float(air.get("recommended_cfm_margin", base.recommended_cfm_margin)),
        )


def load_constants(data_dir: Path | None = None) -> LoadConstants:
    return LoadConstants.from_dict(_load_json("load_constants.json", data_dir))


def load_insulation_table(data_dir: Path | None = None) -> tuple[Dict[str, float], str]:
    """Devuelve ({codigo: k W/m.K}, codigo por defecto)."""
    blob = _load_json("insulation_conductivity.json", data_dir)
    table = {str(k).upper(): float(v) for k, v in blob["k_factor_by_insulation"].items()}
    default = str(blob.get("default", "PUF")).upper()
    if default not in table:
        raise ValueError(f"Aislamiento por defecto desconocido: {default}")
    return table, default


def load_air_changes_table(data_dir: Path | None = None) -> List[Dict]:
    rows = _load_json("air_changes_24h_by_volume_ft3.json", data_dir)["table"]
    return sorted(rows, key=lambda r: r["max_volume_ft3"])


def load_validation_rules(data_dir: Path | None = None) -> Dict:
    path = Path(data_dir or DATA_DIR) / "validation_rules.json"
    if path.exists():
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    return {}

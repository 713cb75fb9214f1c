"""
Propiedades de aire humedo usadas por las cargas de infiltracion.

Unidades SI: temperaturas en °C, humedad relativa en fraccion (0-1),
presiones en Pa, entalpias en kJ/kg de aire seco.
"""

from __future__ import annotations

from math import exp

ATMOSPHERIC_PRESSURE_PA = 101325.0
R_DRY_AIR = 287.055  # J/(kg.K)
GRAVITY = 9.81


def saturation_pressure_pa(t_C: float) -> float:
    # Tetens approximation
    return 610.94 * exp((17.625 * t_C) / (t_C + 243.04))


def humidity_ratio(t_C: float, rh: float, pressure_pa: float = ATMOSPHERIC_PRESSURE_PA) -> float:
    rh = max(0.0, min(1.0, rh))
    pv = rh * saturation_pressure_pa(t_C)
    return 0.621945 * pv / max(1.0, pressure_pa - pv)


def air_enthalpy_kj_kg(t_C: float, w: float) -> float:
    return 1.006 * t_C + w * (2501.0 + 1.86 * t_C)


def moist_air_enthalpy(t_C: float, rh: float) -> float:
    return air_enthalpy_kj_kg(t_C, humidity_ratio(t_C, rh))


def dry_air_density(t_C: float, pressure_pa: float = ATMOSPHERIC_PRESSURE_PA) -> float:
    return pressure_pa / (R_DRY_AIR * (t_C + 273.15))

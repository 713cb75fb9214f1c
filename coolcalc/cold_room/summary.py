# coolcalc/cold_room/summary.py
from __future__ import annotations

from typing import Iterable

import pandas as pd

from .constants import KW_PER_TR
from .models import LoadResult

SUMMARY_COLUMNS = ["Load Type", "kW", "TR", "share"]


def summary_table(result: LoadResult) -> pd.DataFrame:
    """
    Tabla resumen de la carga (una fila por termino) con kW, TR y la
    fraccion sobre el total antes del factor de seguridad.
    """
    b = result.breakdown
    rows = [
        ("Transmission Load", b.transmission.total),
        ("Product Load", b.product),
        ("Respiration Load", b.respiration),
        ("Air Change Load", b.air_change),
        ("Door Opening Load", b.door_opening),
        ("Internal Loads", b.miscellaneous.total),
        ("Heater Loads", b.heaters.total),
        ("Total Calculated", result.total_before_safety),
        ("Safety Factor", result.safety_factor_load),
        ("Final Capacity Required", result.final_load),
    ]
    df = pd.DataFrame(rows, columns=["Load Type", "kW"])
    df["TR"] = df["kW"] / KW_PER_TR
    base = result.total_before_safety
    df["share"] = df["kW"] / base if base > 0 else 0.0
    return df[SUMMARY_COLUMNS]


def results_table(results: Iterable[tuple[str, LoadResult]]) -> pd.DataFrame:
    """Una fila por camara: volumen, carga final, TR y BTU/hr."""
    registros = [
        {
            "room": name,
            "volume_m3": res.volume,
            "total_before_safety_kw": res.total_before_safety,
            "final_load_kw": res.final_load,
            "total_tr": res.total_tr,
            "total_btuh": res.total_btu,
        }
        for name, res in results
    ]
    return pd.DataFrame(
        registros,
        columns=["room", "volume_m3", "total_before_safety_kw", "final_load_kw", "total_tr", "total_btuh"],
    )

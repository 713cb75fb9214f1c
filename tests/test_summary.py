import pytest

from coolcalc.cold_room import calculate_cold_room_load, results_table, summary_table

ROOM = {"length": 6.0, "width": 4.0, "height": 3.0}
CONDITIONS = {"externalTemp": 35, "internalTemp": 4, "operatingHours": 24}
PRODUCT = {"dailyLoad": 3000, "incomingTemp": 25, "outgoingTemp": 4}


def test_tabla_resumen():
    res = calculate_cold_room_load(ROOM, CONDITIONS, PRODUCT)
    df = summary_table(res)
    assert list(df.columns) == ["Load Type", "kW", "TR", "share"]
    assert len(df) == 10
    final = df.set_index("Load Type").loc["Final Capacity Required"]
    assert final["kW"] == pytest.approx(res.final_load)
    assert final["TR"] == pytest.approx(res.total_tr)
    terminos = df.iloc[:7]
    assert terminos["kW"].sum() == pytest.approx(res.total_before_safety)
    assert terminos["share"].sum() == pytest.approx(1.0)


def test_tabla_de_camaras():
    chica = calculate_cold_room_load(ROOM, CONDITIONS, PRODUCT)
    grande = calculate_cold_room_load({"length": 12.0, "width": 8.0, "height": 4.0}, CONDITIONS, PRODUCT)
    df = results_table([("C1", chica), ("C2", grande)])
    assert list(df["room"]) == ["C1", "C2"]
    assert df.loc[1, "volume_m3"] == pytest.approx(384.0)
    assert df["final_load_kw"].tolist() == pytest.approx([chica.final_load, grande.final_load])
    assert df.loc[1, "final_load_kw"] > df.loc[0, "final_load_kw"]


def test_columna_tr_con_divisor_fijo():
    res = calculate_cold_room_load(ROOM, CONDITIONS, {**PRODUCT, "numberOfFans": 2})
    df = summary_table(res)
    assert df["TR"].tolist() == pytest.approx((df["kW"] / 3.517).tolist())
    internas = df.set_index("Load Type").loc["Internal Loads"]
    assert internas["kW"] == pytest.approx(res.breakdown.miscellaneous.total)

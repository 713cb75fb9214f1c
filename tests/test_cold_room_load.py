import math

import pytest

from coolcalc.cold_room import (
    ColdRoomLoadCalculator,
    InvalidInputError,
    PhysicallyInconsistentInputError,
    calculate_cold_room_load,
)
from coolcalc.cold_room.constants import LoadConstants
from coolcalc.cold_room.models import RoomGeometry

ROOM = {"length": 6.0, "width": 4.0, "height": 3.0}
CONDITIONS = {"externalTemp": 35, "internalTemp": 4, "operatingHours": 24}
PRODUCT = {"dailyLoad": 3000, "incomingTemp": 25, "outgoingTemp": 4}


def _calc(room=None, conditions=None, product=None, **kw):
    return calculate_cold_room_load(
        {**ROOM, **(room or {})},
        {**CONDITIONS, **(conditions or {})},
        {**PRODUCT, **(product or {})},
        **kw,
    )


def _numbers(blob):
    if isinstance(blob, dict):
        for val in blob.values():
            yield from _numbers(val)
    elif isinstance(blob, (int, float)) and not isinstance(blob, bool):
        yield blob


def test_escenario_por_defecto_completo_y_finito():
    res = _calc()
    data = res.as_dict()
    for key in (
        "dimensions",
        "areas",
        "construction",
        "productInfo",
        "breakdown",
        "totalTR",
        "totalBTU",
        "dailyKJ",
        "storageInfo",
        "airFlowInfo",
        "temperatureDifference",
        "pullDownTime",
        "doorDimensions",
    ):
        assert key in data
    assert all(math.isfinite(v) for v in _numbers(data))
    assert res.final_load > 0
    assert math.isclose(res.total_tr, res.final_load / 3.517, rel_tol=1e-12)
    assert res.temperature_difference == 31
    assert res.pull_down_time == 8.0
    assert data["doorDimensions"]["width"] == 1.2
    assert data["doorDimensions"]["height"] == 2.1


def test_factor_de_seguridad_fijo():
    res = _calc()
    assert math.isclose(res.final_load, res.total_before_safety * 1.10, rel_tol=1e-9)
    assert math.isclose(res.safety_factor_load, res.total_before_safety * 0.10, rel_tol=1e-9)
    assert math.isclose(res.total_before_safety, res.breakdown.total, rel_tol=1e-12)


def test_factor_de_seguridad_no_configurable():
    assert not hasattr(LoadConstants(), "safety_factor")
    assert not hasattr(LoadConstants(), "kw_per_tr")
    with pytest.raises(TypeError):
        LoadConstants(safety_factor=0.25)
    # claves antiguas en el json se ignoran
    assert LoadConstants.from_dict({"safety_factor": 0.25, "conversions": {"kw_per_tr": 3.0}}) == LoadConstants()

    calc = ColdRoomLoadCalculator(constants=LoadConstants(person_heat_gain_kw=0.5))
    res = calc.compute(ROOM, CONDITIONS, PRODUCT)
    assert math.isclose(res.final_load, res.total_before_safety * 1.10, rel_tol=1e-12)
    assert math.isclose(res.total_tr, res.final_load / 3.517, rel_tol=1e-12)


def test_conversiones_derivadas_de_carga_final():
    res = _calc(conditions={"operatingHours": 20})
    assert math.isclose(res.total_btu, res.final_load * 3412.142, rel_tol=1e-12)
    assert math.isclose(res.total_tr, res.final_load / 3.517, rel_tol=1e-12)
    assert math.isclose(res.daily_kj, res.final_load * 20 * 3600, rel_tol=1e-12)
    assert math.isclose(res.daily_kwh, res.final_load * 20, rel_tol=1e-12)


def test_transmision_valores_calculados():
    res = _calc()
    t = res.breakdown.transmission
    # PUF 100 mm: U = 0.023 / 0.1 = 0.23 W/m2K
    assert res.u_factor_wall == pytest.approx(0.23)
    assert t.walls == pytest.approx(0.23 * 60.0 * 31 / 1000)
    assert t.ceiling == pytest.approx(0.23 * 24.0 * 31 / 1000)
    assert t.floor == pytest.approx(0.23 * 24.0 * 31 / 1000)
    assert t.total == pytest.approx(t.walls + t.ceiling + t.floor)


def test_espesor_por_superficie():
    res = _calc(room={"wallThickness": 150, "ceilingThickness": 125, "floorThickness": 80})
    assert res.u_factor_wall == pytest.approx(0.023 / 0.150)
    assert res.u_factor_ceiling == pytest.approx(0.023 / 0.125)
    assert res.u_factor_floor == pytest.approx(0.023 / 0.080)


def test_producto_y_respiracion():
    res = _calc()
    assert res.breakdown.product == pytest.approx(3000 * 4.1 * 21 / 8 / 3600)
    assert res.breakdown.respiration == pytest.approx(3000 / 1000 * 50 / 1000)


def test_producto_duplicar_masa_duplica_cargas():
    base = _calc()
    doble = _calc(product={"dailyLoad": 6000})
    assert doble.breakdown.product == pytest.approx(2 * base.breakdown.product)
    assert doble.breakdown.respiration == pytest.approx(2 * base.breakdown.respiration)


def test_monotonia_con_delta_t():
    frio = _calc(conditions={"externalTemp": 35})
    caliente = _calc(conditions={"externalTemp": 40})
    assert caliente.breakdown.transmission.total > frio.breakdown.transmission.total
    assert caliente.breakdown.air_change > frio.breakdown.air_change
    assert caliente.breakdown.door_opening > frio.breakdown.door_opening

    mas_frio = _calc(conditions={"internalTemp": 2}, product={"outgoingTemp": 2})
    assert mas_frio.breakdown.transmission.total > frio.breakdown.transmission.total
    assert mas_frio.breakdown.air_change > frio.breakdown.air_change
    assert mas_frio.breakdown.door_opening > frio.breakdown.door_opening


@pytest.mark.parametrize("cooling_type", ["Chilled Storage", "Frozen Storage"])
def test_monotonia_al_cruzar_cero_grados(cooling_type):
    # 1 °C (ΔT 31) frente a -1 °C (ΔT 36) con el mismo tipo de enfriamiento
    producto = {"outgoingTemp": -1}
    sobre_cero = _calc(conditions={"internalTemp": 1, "coolingType": cooling_type}, product=producto)
    bajo_cero = _calc(conditions={"internalTemp": -1, "coolingType": cooling_type}, product=producto)
    assert bajo_cero.air_changes_per_day == sobre_cero.air_changes_per_day
    assert bajo_cero.breakdown.transmission.total > sobre_cero.breakdown.transmission.total
    assert bajo_cero.breakdown.air_change > sobre_cero.breakdown.air_change
    assert bajo_cero.breakdown.door_opening > sobre_cero.breakdown.door_opening


def test_aviso_bajo_cero_con_refrigerado():
    res = _calc(conditions={"internalTemp": -1}, product={"outgoingTemp": -1})
    assert any("Chilled Storage" in w for w in res.warnings)
    res = _calc(conditions={"internalTemp": -1, "coolingType": "Frozen Storage"}, product={"outgoingTemp": -1})
    assert not any("Chilled Storage" in w for w in res.warnings)


def test_aire_exterior_seco_aporta_calor_sensible():
    # aire exterior a 10 % HR: mas seco que el de la camara (90 % HR a 4 °C)
    fresco = _calc(conditions={"externalTemp": 10, "humidity": 10})
    tibio = _calc(conditions={"externalTemp": 12, "humidity": 10})
    for res in (fresco, tibio):
        assert res.breakdown.air_change > 0.0
        assert res.breakdown.door_opening > 0.0
        assert res.latent_load >= 0.0
        assert res.sensible_load + res.latent_load == pytest.approx(res.total_before_safety)
    assert tibio.breakdown.air_change > fresco.breakdown.air_change
    assert tibio.breakdown.door_opening > fresco.breakdown.door_opening

    # solo calor sensible: masa x cp x ΔT
    masa = 72.0 * 9.5 * 1.30 * 1.2
    assert fresco.breakdown.air_change == pytest.approx(masa * 1.006 * 6 / 86400)


def test_aperturas_de_puerta_aumentan_infiltracion():
    pocas = _calc(conditions={"doorOpenings": 10})
    muchas = _calc(conditions={"doorOpenings": 60})
    assert muchas.breakdown.air_change > pocas.breakdown.air_change
    assert muchas.breakdown.door_opening > pocas.breakdown.door_opening


def test_puerta_y_renovacion_son_terminos_separados():
    res = _calc(conditions={"doorOpenings": 0})
    assert res.breakdown.door_opening == 0.0
    assert res.breakdown.air_change > 0.0
    data = res.as_dict()["breakdown"]
    assert "airChange" in data and "doorOpening" in data


def test_cargas_internas_lineales():
    base = _calc(product={"numberOfPeople": 2, "lightingWattage": 300, "equipmentLoad": 500})
    doble = _calc(product={"numberOfPeople": 4, "lightingWattage": 600, "equipmentLoad": 1000})
    m0, m1 = base.breakdown.miscellaneous, doble.breakdown.miscellaneous
    assert m1.occupancy == pytest.approx(2 * m0.occupancy)
    assert m1.lighting == pytest.approx(2 * m0.lighting)
    assert m1.equipment == pytest.approx(2 * m0.equipment)
    assert m0.lighting == pytest.approx(0.3)
    assert m0.equipment == pytest.approx(0.5)
    # 2 personas x 0.270 kW x 8/24 h
    assert m0.occupancy == pytest.approx(2 * 0.270 * 8 / 24)
    assert m0.fans == pytest.approx(0.37)
    assert m0.total == pytest.approx(m0.occupancy + m0.lighting + m0.equipment + m0.fans)


def test_ventiladores_del_evaporador():
    base = _calc()
    assert base.breakdown.miscellaneous.fans == pytest.approx(0.37)
    tres = _calc(room={"fanMotorRating": 0.5, "numberOfFans": 3})
    assert tres.breakdown.miscellaneous.fans == pytest.approx(1.5)
    assert tres.total_before_safety - base.total_before_safety == pytest.approx(1.5 - 0.37)
    sin = _calc(product={"numberOfFans": 0})
    assert sin.breakdown.miscellaneous.fans == 0.0
    data = tres.as_dict()
    assert data["usage"]["numberOfFans"] == 3
    assert data["usage"]["fanMotorRating"] == 0.5
    assert data["breakdown"]["miscellaneous"]["fans"] == pytest.approx(1.5)


def test_caudal_por_ventilador():
    # recomendado = 72 m3 x 35.3147 x 30 / 60 x 1.25 = 1589 CFM
    res = _calc(conditions={"airFlowPerFan": 500})
    info = res.air_flow_info
    assert info.air_flow_per_fan == 500.0
    assert info.installed_cfm == 500.0
    assert info.fans_required == 4
    assert any("Caudal instalado" in w for w in res.warnings)

    res = _calc(conditions={"airFlowPerFan": 500}, product={"numberOfFans": 4})
    assert res.air_flow_info.installed_cfm == 2000.0
    assert not any("Caudal instalado" in w for w in res.warnings)


def test_ocupacion_cero_horas_operacion():
    res = _calc(conditions={"operatingHours": 0})
    assert res.breakdown.miscellaneous.occupancy == 0.0
    assert res.breakdown.air_change == 0.0
    assert res.daily_kj == 0.0


def test_sin_calefactores():
    res = _calc(room={"numberOfHeaters": 0, "numberOfDoors": 0})
    assert res.breakdown.heaters.total == 0.0
    assert res.as_dict()["breakdown"]["heaters"] == {
        "peripheral": 0.0,
        "door": 0.0,
        "steam": 0.0,
        "total": 0.0,
    }


def test_calefactores_por_defecto_y_vapor():
    res = _calc(conditions={"humidifierCapacity": 2})
    h = res.breakdown.heaters
    assert h.peripheral == pytest.approx(0.15)
    assert h.door == pytest.approx(0.27)
    assert h.steam == pytest.approx(2 * 2676.0 / 3600)
    assert res.latent_load >= h.steam


def test_shr_en_rango():
    res = _calc()
    assert 0.0 < res.shr <= 1.0
    assert res.sensible_load + res.latent_load == pytest.approx(res.total_before_safety)
    assert res.as_dict()["dailyLoads"]["shr"] == res.shr


def test_carga_cero_es_finita():
    res = calculate_cold_room_load(
        {**ROOM, "numberOfHeaters": 0, "numberOfDoors": 0},
        {"externalTemp": 4, "internalTemp": 4, "doorOpenings": 0},
        {
            "dailyLoad": 0,
            "incomingTemp": 4,
            "outgoingTemp": 4,
            "numberOfPeople": 0,
            "lightingWattage": 0,
            "equipmentLoad": 0,
            "numberOfFans": 0,
        },
    )
    assert res.total_before_safety == 0.0
    assert res.final_load == 0.0
    assert res.shr == 1.0
    assert res.storage_info.utilization == 0.0
    assert any("ΔT = 0" in w for w in res.warnings)


def test_almacenamiento_valor_crudo():
    res = _calc()
    info = res.storage_info
    assert info.max_storage == pytest.approx(72.0 * 8.0)
    assert info.current_load == 3000
    assert info.utilization == pytest.approx(3000 / 576 * 100)
    assert info.available_capacity == pytest.approx(576 - 3000)
    assert any("Utilizacion" in w for w in res.warnings)


def test_caudal_de_aire():
    res = _calc()
    esperado = 72.0 * 35.3147 * 30.0 / 60.0
    assert res.air_flow_info.required_cfm == pytest.approx(esperado)
    assert res.air_flow_info.recommended_cfm == pytest.approx(esperado * 1.25)
    assert res.air_flow_info.air_flow_per_fan == 4163.0
    assert res.air_flow_info.installed_cfm == 4163.0
    assert res.air_flow_info.fans_required == 1
    assert res.as_dict()["airFlowInfo"]["fansRequired"] == 1


def test_renovaciones_tabla_ashrae():
    # 72 m3 = 2543 ft3 -> fila de 3000 ft3 (9.5 renov/24h), +1 % por apertura
    res = _calc(conditions={"doorOpenings": 30})
    assert res.air_changes_per_day == pytest.approx(9.5 * 1.30)
    congelado = _calc(
        conditions={"internalTemp": -18, "doorOpenings": 0, "coolingType": "Frozen Storage"},
        product={"outgoingTemp": -18},
    )
    assert congelado.air_changes_per_day == pytest.approx(7.4)
    # la columna la fija coolingType, no el signo de la temperatura
    refrigerado = _calc(conditions={"internalTemp": -18, "doorOpenings": 0}, product={"outgoingTemp": -18})
    assert refrigerado.air_changes_per_day == pytest.approx(9.5)


def test_idempotencia_de_normalizacion():
    primero = _calc()
    registros = primero.inputs.as_records()
    segundo = calculate_cold_room_load(registros["room"], registros["conditions"], registros["product"])
    assert segundo == primero
    assert segundo.as_dict() == primero.as_dict()


def test_mismo_resultado_en_llamadas_repetidas():
    assert _calc().as_dict() == _calc().as_dict()


def test_producto_salida_mayor_que_entrada():
    with pytest.raises(PhysicallyInconsistentInputError) as exc:
        _calc(product={"incomingTemp": 4, "outgoingTemp": 10})
    assert "product_temperatures" in exc.value.fields


def test_delta_t_negativo():
    with pytest.raises(PhysicallyInconsistentInputError) as exc:
        _calc(conditions={"externalTemp": 0, "internalTemp": 4}, product={"outgoingTemp": 4})
    assert "temperature_difference" in exc.value.fields


def test_tiempo_de_enfriamiento_cero():
    with pytest.raises(InvalidInputError) as exc:
        _calc(conditions={"pullDownTime": 0})
    assert exc.value.fields == ["pull_down_time"]


def test_dimension_negativa():
    with pytest.raises(InvalidInputError):
        _calc(room={"length": -1})


def test_masa_negativa():
    with pytest.raises(InvalidInputError):
        _calc(product={"dailyLoad": -10})


def test_valor_no_numerico():
    with pytest.raises(InvalidInputError) as exc:
        _calc(room={"width": "abc"})
    assert exc.value.fields == ["width"]
    assert isinstance(exc.value, ValueError)


def test_modo_tolerante_usa_defecto():
    res = _calc(room={"width": "abc"}, strict=False)
    assert res.inputs.geometry.width_m == 4.0
    assert any("room.width" in w for w in res.warnings)


def test_registro_de_construccion_se_combina():
    res = calculate_cold_room_load(
        {**ROOM, "insulationType": "EPS"},
        CONDITIONS,
        PRODUCT,
        construction={"insulationType": "PUF", "insulationThickness": 150},
    )
    assert res.inputs.construction.insulation_type == "PUF"
    assert res.u_factor_wall == pytest.approx(0.023 / 0.150)


def test_aislamiento_desconocido_usa_puf():
    res = _calc(room={"insulationType": "madera"})
    puf = _calc()
    assert res.u_factor_wall == pytest.approx(puf.u_factor_wall)
    assert any("desconocido" in w for w in res.warnings)


def test_u_factor_monotono():
    calc = ColdRoomLoadCalculator()
    espesores = [50, 75, 100, 150, 200]
    valores = [calc.u_factor("PUF", e) for e in espesores]
    assert all(a > b for a, b in zip(valores, valores[1:]))
    assert calc.u_factor("EPS", 100) > calc.u_factor("PUF", 100)
    assert calc.u_factor("puf", 100) == pytest.approx(0.23)


def test_u_factor_igual_al_de_transmision():
    calc = ColdRoomLoadCalculator()
    res = calc.compute({**ROOM, "insulationType": "EPS", "wallThickness": 150}, CONDITIONS, PRODUCT)
    assert res.u_factor_wall == calc.u_factor("EPS", 150)
    assert res.u_factor_floor == calc.u_factor("EPS", 100)


def test_apertura_libre_solo_informativa():
    estrecha = _calc(conditions={"doorClearOpening": 900})
    ancha = _calc(conditions={"doorClearOpening": 2000})
    assert estrecha.final_load == ancha.final_load
    assert estrecha.breakdown == ancha.breakdown
    assert estrecha.as_dict()["doorDimensions"]["clearOpening"] == 900.0


def test_geometria_monotona():
    base = RoomGeometry(6.0, 4.0, 3.0, 1.2, 2.1)
    for mayor in (
        RoomGeometry(7.0, 4.0, 3.0, 1.2, 2.1),
        RoomGeometry(6.0, 5.0, 3.0, 1.2, 2.1),
        RoomGeometry(6.0, 4.0, 3.5, 1.2, 2.1),
    ):
        assert mayor.volume_m3 > base.volume_m3
        assert mayor.wall_area_m2 > base.wall_area_m2
        assert mayor.ceiling_area_m2 >= base.ceiling_area_m2
        assert mayor.floor_area_m2 >= base.floor_area_m2
    assert base.volume_m3 == pytest.approx(72.0)
    assert base.wall_area_m2 == pytest.approx(60.0)
    assert base.ceiling_area_m2 == pytest.approx(24.0)
    assert base.door_area_m2 == pytest.approx(2.52)


def test_directorio_de_datos_inexistente(tmp_path):
    with pytest.raises(FileNotFoundError):
        ColdRoomLoadCalculator(data_dir=tmp_path)

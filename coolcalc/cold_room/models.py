from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ValidationIssue:
    level: str  # warning | error
    message: str
    field: Optional[str] = None


# ---------------------------- ENTRADAS ---------------------------- #


@dataclass(frozen=True)
class RoomGeometry:
    length_m: float
    width_m: float
    height_m: float
    door_width_m: float
    door_height_m: float

    @property
    def volume_m3(self) -> float:
        return self.length_m * self.width_m * self.height_m

    @property
    def wall_area_m2(self) -> float:
        # area bruta: la puerta tiene su propio termino de carga
        return 2.0 * (self.length_m + self.width_m) * self.height_m

    @property
    def ceiling_area_m2(self) -> float:
        return self.length_m * self.width_m

    @property
    def floor_area_m2(self) -> float:
        return self.length_m * self.width_m

    @property
    def door_area_m2(self) -> float:
        return self.door_width_m * self.door_height_m


@dataclass(frozen=True)
class Construction:
    insulation_type: str
    wall_thickness_mm: float
    ceiling_thickness_mm: float
    floor_thickness_mm: float
    number_of_heaters: int
    number_of_doors: int


@dataclass(frozen=True)
class OperatingConditions:
    external_temp_C: float
    internal_temp_C: float
    operating_hours: float
    pull_down_time_h: float
    door_openings: float
    door_clear_opening_mm: float  # solo informativo: se reporta, ninguna formula lo usa
    humidity_pct: float
    storage_density_kg_m3: float
    humidifier_capacity_kg_h: float
    cooling_type: str = "Chilled Storage"

    @property
    def temperature_difference(self) -> float:
        return self.external_temp_C - self.internal_temp_C

    @property
    def frozen_storage(self) -> bool:
        # columna de congelados de la tabla de renovaciones
        return self.cooling_type.strip().lower().startswith("frozen")


@dataclass(frozen=True)
class Usage:
    number_of_people: float
    working_hours: float
    lighting_W: float
    equipment_W: float
    fan_motor_kw: float = 0.37
    number_of_fans: int = 1
    air_flow_per_fan_cfm: float = 4163.0


@dataclass(frozen=True)
class ProductLoad:
    product_type: str
    daily_load_kg: float
    incoming_temp_C: float
    outgoing_temp_C: float
    specific_heat_kjkgk: float
    respiration_rate_w_t: float
    storage_type: str


@dataclass(frozen=True)
class NormalizedInputs:
    """Entrada canonica: todos los campos resueltos antes de calcular."""

    geometry: RoomGeometry
    construction: Construction
    conditions: OperatingConditions
    usage: Usage
    product: ProductLoad
    defaulted: tuple = field(default=(), compare=False)
    notes: tuple = field(default=(), compare=False)

    def as_records(self) -> Dict[str, Dict]:
        """Devuelve los tres registros (room, conditions, product) con claves actuales."""
        g, c, k, u, p = self.geometry, self.construction, self.conditions, self.usage, self.product
        room = {
            "length": g.length_m,
            "width": g.width_m,
            "height": g.height_m,
            "doorWidth": g.door_width_m,
            "doorHeight": g.door_height_m,
            "insulationType": c.insulation_type,
            "wallThickness": c.wall_thickness_mm,
            "ceilingThickness": c.ceiling_thickness_mm,
            "floorThickness": c.floor_thickness_mm,
            "numberOfHeaters": c.number_of_heaters,
            "numberOfDoors": c.number_of_doors,
        }
        conditions = {
            "externalTemp": k.external_temp_C,
            "internalTemp": k.internal_temp_C,
            "operatingHours": k.operating_hours,
            "pullDownTime": k.pull_down_time_h,
            "doorOpenings": k.door_openings,
            "doorClearOpening": k.door_clear_opening_mm,
            "humidity": k.humidity_pct,
            "storageDensity": k.storage_density_kg_m3,
            "humidifierCapacity": k.humidifier_capacity_kg_h,
            "coolingType": k.cooling_type,
        }
        product = {
            "productType": p.product_type,
            "dailyLoad": p.daily_load_kg,
            "incomingTemp": p.incoming_temp_C,
            "outgoingTemp": p.outgoing_temp_C,
            "specificHeat": p.specific_heat_kjkgk,
            "respirationRate": p.respiration_rate_w_t,
            "storageType": p.storage_type,
            "numberOfPeople": u.number_of_people,
            "workingHours": u.working_hours,
            "lightingWattage": u.lighting_W,
            "equipmentLoad": u.equipment_W,
            "fanMotorRating": u.fan_motor_kw,
            "numberOfFans": u.number_of_fans,
            "airFlowPerFan": u.air_flow_per_fan_cfm,
        }
        return {"room": room, "conditions": conditions, "product": product}


# ---------------------------- RESULTADOS ---------------------------- #


@dataclass(frozen=True)
class TransmissionBreakdown:
    walls: float = 0.0
    ceiling: float = 0.0
    floor: float = 0.0

    @property
    def total(self) -> float:
        return self.walls + self.ceiling + self.floor


@dataclass(frozen=True)
class MiscellaneousBreakdown:
    occupancy: float = 0.0
    lighting: float = 0.0
    equipment: float = 0.0
    fans: float = 0.0

    @property
    def total(self) -> float:
        return self.occupancy + self.lighting + self.equipment + self.fans


@dataclass(frozen=True)
class HeaterBreakdown:
    peripheral: float = 0.0
    door: float = 0.0
    steam: float = 0.0

    @property
    def total(self) -> float:
        return self.peripheral + self.door + self.steam


@dataclass(frozen=True)
class LoadBreakdown:
    transmission: TransmissionBreakdown
    product: float
    respiration: float
    air_change: float
    door_opening: float
    miscellaneous: MiscellaneousBreakdown
    heaters: HeaterBreakdown

    @property
    def total(self) -> float:
        return (
            self.transmission.total
            + self.product
            + self.respiration
            + self.air_change
            + self.door_opening
            + self.miscellaneous.total
            + self.heaters.total
        )

    def as_percentages(self) -> Dict[str, float]:
        tot = self.total or 1.0
        return {
            "transmission_pct": self.transmission.total / tot,
            "product_pct": self.product / tot,
            "respiration_pct": self.respiration / tot,
            "air_change_pct": self.air_change / tot,
            "door_opening_pct": self.door_opening / tot,
            "miscellaneous_pct": self.miscellaneous.total / tot,
            "heaters_pct": self.heaters.total / tot,
        }


@dataclass(frozen=True)
class StorageInfo:
    max_storage: float
    current_load: float
    utilization: float
    available_capacity: float


@dataclass(frozen=True)
class AirFlowInfo:
    required_cfm: float
    recommended_cfm: float
    air_flow_per_fan: float = 0.0
    installed_cfm: float = 0.0
    fans_required: int = 0


@dataclass(frozen=True)
class LoadResult:
    inputs: NormalizedInputs
    u_factor_wall: float
    u_factor_ceiling: float
    u_factor_floor: float
    breakdown: LoadBreakdown
    total_before_safety: float
    safety_factor_load: float
    final_load: float
    total_tr: float
    total_btu: float
    daily_kj: float
    daily_kwh: float
    sensible_load: float
    latent_load: float
    shr: float
    storage_info: StorageInfo
    air_flow_info: AirFlowInfo
    air_changes_per_day: float
    warnings: List[str] = field(default_factory=list)

    # accesos directos
    @property
    def volume(self) -> float:
        return self.inputs.geometry.volume_m3

    @property
    def temperature_difference(self) -> float:
        return self.inputs.conditions.temperature_difference

    @property
    def pull_down_time(self) -> float:
        return self.inputs.conditions.pull_down_time_h

    def as_dict(self) -> Dict:
        """Forma estable (camelCase) que consumen las pantallas y reportes."""
        g = self.inputs.geometry
        c = self.inputs.construction
        k = self.inputs.conditions
        u = self.inputs.usage
        p = self.inputs.product
        b = self.breakdown
        return {
            "dimensions": {
                "length": g.length_m,
                "width": g.width_m,
                "height": g.height_m,
                "doorWidth": g.door_width_m,
                "doorHeight": g.door_height_m,
            },
            "doorDimensions": {
                "width": g.door_width_m,
                "height": g.door_height_m,
                "area": g.door_area_m2,
                "clearOpening": k.door_clear_opening_mm,
            },
            "volume": g.volume_m3,
            "areas": {
                "wall": g.wall_area_m2,
                "ceiling": g.ceiling_area_m2,
                "floor": g.floor_area_m2,
                "door": g.door_area_m2,
            },
            "construction": {
                "type": c.insulation_type,
                "insulationType": c.insulation_type,
                "thickness": c.wall_thickness_mm,
                "wallThickness": c.wall_thickness_mm,
                "ceilingThickness": c.ceiling_thickness_mm,
                "floorThickness": c.floor_thickness_mm,
                "uFactor": self.u_factor_wall,
                "ceilingUFactor": self.u_factor_ceiling,
                "floorUFactor": self.u_factor_floor,
                "numberOfHeaters": c.number_of_heaters,
                "numberOfDoors": c.number_of_doors,
            },
            "conditions": {
                "externalTemp": k.external_temp_C,
                "internalTemp": k.internal_temp_C,
                "operatingHours": k.operating_hours,
                "pullDownTime": k.pull_down_time_h,
                "doorOpenings": k.door_openings,
                "doorClearOpening": k.door_clear_opening_mm,
                "humidity": k.humidity_pct,
                "storageDensity": k.storage_density_kg_m3,
                "humidifierCapacity": k.humidifier_capacity_kg_h,
                "coolingType": k.cooling_type,
            },
            "usage": {
                "numberOfPeople": u.number_of_people,
                "workingHours": u.working_hours,
                "lightingWattage": u.lighting_W,
                "equipmentLoad": u.equipment_W,
                "fanMotorRating": u.fan_motor_kw,
                "numberOfFans": u.number_of_fans,
                "airFlowPerFan": u.air_flow_per_fan_cfm,
            },
            "productInfo": {
                "type": p.product_type,
                "mass": p.daily_load_kg,
                "incomingTemp": p.incoming_temp_C,
                "outgoingTemp": p.outgoing_temp_C,
                "specificHeat": p.specific_heat_kjkgk,
                "respirationRate": p.respiration_rate_w_t,
                "storageType": p.storage_type,
            },
            "storageCapacity": {
                "density": k.storage_density_kg_m3,
                "storageType": p.storage_type,
            },
            "temperatureDifference": self.temperature_difference,
            "pullDownTime": self.pull_down_time,
            "breakdown": {
                "transmission": {
                    "walls": b.transmission.walls,
                    "ceiling": b.transmission.ceiling,
                    "floor": b.transmission.floor,
                    "total": b.transmission.total,
                },
                "product": b.product,
                "respiration": b.respiration,
                "airChange": b.air_change,
                "doorOpening": b.door_opening,
                "miscellaneous": {
                    "occupancy": b.miscellaneous.occupancy,
                    "lighting": b.miscellaneous.lighting,
                    "equipment": b.miscellaneous.equipment,
                    "fans": b.miscellaneous.fans,
                    "total": b.miscellaneous.total,
                },
                "heaters": {
                    "peripheral": b.heaters.peripheral,
                    "door": b.heaters.door,
                    "steam": b.heaters.steam,
                    "total": b.heaters.total,
                },
            },
            "totalBeforeSafety": self.total_before_safety,
            "safetyFactorLoad": self.safety_factor_load,
            "finalLoad": self.final_load,
            "totalTR": self.total_tr,
            "totalBTU": self.total_btu,
            "dailyKJ": self.daily_kj,
            "dailyKWh": self.daily_kwh,
            "shr": self.shr,
            "dailyLoads": {
                "shr": self.shr,
                "sensible": self.sensible_load,
                "latent": self.latent_load,
            },
            "airChangesPerDay": self.air_changes_per_day,
            "storageInfo": {
                "maxStorage": self.storage_info.max_storage,
                "currentLoad": self.storage_info.current_load,
                "utilization": self.storage_info.utilization,
                "availableCapacity": self.storage_info.available_capacity,
            },
            "airFlowInfo": {
                "requiredCfm": self.air_flow_info.required_cfm,
                "recommendedCfm": self.air_flow_info.recommended_cfm,
                "airFlowPerFan": self.air_flow_info.air_flow_per_fan,
                "installedCfm": self.air_flow_info.installed_cfm,
                "fansRequired": self.air_flow_info.fans_required,
            },
            "warnings": list(self.warnings),
        }

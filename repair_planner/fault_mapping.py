"""Static fault type -> (skills, parts) lookup for the tire plant equipment."""

from typing import Dict, List, Tuple

from .schemas import FaultRequirements


DEFAULT_SKILLS: Tuple[str, ...] = ("general_maintenance",)
DEFAULT_PARTS: Tuple[str, ...] = ()

FAULT_MAPPINGS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    "curing_temperature_excessive": (
        ("thermal_controls", "plc_programming"),
        ("TCP-HTR-4KW", "GEN-TS-K400"),
    ),
    "curing_cycle_time_deviation": (
        ("plc_programming", "tire_curing_press", "process_control"),
        ("TCP-BLD-800", "TCP-SEAL-200"),
    ),
    "hydraulic_pressure_loss": (
        ("hydraulic_systems", "tire_curing_press", "mechanical_systems"),
        ("TCP-HYD-VLV", "TCP-SEAL-200", "GEN-HYD-FLT"),
    ),
    "bladder_failure": (
        ("tire_curing_press", "mold_maintenance"),
        ("TCP-BLD-800",),
    ),
    "building_drum_vibration": (
        ("vibration_analysis", "bearing_replacement", "tire_building_machine"),
        ("TBM-BRG-6220",),
    ),
    "ply_tension_excessive": (
        ("tension_control", "servo_systems", "tire_building_machine"),
        ("TBM-LC-500N", "TBM-SRV-5KW"),
    ),
    "extruder_barrel_overheating": (
        ("thermal_controls", "extruder_maintenance", "electrical_systems"),
        ("EXT-HTR-BAND", "GEN-TS-K400"),
    ),
    "low_material_throughput": (
        ("extruder_maintenance", "screw_maintenance", "process_control"),
        ("EXT-SCR-250", "EXT-DIE-TR"),
    ),
    "high_radial_force_variation": (
        ("tire_uniformity", "data_analysis", "measurement_systems"),
        (),
    ),
    "load_cell_drift": (
        ("load_cell_calibration", "measurement_systems", "instrumentation"),
        ("TUM-LC-2KN", "TUM-ENC-5000"),
    ),
    "mixing_temperature_excessive": (
        ("banbury_mixer", "thermal_controls", "mechanical_systems"),
        ("BMX-TIP-500", "GEN-TS-K400"),
    ),
    "excessive_power_consumption": (
        ("electrical_systems", "motor_drives", "banbury_mixer"),
        ("BMX-SEAL-DP",),
    ),
}


def _key(fault_type: str) -> str:
    return str(fault_type or "").strip().lower()


def map_requirements(fault_type: str) -> FaultRequirements:
    """Return the skills and part numbers a fault needs.

    Unknown fault types get the generic maintenance skill and no parts so the
    planning run can still produce a degraded plan.
    """
    skills, parts = FAULT_MAPPINGS.get(_key(fault_type), (DEFAULT_SKILLS, DEFAULT_PARTS))
    return FaultRequirements(skills=list(skills), part_numbers=list(parts))


def get_required_skills(fault_type: str) -> List[str]:
    return map_requirements(fault_type).skills


def get_required_parts(fault_type: str) -> List[str]:
    return map_requirements(fault_type).part_numbers


def known_fault_types() -> List[str]:
    return sorted(FAULT_MAPPINGS)

"""Sample technicians, parts and a diagnosed fault for a tire plant."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from .schemas import DiagnosedFault, Part, Technician, TechnicianContactInfo


def sample_fault() -> DiagnosedFault:
    return DiagnosedFault(
        machine_id="TCP-001",
        fault_type="curing_temperature_excessive",
        severity="high",
        description="Curing temperature exceeded threshold: 179.2°C (normal: 170°C)",
        detected_at=datetime.now(timezone.utc),
        recommended_actions=[
            "Check heating element calibration",
            "Verify temperature sensor readings",
            "Inspect steam pressure regulator",
            "Review recent PLC program changes",
        ],
        estimated_downtime_minutes=120,
    )


def _technician(tech_id, name, department, skills, years, status="available", shift="day") -> Technician:
    email = name.lower().replace(" ", ".") + "@tireplant.example"
    return Technician(
        id=tech_id,
        name=name,
        department=department,
        skills=list(skills),
        experience_years=years,
        current_status=status,
        shift=shift,
        contact_info=TechnicianContactInfo(email=email, phone=""),
    )


def sample_technicians() -> List[Technician]:
    return [
        _technician("T-001", "John Smith", "Maintenance", ["thermal_controls", "plc_programming", "electrical_systems"], 8),
        _technician("T-002", "Maria Garcia", "Maintenance", ["hydraulic_systems", "tire_curing_press", "mechanical_systems"], 12),
        _technician("T-003", "Wei Chen", "Controls", ["plc_programming", "process_control", "servo_systems"], 5),
        _technician("T-004", "Aisha Patel", "Quality", ["tire_uniformity", "measurement_systems", "load_cell_calibration"], 6),
        _technician("T-005", "Lukas Novak", "Maintenance", ["vibration_analysis", "bearing_replacement", "tire_building_machine"], 10, shift="night"),
        _technician("T-006", "Grace Okafor", "Mixing", ["banbury_mixer", "thermal_controls", "motor_drives"], 15, status="busy"),
        _technician("T-007", "Sam Rivera", "Maintenance", ["general_maintenance", "extruder_maintenance", "screw_maintenance"], 3),
    ]


def _part(part_id, part_number, name, category, qty, cost, location, supplier="Plant Supply Co", lead_days=7) -> Part:
    return Part(
        id=part_id,
        part_number=part_number,
        name=name,
        description=name,
        category=category,
        quantity_available=qty,
        reorder_point=2,
        unit_cost=Decimal(cost),
        location=location,
        supplier=supplier,
        lead_time_days=lead_days,
    )


def sample_parts() -> List[Part]:
    return [
        _part("P-001", "TCP-HTR-4KW", "Curing press heater element 4kW", "curing_press", 4, "420.00", "A-12"),
        _part("P-002", "GEN-TS-K400", "Type K thermocouple 400mm", "sensors", 25, "38.50", "B-03"),
        _part("P-003", "TCP-BLD-800", "Curing bladder 800mm", "curing_press", 6, "310.00", "A-14"),
        _part("P-004", "TCP-SEAL-200", "Press seal kit 200mm", "curing_press", 10, "54.00", "A-15"),
        _part("P-005", "TCP-HYD-VLV", "Hydraulic control valve", "hydraulics", 3, "690.00", "C-01", lead_days=21),
        _part("P-006", "GEN-HYD-FLT", "Hydraulic return filter", "hydraulics", 18, "42.00", "C-02"),
        _part("P-007", "TBM-BRG-6220", "Drum bearing 6220", "building_machine", 8, "95.00", "D-07"),
        _part("P-008", "TBM-LC-500N", "Ply tension load cell 500N", "building_machine", 2, "260.00", "D-08"),
        _part("P-009", "TBM-SRV-5KW", "Servo motor 5kW", "building_machine", 1, "2150.00", "D-09", lead_days=30),
        _part("P-010", "EXT-HTR-BAND", "Extruder barrel heater band", "extruder", 12, "130.00", "E-01"),
        _part("P-011", "EXT-SCR-250", "Extruder screw 250mm", "extruder", 1, "4800.00", "E-02", lead_days=45),
        _part("P-012", "EXT-DIE-TR", "Tread profile die", "extruder", 2, "1200.00", "E-03"),
        _part("P-013", "TUM-LC-2KN", "Uniformity machine load cell 2kN", "uniformity", 3, "540.00", "F-01"),
        _part("P-014", "TUM-ENC-5000", "Spindle encoder 5000ppr", "uniformity", 4, "310.00", "F-02"),
        _part("P-015", "BMX-TIP-500", "Mixer rotor tip 500", "mixer", 2, "880.00", "G-01"),
        _part("P-016", "BMX-SEAL-DP", "Mixer dust stop seal", "mixer", 5, "150.00", "G-02"),
    ]


async def seed_store(store) -> None:
    await store.init()
    for technician in sample_technicians():
        await store.upsert_technician(technician)
    for part in sample_parts():
        await store.upsert_part(part)

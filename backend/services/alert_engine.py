"""
rule-based alert engine for home vital-sign readings.

maps one reading to zero or more threshold alerts. evaluation looks only at
the reading's own values, never at history, so it is safe to call from any
number of concurrent requests. does not provide medical diagnosis.
"""

from collections.abc import Mapping
from dataclasses import dataclass, asdict, replace
from typing import Any, Iterator, Optional


# threshold constants for vital signs

# blood pressure thresholds (mmhg)
SYSTOLIC_HIGH = 140
SYSTOLIC_LOW = 90
DIASTOLIC_HIGH = 90
DIASTOLIC_LOW = 60

# oxygen saturation thresholds (%)
OXYGEN_LOW = 95
OXYGEN_CRITICAL = 90

# blood sugar thresholds (mg/dl)
BLOOD_SUGAR_HIGH = 180
BLOOD_SUGAR_LOW = 70


@dataclass(frozen=True)
class Alert:
    """
    a warning raised for one reading whose value is outside its band.

    attributes:
        type: "blood_pressure", "oxygen" or "blood_sugar"
        severity: "low", "moderate", "high" or "critical"
        message: human readable description including the value
        reading_id: id of the originating reading (none until stored)
    """

    type: str
    severity: str
    message: str
    reading_id: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)


def blood_pressure_status(systolic: float, diastolic: float) -> str:
    """
    classify a blood pressure pair.

    the high check runs first, so a pair that is high on one side and low
    on the other reports high.

    returns:
        "high", "low" or "normal"
    """
    if systolic > SYSTOLIC_HIGH or diastolic > DIASTOLIC_HIGH:
        return "high"
    if systolic < SYSTOLIC_LOW or diastolic < DIASTOLIC_LOW:
        return "low"
    return "normal"


def oxygen_status(level: float) -> str:
    """
    classify an oxygen saturation value.

    returns:
        "low" or "normal"
    """
    return "low" if level < OXYGEN_LOW else "normal"


def blood_sugar_status(value: float) -> str:
    """
    classify a blood sugar value.

    returns:
        "high", "low" or "normal"
    """
    if value > BLOOD_SUGAR_HIGH:
        return "high"
    if value < BLOOD_SUGAR_LOW:
        return "low"
    return "normal"


def _check_blood_pressure(systolic: Optional[int], diastolic: Optional[int]) -> Optional[Alert]:
    """
    check a blood pressure pair; both values must be present.

    args:
        systolic: systolic pressure in mmhg
        diastolic: diastolic pressure in mmhg

    returns:
        alert if outside the normal band, none otherwise
    """
    if not systolic or not diastolic:
        return None

    status = blood_pressure_status(systolic, diastolic)
    if status == "high":
        return Alert(
            type="blood_pressure",
            severity="high",
            message=f"High blood pressure detected: {systolic}/{diastolic} mmHg"
        )
    if status == "low":
        return Alert(
            type="blood_pressure",
            severity="low",
            message=f"Low blood pressure detected: {systolic}/{diastolic} mmHg"
        )
    return None


def _check_oxygen(level: Optional[int]) -> Optional[Alert]:
    """
    check oxygen saturation; zero or missing is treated as not measured.

    returns:
        moderate alert below 95%, critical below 90%, none otherwise
    """
    if not level:
        return None

    if oxygen_status(level) == "low":
        return Alert(
            type="oxygen",
            severity="critical" if level < OXYGEN_CRITICAL else "moderate",
            message=f"Low oxygen level: {level}%"
        )
    return None


def _check_blood_sugar(value: Optional[int]) -> Optional[Alert]:
    """
    check blood sugar; zero or missing is treated as not measured.

    returns:
        high or low alert when outside 70-180 mg/dl, none otherwise
    """
    if not value:
        return None

    status = blood_sugar_status(value)
    if status == "high":
        return Alert(
            type="blood_sugar",
            severity="high",
            message=f"High blood sugar: {value} mg/dL"
        )
    if status == "low":
        return Alert(
            type="blood_sugar",
            severity="low",
            message=f"Low blood sugar: {value} mg/dL"
        )
    return None


def _value(reading: Any, name: str) -> Any:
    if isinstance(reading, Mapping):
        return reading.get(name)
    return getattr(reading, name, None)


def evaluate_reading(reading: Any) -> Iterator[Alert]:
    """
    evaluate one reading against the alert thresholds.

    alerts are yielded lazily in the order blood pressure, oxygen, blood
    sugar, with at most one alert per metric. urine output has no threshold
    and is never evaluated.

    args:
        reading: a Reading model instance, any object exposing systolic,
            diastolic, oxygen_level and blood_sugar attributes, or a mapping
            with those keys

    yields:
        Alert records carrying the reading's id, if it has one
    """
    reading_id = _value(reading, "id")

    bp_alert = _check_blood_pressure(
        _value(reading, "systolic"),
        _value(reading, "diastolic")
    )
    if bp_alert:
        yield replace(bp_alert, reading_id=reading_id)

    oxygen_alert = _check_oxygen(_value(reading, "oxygen_level"))
    if oxygen_alert:
        yield replace(oxygen_alert, reading_id=reading_id)

    sugar_alert = _check_blood_sugar(_value(reading, "blood_sugar"))
    if sugar_alert:
        yield replace(sugar_alert, reading_id=reading_id)

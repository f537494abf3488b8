from .schema import (
    MODES,
    DIFFICULTIES,
    SHOT_KINDS,
    RESULT_DTYPES,
    SHOT_DTYPES,
    CALIBRATION_DTYPES,
    TrainingResultRow,
    ShotEventRow,
    CalibrationRunRow,
)
from .store import (
    init_store,
    validate_results,
    validate_shot_events,
    validate_calibration_runs,
    append_training_results,
    append_shot_events,
    append_calibration_runs,
    load_training_results,
    load_shot_events,
    load_calibration_runs,
    query_trend,
    personal_bests,
    export_ndjson,
    export_csv,
)

__all__ = [
    "MODES",
    "DIFFICULTIES",
    "SHOT_KINDS",
    "RESULT_DTYPES",
    "SHOT_DTYPES",
    "CALIBRATION_DTYPES",
    "TrainingResultRow",
    "ShotEventRow",
    "CalibrationRunRow",
    "init_store",
    "validate_results",
    "validate_shot_events",
    "validate_calibration_runs",
    "append_training_results",
    "append_shot_events",
    "append_calibration_runs",
    "load_training_results",
    "load_shot_events",
    "load_calibration_runs",
    "query_trend",
    "personal_bests",
    "export_ndjson",
    "export_csv",
]

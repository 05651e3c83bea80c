from .csv_export import (
    DIAGNOSTIC_FIELDS,
    export_diagnostics_csv,
    export_records_csv,
    export_records_json,
    export_result,
    export_summary_json,
    load_records_json,
)

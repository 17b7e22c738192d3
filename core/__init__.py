"""EasyCount core library — shared data layer for the TUI and the web API.

Public API re-exports for convenient imports:
    from core import CounterStore, CounterOperations, export_counter_csv, ...
"""

# Workspace & paths
from core.workspace import (
    workspace_root,
    now_utc,
    store_path,
    settings_path,
    exports_dir,
    log_path,
)

# File I/O
from core.fileio import (
    read_text,
    read_json,
    read_yaml,
    write_text_atomic,
    write_json_atomic,
    write_yaml_atomic,
)

# Errors
from core.errors import (
    EasyCountError,
    StoreError,
    NotFoundError,
    ExportError,
)

# Models
from core.models import (
    Counter,
    CounterDetail,
    StoreData,
    Settings,
    PLACEHOLDER_NAME,
    MIN_COUNT,
    MAX_COUNT,
)

# Store
from core.store import (
    CounterStore,
    StoreChange,
    Subscription,
)

# Settings
from core.settings import (
    load_settings,
    save_settings,
    update_settings,
)

# Operations
from core.operations import (
    CounterOperations,
    is_valid_name,
    clamp_count,
    resolve_positions,
)

# CSV export
from core.export import (
    render_csv,
    export_filename,
    export_counter_csv,
)

from .managed_process import (
    ManagedProcess as ManagedProcess,
    launch as launch,
)
from .process_status import ProcessStatus as ProcessStatus

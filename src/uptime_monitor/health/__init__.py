"""Health subsystem — probe strategies, scheduler, status view."""

from .engine import CheckOutcome, execute_check
from .scheduler import CheckRecord, CheckScheduler
from .status import service_detail, service_status

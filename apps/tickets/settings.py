from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Tuple
import pytz

import config
from .queue_class import QueueClass, build_queue_classes

RATE_LIMIT_SCOPES = ("global", "origin")


@dataclass(frozen=True)
class QueueSettings:
    queue_classes: Tuple[QueueClass, ...]
    timezone: str = "America/Sao_Paulo"
    shift_boundary_hour: int = 12
    daily_normal_cap: int = 400
    shift_normal_cap: int = 200
    rate_limit_scope: str = "global"
    max_batch: int = 500
    print_job_ttl_seconds: int = 300

    def __post_init__(self):
        if self.rate_limit_scope not in RATE_LIMIT_SCOPES:
            raise ValueError(f"RATE_LIMIT_SCOPE must be one of {RATE_LIMIT_SCOPES}, got '{self.rate_limit_scope}'")
        if not 0 < self.shift_boundary_hour < 24:
            raise ValueError("SHIFT_BOUNDARY_HOUR must be between 1 and 23")
        if self.max_batch < 1:
            raise ValueError("MAX_BATCH must be positive")

    @classmethod
    def from_config(cls, **overrides) -> "QueueSettings":
        values = dict(
            queue_classes=build_queue_classes(config.QUEUE_ORIGINS),
            timezone=config.SERVICE_TIMEZONE,
            shift_boundary_hour=config.SHIFT_BOUNDARY_HOUR,
            daily_normal_cap=config.DAILY_NORMAL_CAP,
            shift_normal_cap=config.SHIFT_NORMAL_CAP,
            rate_limit_scope=config.RATE_LIMIT_SCOPE,
            max_batch=config.MAX_BATCH,
            print_job_ttl_seconds=config.PRINT_JOB_TTL_SECONDS,
        )
        values.update(overrides)
        return cls(**values)


@dataclass
class ServiceClock:
    """Wall clock of the service timezone, as naive local datetimes"""

    timezone: str = "America/Sao_Paulo"
    _zone: Any = field(init=False, repr=False)

    def __post_init__(self):
        self._zone = pytz.timezone(self.timezone)

    def __call__(self) -> datetime:
        return datetime.now(self._zone).replace(tzinfo=None)


Clock = Callable[[], datetime]

from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from apps.display.broadcast import Broadcaster
from apps.receipts.store import PrintJobStore
from shared.database import create_session_factory, engine as default_engine
from .locks import KeyedLockRegistry
from .settings import Clock, QueueSettings, ServiceClock


@dataclass
class QueueContext:
    """Process scoped collaborators shared by every ticket operation"""

    settings: QueueSettings
    engine: Engine
    session_factory: sessionmaker
    broadcaster: Broadcaster
    print_jobs: PrintJobStore
    clock: Clock
    locks: KeyedLockRegistry = field(default_factory=KeyedLockRegistry)

    @classmethod
    def build(
        cls,
        settings: Optional[QueueSettings] = None,
        bind: Optional[Engine] = None,
        clock: Optional[Clock] = None
    ) -> "QueueContext":
        settings = settings or QueueSettings.from_config()
        bind = bind or default_engine
        return cls(
            settings=settings,
            engine=bind,
            session_factory=create_session_factory(bind),
            broadcaster=Broadcaster(),
            print_jobs=PrintJobStore(ttl_seconds=settings.print_job_ttl_seconds),
            clock=clock or ServiceClock(settings.timezone),
        )

import sys
import time
from dataclasses import dataclass, field
from typing import List, Optional

LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")
MAX_LOGS = 200


@dataclass
class LogEntry:
    ts: float
    level: str
    msg: str

    def format(self) -> str:
        return f"[{time.strftime('%H:%M:%S', time.localtime(self.ts))}] {self.level}: {self.msg}"


@dataclass
class StatusStore:
    """Injectable log sink. Components get it at construction and call log()/flow()."""
    min_level: str = "DEBUG"
    echo: bool = False               # mirror entries to stderr (CLI --verbose)
    last_error: Optional[str] = None
    entries: List[LogEntry] = field(default_factory=list)
    flow_history: List[dict] = field(default_factory=list)

    def log(self, msg: str, level: str = "INFO"):
        level = level.upper()
        if level not in LEVELS:
            level = "INFO"
        if LEVELS.index(level) < LEVELS.index(self.min_level):
            return
        entry = LogEntry(ts=time.time(), level=level, msg=msg)
        self.entries.append(entry)
        if len(self.entries) > MAX_LOGS:
            self.entries = self.entries[-MAX_LOGS:]
        if level == "ERROR":
            self.last_error = msg
        if self.echo:
            print(entry.format(), file=sys.stderr)

    def flow(self, step: str, **details):
        """Record a named step of the capture flow (kept separately for export)."""
        self.flow_history.append({"step": step, "ts": time.time(), "details": details})
        if len(self.flow_history) > MAX_LOGS:
            self.flow_history = self.flow_history[-MAX_LOGS:]
        extra = " ".join(f"{k}={v}" for k, v in details.items())
        self.log(f"FLOW: {step}" + (f" {extra}" if extra else ""), level="DEBUG")

    @property
    def logs(self) -> List[str]:
        return [e.format() for e in self.entries]

    def export(self) -> str:
        return "".join(line + "\n" for line in self.logs)

    def clear(self):
        self.entries = []
        self.flow_history = []
        self.last_error = None

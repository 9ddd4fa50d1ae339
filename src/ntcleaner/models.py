"""Data models for ntcleaner."""

from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

MS_PER_DAY = 86_400_000

DEFAULT_CRON_HOUR = 3
DEFAULT_CRON_MINUTE = 0
DEFAULT_INTERVAL_DAYS = 3


class RiskLevel(str, Enum):
    """Risk level for cache categories."""

    SAFE = "safe"  # Regenerated by the client on demand
    REVIEW = "review"  # Chat media, gone from local history once deleted
    RISKY = "risky"  # Framework state, may break the bot


class CacheCategory(str, Enum):
    """The ten cache categories, in scan/clean enumeration order."""

    VIDEO = "video"
    VIDEO_THUMB = "videoThumb"
    PTT = "ptt"
    PIC = "pic"
    FILE = "file"
    LOG = "log"
    LOG_CACHE = "logCache"
    NT_TEMP = "ntTemp"
    NAPCAT_DATA = "napCatData"
    NAPCAT_TEMP = "napCatTemp"


class Frequency(str, Enum):
    """Recurrence policy of a scheduled task."""

    DAILY = "daily"
    WEEKLY = "weekly"
    INTERVAL = "interval"


class TaskState(str, Enum):
    """Lifecycle state of a scheduled task inside the scheduler."""

    IDLE = "idle"
    ARMED = "armed"
    RUNNING = "running"


# CleanOptions field that enables each category
CATEGORY_OPTION_FIELDS: dict[CacheCategory, str] = {
    CacheCategory.VIDEO: "enable_video",
    CacheCategory.VIDEO_THUMB: "enable_video_thumb",
    CacheCategory.PTT: "enable_ptt",
    CacheCategory.PIC: "enable_pic",
    CacheCategory.FILE: "enable_file",
    CacheCategory.LOG: "enable_log",
    CacheCategory.LOG_CACHE: "enable_log_cache",
    CacheCategory.NT_TEMP: "enable_nt_temp",
    CacheCategory.NAPCAT_DATA: "enable_nap_cat_data",
    CacheCategory.NAPCAT_TEMP: "enable_nap_cat_temp",
}


def format_size(size_bytes: int) -> str:
    """Format bytes as a human-readable string (binary units, up to 2 decimals)."""
    if size_bytes <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(size_bytes)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def parse_int(value: Any, default: int) -> int:
    """Leniently parse an integer, falling back to default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


def normalize_keys(model_cls: type[BaseModel], data: Mapping[str, Any]) -> dict[str, Any]:
    """Map camelCase aliases in data onto the model's field names."""
    aliases = {info.alias or name: name for name, info in model_cls.model_fields.items()}
    return {aliases.get(key, key): value for key, value in data.items()}


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class CleanOptions(CamelModel):
    """Per-category enable flags plus the retention window."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    enable_video: bool = True
    enable_video_thumb: bool = True
    enable_ptt: bool = True
    enable_pic: bool = True
    enable_file: bool = True
    enable_log: bool = True
    enable_log_cache: bool = True
    enable_nt_temp: bool = True
    enable_nap_cat_data: bool = False
    enable_nap_cat_temp: bool = True
    retain_days: int = Field(7, description="Files younger than this many days are kept")

    @field_validator("retain_days", mode="before")
    @classmethod
    def _coerce_retain_days(cls, value: Any) -> int:
        return max(0, parse_int(value, 0))

    @property
    def retain_ms(self) -> int:
        """Retention window in milliseconds."""
        return self.retain_days * MS_PER_DAY

    def is_enabled(self, category: CacheCategory) -> bool:
        """Whether cleaning is enabled for a category."""
        return getattr(self, CATEGORY_OPTION_FIELDS[CacheCategory(category)])

    def merged(self, partial: Optional[Mapping[str, Any]]) -> "CleanOptions":
        """Return a copy with the keys in partial replaced."""
        if not partial:
            return self
        data = self.model_dump()
        data.update(normalize_keys(CleanOptions, partial))
        return CleanOptions.model_validate(data)


class Category(BaseModel):
    """Definition of a cache category."""

    id: CacheCategory = Field(..., description="Category identifier")
    name: str = Field(..., description="Human-readable name")
    risk_level: RiskLevel = Field(..., description="Risk level for this category")
    location: str = Field(..., description="Where the directories live, relative to the data root")
    description: str = Field(..., description="What this category contains")
    linux_only: bool = Field(False, description="Only present on the hashed (Linux) layout")

    @property
    def option_field(self) -> str:
        """CleanOptions field that enables this category."""
        return CATEGORY_OPTION_FIELDS[self.id]


class CategoryStats(BaseModel):
    """File count and byte total for one category."""

    files: int = 0
    size: int = 0


def _empty_categories() -> dict[str, CategoryStats]:
    return {category.value: CategoryStats() for category in CacheCategory}


class CleanStats(CamelModel):
    """Aggregated scan or clean statistics for one account."""

    total_files: int = 0
    total_size: int = 0
    categories: dict[str, CategoryStats] = Field(default_factory=_empty_categories)

    def add(self, category: CacheCategory, files: int, size: int) -> None:
        """Accumulate a directory result into a category and the totals."""
        key = CacheCategory(category).value
        entry = self.categories.setdefault(key, CategoryStats())
        entry.files += files
        entry.size += size
        self.total_files += files
        self.total_size += size

    def get(self, category: CacheCategory) -> CategoryStats:
        """Stats for one category (zero if never touched)."""
        return self.categories.get(CacheCategory(category).value, CategoryStats())

    @property
    def size_human(self) -> str:
        """Human-readable total size."""
        return format_size(self.total_size)


class ScheduleTask(CamelModel):
    """A named recurring clean."""

    id: str = Field(..., description="Unique task identifier")
    name: str = "New task"
    accounts: list[str] = Field(default_factory=list, description="Target uins, empty means all")
    options: CleanOptions = Field(default_factory=CleanOptions)
    cron_hour: int = DEFAULT_CRON_HOUR
    cron_minute: int = DEFAULT_CRON_MINUTE
    frequency: Frequency = Frequency.DAILY
    frequency_value: int = Field(0, description="Weekday 0-6 (Sunday=0) or interval days")
    enabled: bool = True
    last_run: Optional[datetime] = None
    last_result: Optional[str] = None

    @field_validator("accounts", mode="before")
    @classmethod
    def _coerce_accounts(cls, value: Any) -> list[str]:
        if not value:
            return []
        if isinstance(value, (str, int)):
            value = [value]
        return [str(uin).strip() for uin in value if str(uin).strip()]

    @field_validator("cron_hour", mode="before")
    @classmethod
    def _clamp_hour(cls, value: Any) -> int:
        return _clamp(parse_int(value, DEFAULT_CRON_HOUR), 0, 23)

    @field_validator("cron_minute", mode="before")
    @classmethod
    def _clamp_minute(cls, value: Any) -> int:
        return _clamp(parse_int(value, DEFAULT_CRON_MINUTE), 0, 59)

    @field_validator("frequency", mode="before")
    @classmethod
    def _coerce_frequency(cls, value: Any) -> Frequency:
        try:
            return Frequency(value)
        except ValueError:
            return Frequency.DAILY

    @field_validator("frequency_value", mode="before")
    @classmethod
    def _coerce_frequency_value(cls, value: Any) -> int:
        return parse_int(value, 0)

    @model_validator(mode="after")
    def _check_frequency_value(self) -> "ScheduleTask":
        if self.frequency == Frequency.WEEKLY:
            self.frequency_value %= 7
        elif self.frequency == Frequency.INTERVAL and self.frequency_value < 1:
            self.frequency_value = DEFAULT_INTERVAL_DAYS
        return self


class CleanerConfig(CamelModel):
    """The persisted document: default options plus the task list."""

    default_options: CleanOptions = Field(default_factory=CleanOptions)
    schedule_tasks: list[ScheduleTask] = Field(default_factory=list)


class LoginEntry(BaseModel):
    """One uin/uid pair reported by the host's login list."""

    uin: str
    uid: str
    nick_name: Optional[str] = None


class AccountRunResult(BaseModel):
    """Outcome of cleaning one account."""

    uin: str
    stats: Optional[CleanStats] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def total_files(self) -> int:
        return self.stats.total_files if self.stats else 0

    @property
    def total_size(self) -> int:
        return self.stats.total_size if self.stats else 0


class RunSummary(BaseModel):
    """Result of cleaning a set of accounts (ad hoc or scheduled)."""

    task_id: Optional[str] = None
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    results: list[AccountRunResult] = Field(default_factory=list)

    @property
    def total_files(self) -> int:
        """Files deleted across all accounts."""
        return sum(r.total_files for r in self.results)

    @property
    def total_size(self) -> int:
        """Bytes freed across all accounts."""
        return sum(r.total_size for r in self.results)

    @property
    def failed_accounts(self) -> list[str]:
        return [r.uin for r in self.results if not r.success]

    @property
    def summary(self) -> str:
        """One-line result, as stored in a task's last result."""
        text = f"Deleted {self.total_files} files, freed {format_size(self.total_size)}"
        if self.failed_accounts:
            text += f"; failed: {', '.join(self.failed_accounts)}"
        return text


class AccountSummary(BaseModel):
    """An account with its full cache inventory."""

    uin: str
    is_current: bool = False
    stats: CleanStats


class AccountStatsReport(BaseModel):
    """Inventory of one account plus an optional reclaimable estimate."""

    uin: str
    retain_days: int = 0
    stats: CleanStats
    estimated_clean: Optional[CleanStats] = None


class AccountListing(BaseModel):
    """All known accounts under a data path."""

    data_path: str
    current_uin: Optional[str] = None
    accounts: list[AccountSummary] = Field(default_factory=list)

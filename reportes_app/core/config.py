"""Central configuration, constants, enumerations, and shared column definitions."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# Remote Collection Settings
# =============================================================================
DEFAULT_API_BASE_URL = "http://localhost:4000"
REPORTS_ENDPOINT = "/api/reportes"
TIMEZONE = "America/Monterrey"

# =============================================================================
# Report Enumerations
# =============================================================================
# Severity order matters: index position is the rank used for comparisons.
PRIORITIES: Sequence[str] = ("Baja", "Media", "Alta", "Crítica")
DEFAULT_PRIORITY = "Baja"

STATUSES: Sequence[str] = ("Pendiente", "En Proceso", "Resuelto")
DEFAULT_STATUS = "Pendiente"
TERMINAL_STATUS = "Resuelto"

OTHER_PROBLEM_TYPE = "Otro"
PROBLEM_TYPES: Sequence[str] = (
    "Hardware - Computadoras",
    "Hardware - Impresoras",
    "Hardware - Red/Internet",
    "Software - Instalación",
    "Software - Configuración",
    "Software - Licencias",
    "Sistemas - Base de datos",
    "Sistemas - Aplicaciones web",
    "Soporte - Capacitación",
    "Soporte - Mantenimiento",
    OTHER_PROBLEM_TYPE,
)

UNKNOWN_REPORTER = "Desconocido"
MIN_DESCRIPTION_LENGTH = 20

# =============================================================================
# Team Roster
# Used as the load-balancing default when an imported report has no assignee.
# =============================================================================
ASSIGNEE_ROSTER: Sequence[str] = (
    "Lic. Francisco Jahir Vazquez De Leon",
    "Ayudante Paco",
    "Roberto Carlos De La Cruz Gonzalez",
)

# =============================================================================
# Roles
# =============================================================================
PRIVILEGED_ROLES: frozenset[str] = frozenset({"administrador", "jefe_departamento", "tecnico"})

# Keys should be lowercase for case-insensitive matching
ROLE_ALIASES: dict[str, str] = {
    "jefe": "jefe_departamento",
    "jefe_departamento": "jefe_departamento",
    "usuario": "usuario",
    "administrador": "administrador",
    "admin": "administrador",
    "tecnico": "tecnico",
    "técnico": "tecnico",
}
DEFAULT_ROLE = "usuario"

# =============================================================================
# Filter Configuration
# =============================================================================
ALL = "all"

# Spanish bucket names used by the dashboard UI map onto canonical names.
BUCKET_ALIASES: dict[str, str] = {
    "todos": ALL,
    "hoy": "today",
    "ayer": "yesterday",
    "estaSemana": "this_week",
    "semanaPasada": "last_week",
    "ultimos7": "last_7_days",
    "ultimos30": "last_30_days",
    "mes": "this_month",
    "mesPasado": "last_month",
    "trimestre": "this_quarter",
    "trimestrePasado": "last_quarter",
    "añoActual": "this_year",
    "añoPasado": "last_year",
}

# Order matters: the first matching field satisfies the search predicate.
SEARCH_FIELDS: Sequence[str] = (
    "id",
    "departments_text",
    "description",
    "problem_type",
    "reported_by",
    "assignee",
    "status",
)

# =============================================================================
# Aggregation Labels
# =============================================================================
MONTH_LABELS: Sequence[str] = (
    "Ene",
    "Feb",
    "Mar",
    "Abr",
    "May",
    "Jun",
    "Jul",
    "Ago",
    "Sep",
    "Oct",
    "Nov",
    "Dic",
)
WEEKDAY_LABELS: Sequence[str] = ("Lunes", "Martes", "Miércoles", "Jueves", "Viernes")

DEFAULT_TOP_N: int = 10

# =============================================================================
# Field Names
# Python attribute -> remote entity key. The entity shape on the wire is also the
# hierarchical export shape.
# =============================================================================
WIRE_FIELDS: dict[str, str] = {
    "id": "_id",
    "departments": "departamento",
    "description": "descripcion",
    "problem_type": "tipoProblema",
    "reported_by": "quienReporta",
    "priority": "prioridad",
    "status": "status",
    "assignee": "asignadoA",
    "timestamp": "timestamp",
    "attachments": "imagenes",
}
EDITABLE_FIELDS: frozenset[str] = frozenset(
    {"departments", "description", "problem_type", "reported_by", "priority", "status", "assignee"}
)

EXPORT_COLUMNS: Sequence[str] = (
    "ID",
    "Departamento",
    "Descripcion",
    "TipoProblema",
    "QuienReporta",
    "Prioridad",
    "Estado",
    "AsignadoA",
    "FechaHora",
)
EXPORT_DATE_FORMAT = "%d/%m/%Y %H:%M:%S"
EXPORT_FILENAME_PREFIX = "reportes_sistemas"
NO_ASSIGNEE_LABEL = "N/A"

# Tabular header -> Python attribute, used when reading imported rows.
TABULAR_FIELDS: dict[str, str] = {
    "ID": "id",
    "Departamento": "departments",
    "Descripcion": "description",
    "TipoProblema": "problem_type",
    "QuienReporta": "reported_by",
    "Prioridad": "priority",
    "Estado": "status",
    "AsignadoA": "assignee",
    "FechaHora": "timestamp",
}

REPORT_CORE_COLUMNS: Sequence[str] = (
    "id",
    "departments",
    "departments_text",
    "description",
    "problem_type",
    "reported_by",
    "priority",
    "priority_value",
    "status",
    "assignee",
    "timestamp",
)

DISPLAY_ORDER_TICKET_LIST: Sequence[str] = (
    "id",
    "timestamp",
    "departments_text",
    "problem_type",
    "priority",
    "status",
    "assignee",
    "reported_by",
    "description",
)


class AppSettings(BaseSettings):
    """Runtime settings, overridable through ``REPORTES_*`` environment variables.

    ``REPORTES_API_BASE_URL``, ``REPORTES_TIMEZONE`` and
    ``REPORTES_POLL_INTERVAL_SECONDS`` are the usual overrides; every field
    below can be set the same way.
    """

    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="Base URL of the report collection")
    timezone: str = Field(default=TIMEZONE, description="Local timezone for buckets and display dates")
    poll_interval_seconds: float = Field(default=30.0, gt=0, description="Period of the background refetch")
    search_debounce_seconds: float = Field(default=0.5, gt=0)
    autosave_debounce_seconds: float = Field(default=1.0, gt=0)
    error_reset_seconds: float = Field(default=3.0, gt=0, description="Time an edit error stays visible")
    page_size: int = Field(default=10, gt=0)
    top_n: int = Field(default=DEFAULT_TOP_N, gt=0)
    import_max_workers: int = Field(default=8, gt=0, description="Concurrent create calls during import")
    request_timeout_seconds: float = Field(default=15.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="REPORTES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

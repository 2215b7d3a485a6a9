"""Pydantic configuration models for sitemapgen."""

from enum import Enum
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..exceptions import ConfigurationError

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
MAX_URLS_PER_SITEMAP = 50000  # sitemaps.org protocol limit


class ChangeFreq(str, Enum):
    """Allowed <changefreq> values per sitemaps.org."""

    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


class LastmodStrategy(str, Enum):
    """Sources for the per-URL <lastmod> timestamp."""

    GIT = "git"
    FILEMTIME = "filemtime"
    CURRENT = "current"
    NONE = "none"


class ByteSize(int):
    """
    Custom type that parses human-readable byte sizes.

    Accepts:
        - Integers (bytes)
        - Strings like '200kb', '1mb', '5gb'

    Examples:
        >>> ByteSize._parse('200kb')
        204800
        >>> ByteSize._parse('50mb')
        52428800
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> Any:
        from pydantic_core import core_schema

        return core_schema.no_info_plain_validator_function(cls._parse)

    @classmethod
    def _parse(cls, v: Any) -> int:
        if isinstance(v, bool):
            raise ValueError(f"Invalid byte size: {v}")
        if isinstance(v, int):
            if v < 0:
                raise ValueError(f"Byte size must not be negative: {v}")
            return v
        if isinstance(v, str):
            v = v.lower().strip()
            # Order matters: check longer suffixes first
            units = [("gb", 1024**3), ("mb", 1024**2), ("kb", 1024), ("b", 1)]
            for unit, mult in units:
                if v.endswith(unit):
                    num_str = v[: -len(unit)].strip()
                    try:
                        return int(float(num_str) * mult)
                    except ValueError as err:
                        raise ValueError(f"Invalid number in byte size: {v}") from err
            try:
                return int(v)
            except ValueError:
                pass
        raise ValueError(f"Invalid byte size: {v}. Use format like '200kb', '50mb', or integer bytes.")


def _split_list(value: Any) -> Any:
    """Accept comma-separated strings wherever a list of strings is expected."""
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


class DiscoveryConfig(BaseModel):
    """Configuration for file walking, HTML discovery and URL filtering."""

    include_patterns: list[str] = Field(
        default_factory=lambda: ["**/*.html", "**/*.htm"],
        description="Glob patterns (relative to public_dir) of files to include",
    )
    exclude_patterns: list[str] = Field(
        default_factory=lambda: ["**/*.map"],
        description="Glob patterns of files to skip",
    )
    exclude_urls: list[str] = Field(
        default_factory=lambda: ["*/sitemap*.xml", "*/sitemap*.txt", "*/sitemap*.xml.gz"],
        description="Exact URLs or wildcard patterns (* and ?) to drop from the sitemap",
    )
    exclude_extensions: list[str] = Field(
        default_factory=lambda: [".zip", ".exe", ".dmg", ".pkg", ".deb", ".rpm", ".tar", ".gz", ".7z", ".rar", ".iso"],
        description="File extensions that must never appear as sitemap URLs",
    )
    additional_urls: list[str] = Field(default_factory=list, description="Absolute URLs to add manually")
    parse_canonical: bool = Field(True, description='Honor <link rel="canonical"> in HTML files')
    discover_links: bool = Field(True, description="Add internal <a href> targets found in HTML files")
    max_discovered_links: int = Field(10000, ge=0, description="Cap on links added via anchor discovery")
    max_total_urls: int = Field(100000, ge=1, description="Cap on the collected URL count")

    model_config = {"extra": "forbid"}

    @field_validator(
        "include_patterns",
        "exclude_patterns",
        "exclude_urls",
        "exclude_extensions",
        "additional_urls",
        mode="before",
    )
    @classmethod
    def _split_lists(cls, v: Any) -> Any:
        return _split_list(v)

    @field_validator("exclude_extensions")
    @classmethod
    def _normalize_extensions(cls, v: list[str]) -> list[str]:
        normalized = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else "." + ext)
        return normalized


class EntryConfig(BaseModel):
    """Per-URL metadata applied to every sitemap entry."""

    lastmod_strategy: str = Field(
        LastmodStrategy.GIT.value,
        description="git, filemtime, current or none (unknown values disable lastmod)",
    )
    changefreq: Optional[ChangeFreq] = Field(None, description="<changefreq> value for every URL")
    priority: Optional[float] = Field(None, ge=0.0, le=1.0, description="<priority> value for every URL")

    model_config = {"extra": "forbid"}

    @property
    def strategy(self) -> Optional[LastmodStrategy]:
        """The lastmod strategy as an enum, or None when unrecognized."""
        try:
            return LastmodStrategy(self.lastmod_strategy)
        except ValueError:
            return None


class OutputConfig(BaseModel):
    """Configuration for the generated artifacts."""

    directory: Optional[Path] = Field(None, description="Output directory (default: public_dir)")
    filename: str = Field("sitemap.xml", description="XML sitemap filename; TXT name is derived from it")
    index_filename: str = Field("sitemap-index.xml", description="Sitemap index filename when split")
    generate_xml: bool = Field(True, description="Write the XML sitemap")
    generate_txt: bool = Field(True, description="Write the TXT sitemap")
    generate_gzip: bool = Field(True, description="Write .gz copies of XML sitemaps and the index")
    max_urls_per_file: int = Field(
        MAX_URLS_PER_SITEMAP,
        ge=1,
        le=MAX_URLS_PER_SITEMAP,
        description="Split into numbered files plus an index above this many URLs",
    )
    xml_max_size: ByteSize = Field(ByteSize(50 * 1024**2), description="Size limit per XML sitemap (e.g. '50mb')")
    txt_max_size: ByteSize = Field(ByteSize(50 * 1024**2), description="Size limit per TXT sitemap (e.g. '50mb')")

    model_config = {"extra": "forbid"}

    @field_validator("filename", "index_filename")
    @classmethod
    def _xml_filename(cls, v: str) -> str:
        if not v.lower().endswith(".xml"):
            raise ValueError(f"must end with .xml (got {v!r})")
        if "/" in v or "\\" in v:
            raise ValueError(f"must be a bare filename (got {v!r})")
        return v

    @property
    def txt_filename(self) -> str:
        """TXT sitemap filename derived from the XML filename."""
        return self.filename[: -len(".xml")] + ".txt"


class ValidationConfig(BaseModel):
    """Configuration for sitemap validation."""

    strict: bool = Field(False, description="Treat protocol violations as errors and fail the run")
    external_paths: list[Path] = Field(
        default_factory=list,
        description="Existing sitemap files to validate independently of generation",
    )

    model_config = {"extra": "forbid"}

    @field_validator("external_paths", mode="before")
    @classmethod
    def _split_paths(cls, v: Any) -> Any:
        return _split_list(v)


class SitemapConfig(BaseModel):
    """
    Root configuration model for sitemapgen.

    Example:
        config = SitemapConfig(
            site_url="https://example.com/",
            public_dir=Path("./dist"),
            output=OutputConfig(max_urls_per_file=10000),
        )

    YAML format:
        site_url: https://example.com/
        public_dir: ./dist
        discovery:
          exclude_urls:
            - https://example.com/404.html
        entries:
          lastmod_strategy: filemtime
          changefreq: weekly
    """

    site_url: str = Field(..., description="Base URL of the published site")
    public_dir: Path = Field(..., description="Directory holding the built site")

    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    entries: EntryConfig = Field(default_factory=EntryConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field("INFO", description="Logging level")
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    @field_validator("site_url")
    @classmethod
    def _http_site_url(cls, v: str) -> str:
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("site_url must start with http:// or https://")
        return v

    @field_validator("public_dir")
    @classmethod
    def _existing_public_dir(cls, v: Path) -> Path:
        if not v.is_dir():
            raise ValueError(f"public_dir not found: {v}")
        return v

    @model_validator(mode="after")
    def _default_output_dir(self) -> "SitemapConfig":
        if self.output.directory is None:
            self.output.directory = self.public_dir
        return self

    @property
    def output_dir(self) -> Path:
        """Resolved output directory (never None after validation)."""
        return self.output.directory or self.public_dir

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str, **overrides: Any) -> "SitemapConfig":
        """Load config from YAML string, with keyword overrides applied on top."""
        return build_config(**deep_update(parse_yaml_mapping(yaml_str), overrides))

    @classmethod
    def from_yaml_file(cls, path: Path, **overrides: Any) -> "SitemapConfig":
        """Load config from YAML file."""
        return build_config(**deep_update(read_yaml_file(path), overrides))


def parse_yaml_mapping(yaml_str: str) -> dict:
    """Parse YAML text that must hold a mapping (an empty document is an empty mapping)."""
    import yaml

    try:
        data = yaml.safe_load(yaml_str) or {}
    except yaml.YAMLError as err:
        raise ConfigurationError(f"invalid YAML: {err}") from err
    if not isinstance(data, dict):
        raise ConfigurationError("configuration file must contain a mapping")
    return data


def read_yaml_file(path: Path) -> dict:
    """Read a YAML configuration file into a plain mapping."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigurationError(f"cannot read configuration file {path}: {err}") from err
    return parse_yaml_mapping(text)


def deep_update(base: dict, overrides: dict) -> dict:
    """Recursively merge overrides into base; nested dicts merge, other values replace."""
    result = base.copy()
    for key, value in overrides.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_update(result[key], value)
        else:
            result[key] = value
    return result


def _format_error(error: Any) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, ") :]
    return f"{location}: {message}" if location else message


def build_config(**kwargs: Any) -> SitemapConfig:
    """
    Validate configuration in a single pass.

    Every problem pydantic reports is collected into one
    ConfigurationError, so nothing is written before all settings
    are known to be usable.

    Raises:
        ConfigurationError: If any setting is missing or invalid
    """
    try:
        return SitemapConfig.model_validate(kwargs)
    except ValidationError as err:
        raise ConfigurationError([_format_error(e) for e in err.errors()]) from err

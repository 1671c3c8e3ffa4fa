"""
Configuration loading and aggregator wiring.

The YAML file names the sources (adapter class + kwargs) and the datasets
built from them. Anything wrong with it raises :class:`ConfigError` before a
single request is served.
"""

from __future__ import annotations

import inspect
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from . import plugin_loader
from .aggregator import Aggregator, Dataset
from .cache import TTLCache
from .classifier import EventClassifier
from .errors import ConfigError
from .infra.http import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, HttpClient
from .interfaces import Reporter, SourceAdapter
from .models import FacilityLink


logger = logging.getLogger(__name__)


class SourceConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    class_path: str = Field(alias="class")
    kwargs: Dict[str, Any] = Field(default_factory=dict)


class DatasetConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sources: List[str] = Field(min_length=1)
    max_items: int = Field(default=100, gt=0)
    description: str = ""


class ClassifierConfig(BaseModel):
    keywords: Optional[List[str]] = None


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cache_ttl: float = Field(default=3600.0, gt=0)
    refresh_interval: Optional[float] = Field(default=None, gt=0)
    request_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    adapter_timeout: Optional[float] = Field(default=30.0, gt=0)
    user_agent: Optional[str] = DEFAULT_USER_AGENT
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    sources: Dict[str, SourceConfig] = Field(min_length=1)
    datasets: Dict[str, DatasetConfig] = Field(min_length=1)
    facilities: List[FacilityLink] = Field(default_factory=list)

    @model_validator(mode="after")
    def _datasets_use_known_sources(self) -> "AppConfig":
        for name, ds in self.datasets.items():
            missing = [s for s in ds.sources if s not in self.sources]
            if missing:
                raise ValueError(f"dataset '{name}' references unknown sources: {missing}")
        return self

    @property
    def warmup_interval(self) -> float:
        return self.refresh_interval or self.cache_ttl


def parse_config(data: Any) -> AppConfig:
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")
    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(path: str = "sources.yml") -> AppConfig:
    """Load and validate configuration from a YAML file."""
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    return parse_config(data)


def _build_source(
    name: str,
    cfg: SourceConfig,
    shared: Dict[str, Any],
) -> SourceAdapter:
    try:
        cls = plugin_loader.get(cfg.class_path)
    except KeyError as e:
        raise ConfigError(f"Source '{name}': {e.args[0]}") from e

    params = inspect.signature(cls).parameters
    kwargs = dict(cfg.kwargs)
    for key in ("source_name", "name"):
        if key in params:
            kwargs.setdefault(key, name)
            break
    for key, value in shared.items():
        if key in params and value is not None:
            kwargs.setdefault(key, value)

    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Source '{name}' ({cfg.class_path}): {e}") from e


def build_aggregator(
    config: AppConfig,
    *,
    http: Optional[HttpClient] = None,
    reporter: Optional[Reporter] = None,
) -> Aggregator:
    """Instantiate every source and dataset described by ``config``."""
    if http is None:
        headers = {"User-Agent": config.user_agent} if config.user_agent else {}
        http = HttpClient(timeout=config.request_timeout, default_headers=headers)
    classifier = EventClassifier(config.classifier.keywords)

    shared = {"http": http, "classifier": classifier, "reporter": reporter}
    adapters = {name: _build_source(name, cfg, shared) for name, cfg in config.sources.items()}

    datasets = {
        name: Dataset(
            name=name,
            adapters=[adapters[s] for s in ds.sources],
            max_items=ds.max_items,
            description=ds.description,
            sources=list(ds.sources),
        )
        for name, ds in config.datasets.items()
    }
    logger.info(f"Configured {len(adapters)} sources and {len(datasets)} datasets")

    return Aggregator(
        datasets,
        cache=TTLCache(config.cache_ttl),
        classifier=classifier,
        facilities=config.facilities,
        http=http,
        adapter_timeout=config.adapter_timeout,
    )


def build_from_file(path: str, **kwargs) -> Aggregator:
    return build_aggregator(load_config(path), **kwargs)

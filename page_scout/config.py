"""
Модуль для загрузки и валидации конфигурации краулера page_scout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Literal, Optional, Pattern, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

EngineName = Literal["fetch", "playwright", "stealth"]


class CrawlConfig(BaseModel):
    """Конфигурация одного запуска обхода."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    depth: int = Field(2, ge=0, description="Максимальная глубина обхода ссылок.")
    concurrency: int = Field(10, ge=1, description="Число одновременно выполняемых загрузок.")
    max_pages: int = Field(150, ge=1, description="Жесткий лимит по числу страниц.")
    rate_limit: int = Field(10, ge=1, description="Лимит запусков загрузок в секунду.")
    timeout: float = Field(10.0, gt=0, description="Таймаут одной стратегии загрузки (секунд).")
    respect_robots: bool = Field(True, description="Соблюдать правила robots.txt.")
    use_sitemap: bool = Field(True, description="Дополнять очередь URL из sitemap.xml.")
    include_pattern: Optional[Pattern[str]] = Field(None, description="URL должен совпадать с шаблоном.")
    exclude_pattern: Optional[Pattern[str]] = Field(None, description="URL не должен совпадать с шаблоном.")
    force_engine: Optional[EngineName] = Field(None, description="Использовать только эту стратегию.")
    use_auth: bool = Field(True, description="Подставлять сохранённую сессию для домена.")

    user_agent: str = Field(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        min_length=1,
        description="Заголовок User-Agent для загрузки страниц.",
    )
    robots_user_agent: str = Field("*", min_length=1, description="Агент для правил robots.txt.")
    preferred_language: str = Field("en", min_length=2, max_length=2, description="Предпочтительный язык.")
    idle_timeout: float = Field(15.0, gt=0, description="Обход завершается после стольких секунд без результатов.")
    min_word_count: int = Field(20, ge=0, description="Минимальное число слов в извлечённом тексте.")
    robots_timeout: float = Field(3.0, gt=0, description="Бюджет на загрузку robots.txt всех стартовых URL.")
    sitemap_timeout: float = Field(5.0, gt=0, description="Бюджет на разбор sitemap всех стартовых URL.")
    sitemap_seed_limit: int = Field(50, ge=0, description="Сколько URL из sitemap добавлять на стартовый URL.")
    install_browser: bool = Field(True, description="Пытаться установить Chromium при необходимости.")
    auth_dir: Optional[Path] = Field(None, description="Каталог сохранённых сессий.")

    @field_validator("preferred_language", mode="before")
    def _lower_language(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.lower()
        return v

    @property
    def sitemap_limit(self) -> int:
        """Число URL из sitemap, допускаемых на один стартовый URL."""
        return min(self.max_pages, self.sitemap_seed_limit)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> CrawlConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CrawlConfig.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(DEFAULT_CONFIG_PATH))
        path_obj = DEFAULT_CONFIG_PATH
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return CrawlConfig(**data)


def override_config(config: CrawlConfig, **overrides: Any) -> CrawlConfig:
    """Возвращает новую проверенную конфигурацию с заменёнными полями (None игнорируется)."""
    updates = {k: v for k, v in overrides.items() if v is not None}
    if not updates:
        return config
    data = config.model_dump(mode="json")
    data.update(updates)
    return CrawlConfig.model_validate(data)


__all__ = ["CrawlConfig", "DEFAULT_CONFIG_PATH", "EngineName", "ValidationError", "load_config", "override_config"]

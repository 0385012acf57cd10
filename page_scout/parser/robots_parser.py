# File: page_scout/parser/robots_parser.py
"""page_scout.parser.robots_parser: разбор robots.txt и проверка путей по правилам Google."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

__all__ = (
    "RobotsRule",
    "HostRobotsRecord",
    "parse_robots_txt",
    "path_matches",
    "is_allowed",
    "crawl_delay",
)


@dataclass
class RobotsRule:
    """Один блок User-agent с его директивами."""

    user_agent: str
    allow: List[str] = field(default_factory=list)
    disallow: List[str] = field(default_factory=list)
    crawl_delay: Optional[float] = None


@dataclass
class HostRobotsRecord:
    """Все правила и sitemap-ссылки одного хоста."""

    rules: List[RobotsRule] = field(default_factory=list)
    sitemaps: List[str] = field(default_factory=list)


def _prepare_lines(text: str) -> List[Tuple[str, str]]:
    """Очищает текст от комментариев и разделяет на (директива, значение)."""
    lines: List[Tuple[str, str]] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, val = (part.strip() for part in line.split(":", 1))
        lines.append((key.lower(), val))
    return lines


def parse_robots_txt(text: str) -> HostRobotsRecord:
    """Разбирает содержимое robots.txt.

    Каждая строка ``User-agent`` открывает новый блок и закрывает предыдущий.
    ``Allow``/``Disallow`` с пустым значением игнорируются, ``Sitemap``
    собирается независимо от блоков.
    """
    record = HostRobotsRecord()
    current: Optional[RobotsRule] = None

    for directive, value in _prepare_lines(text):
        if directive == "user-agent":
            if current is not None:
                record.rules.append(current)
            current = RobotsRule(user_agent=value.lower())
        elif directive == "allow":
            if current is not None and value:
                current.allow.append(value)
        elif directive == "disallow":
            if current is not None and value:
                current.disallow.append(value)
        elif directive == "crawl-delay":
            if current is not None:
                try:
                    current.crawl_delay = float(value)
                except ValueError:
                    pass
        elif directive == "sitemap" and value:
            record.sitemaps.append(value)

    if current is not None:
        record.rules.append(current)
    return record


def path_matches(path: str, pattern: str) -> bool:
    """Проверяет путь по шаблону robots.txt: ``*`` и завершающий ``$``, иначе префикс."""
    if pattern == "/":
        return True
    anchored = pattern.endswith("$")
    body = pattern[:-1] if anchored else pattern
    regex = ".*".join(re.escape(part) for part in body.split("*"))
    if anchored:
        regex += "$"
    return re.match(regex, path) is not None


def _matching_rules(record: HostRobotsRecord, user_agent: str) -> List[RobotsRule]:
    ua = user_agent.lower()
    return [rule for rule in record.rules if rule.user_agent in (ua, "*")]


def is_allowed(record: Optional[HostRobotsRecord], path: str, user_agent: str = "*") -> bool:
    """Самый длинный совпавший шаблон побеждает; при равной длине побеждает Allow."""
    if record is None or not record.rules:
        return True

    best: Optional[Tuple[int, bool]] = None
    for rule in _matching_rules(record, user_agent):
        candidates = [(p, True) for p in rule.allow] + [(p, False) for p in rule.disallow]
        for pattern, allow in candidates:
            if not path_matches(path, pattern):
                continue
            key = (len(pattern), allow)
            if best is None or key > best:
                best = key

    return True if best is None else best[1]


def crawl_delay(record: Optional[HostRobotsRecord], user_agent: str = "*") -> Optional[float]:
    """Crawl-delay первого подходящего блока или None."""
    if record is None:
        return None
    rules = _matching_rules(record, user_agent)
    return rules[0].crawl_delay if rules else None
